#!/usr/bin/env python3
"""
Interactive Test Client for KV-Dict

A simple command-line client for manually testing the KV-Dict server.
The server answers exactly one command per connection, so every command
typed here opens a fresh connection.

Usage:
    python scripts/client.py                  # Connect to localhost:27000
    python scripts/client.py --host 1.2.3.4   # Connect to specific host
    python scripts/client.py --port 8080      # Connect to specific port

Commands:
    GET <key>                 - List the values of a key
    PUT <key> <value>         - Add a value to a key
    DELETE <key> <value>      - Remove a value from a key
    help                      - Show this help
    exit                      - Exit client
"""

import argparse
import socket

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline  # noqa: F401
except ImportError:
    pass  # readline not available on Windows by default


class KVDictClient:
    """Simple one-shot TCP client for KV-Dict."""

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    def send_command(self, command: str) -> str:
        """Open a connection, send one command and return the response line."""
        if not command.endswith('\n'):
            command += '\n'

        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                sock.sendall(command.encode('utf-8', 'surrogateescape'))

                response = b''
                while not response.endswith(b'\n'):
                    chunk = sock.recv(4096)
                    if not chunk:
                        return "ERROR: Connection closed without a response"
                    response += chunk

            return response.decode('utf-8', 'replace').strip()

        except socket.timeout:
            return "ERROR: Request timed out"
        except OSError as e:
            return f"ERROR: {e}"


def print_help():
    """Print help message."""
    print("""
KV-Dict Commands:
-----------------
  GET <key>                 List the values stored under a key
  PUT <key> <value>         Add a value to a key (no-op if already present)
  DELETE <key> <value>      Remove a value from a key

Client Commands:
----------------
  help                      Show this help message
  exit                      Exit the client

Examples:
---------
  PUT <fruit> <apple>       -> 200 <apple>
  PUT <fruit> <banana>      -> 200 <apple> <banana>
  GET <fruit>               -> 200 <apple> <banana>
  DELETE <fruit> <apple>    -> 200 <banana>
  GET <vegetable>           -> 404
""")


def main():
    parser = argparse.ArgumentParser(
        description="Interactive test client for KV-Dict"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="localhost",
        help="Server host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=27000,
        help="Server port (default: 27000)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="Socket timeout in seconds (default: 5.0)"
    )

    args = parser.parse_args()

    print("KV-Dict Client")
    print("==============")
    print(f"Server: {args.host}:{args.port}")
    print("Type 'help' for commands.\n")

    client = KVDictClient(args.host, args.port, args.timeout)

    try:
        while True:
            try:
                command = input(">>> ").strip()

                if not command:
                    continue

                lower_cmd = command.lower()

                if lower_cmd == "help":
                    print_help()
                    continue

                if lower_cmd in ("exit", "quit"):
                    print("Goodbye!")
                    break

                print(client.send_command(command))

            except EOFError:
                print("\nGoodbye!")
                break

    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye!")


if __name__ == "__main__":
    main()
