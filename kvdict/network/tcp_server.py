"""
Async TCP Server Module

This module implements the asynchronous TCP server for KV-Dict.

Every connection carries exactly one exchange: the client sends one
line, the server answers with one line and closes the connection.
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter
from typing import List, Optional

from ..config.settings import settings
from ..protocol.commands import Command, CommandType, Response
from ..protocol.parser import ProtocolParser
from ..storage.store import MultiValueStore

logger = logging.getLogger(__name__)


class KVServer:
    """
    Asynchronous TCP server for the KV-Dict service.

    Each client connection is handled in its own coroutine. All of them
    share one MultiValueStore, whose lock serializes the actual reads
    and writes.

    Features:
    - Non-blocking I/O with asyncio
    - One request per connection, closed after the response
    - Bounded reads (line length and read timeout)
    - Connection errors never affect the store or other clients

    Usage:
        server = KVServer(host='0.0.0.0', port=27000, store=store)
        await server.start()  # Runs until stop()

    Attributes:
        host: Server bind address (e.g., '0.0.0.0')
        port: Server port number (e.g., 27000)
        store: The MultiValueStore instance shared by all connections
        parser: The ProtocolParser for parsing commands
        read_timeout: Seconds to wait for the request line (0 = no limit)
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            store: MultiValueStore = None,
            parser: ProtocolParser = None,
            read_timeout: float = None,
    ):
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.store = store if store is not None else MultiValueStore()
        self.parser = parser if parser is not None else ProtocolParser()
        self.read_timeout = read_timeout if read_timeout is not None else settings.READ_TIMEOUT

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._running = False
        self._connection_count = 0
        self._total_requests = 0
        self._abandoned_count = 0

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Protocol flow:
            1. Read one line from the client
            2. Parse it using ProtocolParser
            3. Apply the command to the store
            4. Send the formatted response
            5. Close the connection

        A connection that fails before a full line arrives is dropped
        without a response.
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        logger.debug(f"Request from {addr}")

        try:
            line = await self._read_line(reader, addr)
            if line is None:
                self._abandoned_count += 1
                return

            logger.debug(f"Got: {line!r}")
            command = self.parser.parse_request(line)
            response = self._execute_command(command)

            logger.debug(f"Sending back {self.parser.format_response(response)!r}")
            writer.write(self.parser.encode_response(response))
            await writer.drain()

        except ConnectionError as exc:
            self._abandoned_count += 1
            logger.debug(f"Connection error from {addr}: {exc}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            self._abandoned_count += 1
            logger.exception(f"Error handling request from {addr}: {exc}")
        finally:
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def _read_line(self, reader: StreamReader, addr) -> Optional[str]:
        """Read the request line, or return None if the client failed to send one."""
        try:
            if self.read_timeout and self.read_timeout > 0:
                data = await asyncio.wait_for(reader.readline(), timeout=self.read_timeout)
            else:
                data = await reader.readline()
        except asyncio.TimeoutError:
            logger.warning(f"Timed out waiting for request from {addr}")
            return None
        except ValueError:
            # StreamReader raises ValueError once a line exceeds its limit
            logger.warning(f"Request line from {addr} exceeds {settings.READ_BUFFER_SIZE} bytes")
            return None

        line = self.parser.decode_line(data)
        if line is None:
            logger.debug(f"Connection from {addr} closed before a full line arrived")
        return line

    def _execute_command(self, command: Command) -> Response:
        """
        Execute a parsed command on the store.

        INVALID commands never reach the store and always produce 404.
        """
        if not command.is_valid:
            return Response.not_found()

        self._total_requests += 1
        values = self._apply(command)
        return Response.from_values(values)

    def _apply(self, command: Command) -> List[str]:
        if command.type == CommandType.GET:
            return self.store.get(command.key)

        if command.type == CommandType.PUT:
            return self.store.put(command.key, command.value)

        if command.type == CommandType.DELETE:
            return self.store.delete(command.key, command.value)

        return []

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs until stop() is called or the task is cancelled.

        Example:
            server = KVServer(port=27000)
            asyncio.run(server.start())
        """
        if self._running:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
            limit=settings.READ_BUFFER_SIZE,
        )
        self._running = True

        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        logger.info(f"Serving on {addrs}")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """
        Stop the server gracefully.

        Closes the listener and waits for it to fully shut down.
        """
        if self._server is None:
            return

        self._server.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None
            self._running = False

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with connection and request counts plus store stats.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "abandoned_connections": self._abandoned_count,
            "store_stats": self.store.get_stats(),
        }
