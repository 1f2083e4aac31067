"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator

from kvdict.network.tcp_server import KVServer
from kvdict.protocol.parser import ProtocolParser
from kvdict.storage.snapshot import SnapshotFile
from kvdict.storage.store import MultiValueStore


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def store() -> MultiValueStore:
    """Create a fresh, empty MultiValueStore."""
    return MultiValueStore()


@pytest.fixture
def snapshot_file(tmp_path) -> SnapshotFile:
    """Create a SnapshotFile pointing into a temporary directory."""
    return SnapshotFile(tmp_path / "data.json")


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def parser() -> ProtocolParser:
    """Create a strict ProtocolParser instance."""
    return ProtocolParser(lenient=False)


@pytest.fixture
def lenient_parser() -> ProtocolParser:
    """Create a ProtocolParser that keeps the empty-key fallback."""
    return ProtocolParser(lenient=True)


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int, store: MultiValueStore) -> AsyncGenerator[KVServer, None]:
    """
    Create and start a server instance for testing.

    This fixture:
    1. Creates a KVServer on a random free port sharing the `store` fixture
    2. Starts it in a background task
    3. Yields the server for testing
    4. Cleans up after the test
    """
    srv = KVServer(
        host='127.0.0.1',
        port=server_port,
        store=store,
        parser=ProtocolParser(lenient=False),
        read_timeout=2,
    )

    # Start server in background task
    server_task = asyncio.create_task(srv.start())

    # Wait for server to be ready
    await asyncio.sleep(0.1)

    yield srv

    # Cleanup
    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


# ============================================================================
# Client Fixtures
# ============================================================================

class OneShotClient:
    """
    Helper for testing server interactions.

    The server closes every connection after one response, so each
    request opens its own connection.

    Usage:
        client = OneShotClient('127.0.0.1', 27000)
        response = await client.send_command("PUT <key> <value>")
        assert response == "200 <value>"
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port

    async def send_raw(self, data: bytes) -> bytes:
        """Send raw bytes and return everything the server sends before closing."""
        reader, writer = await asyncio.open_connection(self.host, self.port)
        try:
            writer.write(data)
            await writer.drain()
            return await reader.read()
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass

    async def send_command(self, command: str) -> str:
        """
        Send a command and receive the response.

        Args:
            command: Command string (newline will be added if missing)

        Returns:
            Response string (stripped of trailing newline)
        """
        if not command.endswith('\n'):
            command += '\n'

        response = await self.send_raw(command.encode())
        return response.decode().strip()


@pytest.fixture
def client_factory(server_port: int):
    """
    Factory fixture to create test clients.

    Usage:
        async def test_something(server, client_factory):
            client = client_factory()
            response = await client.send_command("GET <key>")
    """
    def factory() -> OneShotClient:
        return OneShotClient('127.0.0.1', server_port)
    return factory


@pytest.fixture
def client(client_factory) -> OneShotClient:
    """A single OneShotClient for the running test server."""
    return client_factory()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
