"""
Pytest configuration and shared fixtures for Granite tests.
"""

import asyncio

import httpx
import pytest

from backend_stub import StubBackend, create_app
from granite.client import GraniteClient


@pytest.fixture
def backend():
    """Stub backend with one SQL and one storage connection."""
    stub = StubBackend()
    stub.add_sql_connection("pg", "postgres")
    stub.add_sql_connection("my", "mysql")
    stub.add_storage_connection("s3", "s3")
    stub.add_storage_connection("az", "azure-blob")
    return stub


@pytest.fixture
def transport(backend):
    """ASGI transport routing client requests into the stub app."""
    return httpx.ASGITransport(app=create_app(backend))


@pytest.fixture
def run(transport):
    """Run an async operation against a GraniteClient wired to the stub."""
    def _run(operation):
        async def runner():
            async with GraniteClient(url="http://granite.test", transport=transport) as client:
                return await operation(client)
        return asyncio.run(runner())
    return _run


@pytest.fixture
def photos(backend):
    """The container used by the listing examples."""
    backend.add_objects("media", "photos/a.jpg", "photos/vacation/b.jpg", "photos/", "readme.txt")
    return "media"
