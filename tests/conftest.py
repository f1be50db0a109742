"""Shared fixtures for filegate tests."""

import pytest

from filegate.config import Settings
from filegate.registry import ClientRegistry
from filegate.service import FileService
from tests.fakes import MemoryClientFactory, declaration


@pytest.fixture
def settings():
    return Settings(DEFAULT_PAGE_SIZE=100, MAX_PAGE_SIZE=500, READ_CHUNK_SIZE=4)


@pytest.fixture
def factory():
    return MemoryClientFactory()


@pytest.fixture
def registry(factory):
    return ClientRegistry(client_factory=factory)


@pytest.fixture
async def service(registry, settings):
    """Service with a single endpoint "e1"."""
    svc = FileService(registry, settings=settings)
    await svc.init([declaration("e1")])
    yield svc
    await svc.cleanup()


@pytest.fixture
async def multi_service(registry, settings):
    """Service with endpoints "e1" and "e2"."""
    svc = FileService(registry, settings=settings)
    await svc.init([declaration("e1"), declaration("e2")])
    yield svc
    await svc.cleanup()
