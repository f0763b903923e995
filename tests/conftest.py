import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt-signing-0123456789")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from httpx import ASGITransport, AsyncClient

from marketplace_api.core.config import settings
from marketplace_api.db.session import create_database_engine, create_sessionmaker, init_models
from marketplace_api.services.auth import create_access_token

from doubles import SWIFT, FakeMedia, FakeRegistry, InMemoryInquiryRepository


@pytest.fixture
def inquiry_repository():
    return InMemoryInquiryRepository()


@pytest.fixture
def registry():
    return FakeRegistry({"MH12AB1234": SWIFT})


@pytest.fixture
def media():
    return FakeMedia()


@pytest.fixture
async def sessionmaker(tmp_path):
    test_settings = settings.model_copy(update={"database_url": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"})
    engine = create_database_engine(test_settings)
    await init_models(engine)
    yield create_sessionmaker(engine)
    await engine.dispose()


@pytest.fixture
async def container(inquiry_repository, registry, media, sessionmaker):
    from marketplace_api.services.container import ServiceContainer
    from marketplace_api.services.lead_dedupe import LeadDeduper

    services = ServiceContainer.assemble(
        settings,
        inquiries=inquiry_repository,
        leads=LeadDeduper(sessionmaker),
        registry=registry,
        media=media,
        sessionmaker=sessionmaker,
    )
    yield services
    await services.scheduler.drain(timeout=5)


@pytest.fixture
async def client(container):
    from marketplace_api.main import create_app

    app = create_app()
    app.state.container = container
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('admin-1', email='admin@example.com')}"}
