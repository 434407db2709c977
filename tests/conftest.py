import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import create_engine, init_db
from main import create_app
from store import BookingStore

TOKEN = "propertytesting"
MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def settings() -> Settings:
    return Settings(api_token=TOKEN, database_url=MEMORY_URL)


@pytest.fixture
async def store():
    # Fresh in-memory database per test
    engine = create_engine(MEMORY_URL)
    await init_db(engine)
    yield BookingStore(engine)
    await engine.dispose()


@pytest.fixture
def client(settings: Settings):
    # Entering the context runs the startup handlers (table creation).
    with TestClient(create_app(settings), headers={"Authorization": f"Bearer {TOKEN}"}) as c:
        yield c
