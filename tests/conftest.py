import os
from typing import Any, AsyncGenerator, Dict, List, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_fees.db")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.main import app
from app.db.seed_config import seed_config
from app.db.session import Base, get_db, make_engine
from app.db.store import DocumentStore
from app.payments.zbpay import get_gateway


TEST_FEES: Dict[str, Dict[str, int]] = {
    "dayScholar": {
        "zjc": 200,
        "oLevel": 220,
        "aLevelSciences": 250,
        "aLevelCommercials": 230,
        "aLevelArts": 210,
    },
    "boarder": {
        "zjc": 300,
        "oLevel": 320,
        "aLevelSciences": 350,
        "aLevelCommercials": 330,
        "aLevelArts": 310,
    },
}


class FailingSession:
    """Wraps an AsyncSession and raises SQLAlchemyError on the n-th INSERT/UPDATE/DELETE."""

    def __init__(self, session: AsyncSession, fail_on_write: int = 2) -> None:
        self._session = session
        self._fail_on_write = fail_on_write
        self.writes = 0

    async def execute(self, statement, *args: Any, **kwargs: Any):
        if getattr(statement, "is_dml", False):
            self.writes += 1
            if self.writes == self._fail_on_write:
                raise OperationalError(str(statement), {}, Exception("disk I/O error"))
        return await self._session.execute(statement, *args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._session, name)


class FakeGateway:
    """Stands in for ZbPayClient; records calls and returns canned gateway bodies."""

    def __init__(self) -> None:
        self.initiate_calls: List[Dict[str, Any]] = []
        self.status_calls: List[str] = []
        self.initiate_response: Dict[str, Any] = {
            "paymentUrl": "https://pay.example.test/checkout/abc",
            "transactionId": "ZB-TX-1",
        }
        self.status_response: Dict[str, Any] = {"status": "PENDING"}
        self.error: Optional[Exception] = None

    async def initiate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.initiate_calls.append(payload)
        if self.error is not None:
            raise self.error
        return dict(self.initiate_response)

    async def check_status(self, order_reference: str) -> Dict[str, Any]:
        self.status_calls.append(order_reference)
        if self.error is not None:
            raise self.error
        return dict(self.status_response)


@pytest.fixture()
async def db_engine(tmp_path):
    """File-backed SQLite DB per test, so every session sees the same data."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'fees.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def store(session_factory) -> AsyncGenerator[DocumentStore, None]:
    async with session_factory() as session:
        yield DocumentStore(session)


@pytest.fixture()
async def seeded_store(store: DocumentStore) -> DocumentStore:
    await seed_config(store, active_terms=["2025_Term1"], fees=TEST_FEES)
    return store


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
async def client(session_factory, gateway: FakeGateway) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app; each request gets its own session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def student_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "name": "Tariro",
        "surname": "Moyo",
        "studentNumber": "MHS2025001",
        "studentType": "Day Scholar",
        "gradeCategory": "ZJC",
        "grade": "Form 2",
        "guardianPhoneNumber": "+263771234567",
        "adminId": "admin-001",
    }
    payload.update(overrides)
    return payload


async def create_student(client: AsyncClient, **overrides: Any) -> Dict[str, Any]:
    response = await client.post("/api/v1/students", json=student_payload(**overrides))
    assert response.status_code == 200, response.text
    return response.json()
