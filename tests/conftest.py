"""Shared fixtures: in-memory SQLite database, seed helpers, HTTP client."""
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from psysupport.database import Base, get_db
from psysupport.main import app
from psysupport.models import Availability, Psychologist, Specialization, User
from psysupport.routers.matching import get_ranking_provider
from psysupport.services.matching.ranking import RankingProvider

SPECIALIZATIONS = [
    (1, "anxiety", "Тревожность", "Изтироб"),
    (2, "depression", "Депрессия", "Афсурдагӣ"),
    (3, "burnout", "Выгорание", "Хастагӣ"),
    (10, "family", "Семейные проблемы", "Мушкилоти оилавӣ"),
]

# profiles get increasing created_at so candidate order is predictable
PROFILE_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


class Seeder:
    """Creates committed rows for tests."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._profiles = 0

    async def user(self, first_name: str = "Anna", last_name: str = "Petrova") -> User:
        user = User(first_name=first_name, last_name=last_name)
        self.db.add(user)
        await self.db.commit()
        return user

    async def psychologist(
        self,
        first_name: str = "Dilnoza",
        last_name: str = "Karimova",
        *,
        languages: str = "ru",
        work_formats: str = "online",
        specializations: tuple[str, ...] = (),
        experience_years: int = 3,
        price: Decimal = Decimal("150.00"),
        meeting_link: str | None = "https://meet.example.com/room-1",
        is_verified: bool = True,
    ) -> Psychologist:
        user = User(first_name=first_name, last_name=last_name)
        specs = []
        if specializations:
            result = await self.db.execute(
                select(Specialization).where(Specialization.key.in_(specializations))
            )
            specs = list(result.scalars().all())

        self._profiles += 1
        psychologist = Psychologist(
            user=user,
            languages=languages,
            work_formats=work_formats,
            specializations=specs,
            experience_years=experience_years,
            price_per_session=price,
            meeting_link=meeting_link,
            is_verified=is_verified,
            created_at=PROFILE_EPOCH + timedelta(minutes=self._profiles),
        )
        self.db.add(psychologist)
        await self.db.commit()
        return psychologist

    async def window(
        self,
        psychologist_id,
        day_of_week: int = 1,
        start_time: time = time(9, 0),
        end_time: time = time(11, 0),
        slot_duration_minutes: int = 60,
    ) -> Availability:
        window = Availability(
            psychologist_id=psychologist_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            slot_duration_minutes=slot_duration_minutes,
        )
        self.db.add(window)
        await self.db.commit()
        return window


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(
            Specialization.__table__.insert(),
            [
                {"id": sid, "key": key, "name_ru": name_ru, "name_tj": name_tj}
                for sid, key, name_ru, name_tj in SPECIALIZATIONS
            ],
        )
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(db):
    return Seeder(db)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    # rule-based ranking only, whatever the environment says
    app.dependency_overrides[get_ranking_provider] = lambda: RankingProvider()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
