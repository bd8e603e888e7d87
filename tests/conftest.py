import os

os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("MATCHING_RUN_ON_STARTUP", "false")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import wiseup.models  # noqa: F401
from wiseup.core.database import Base, get_db
from wiseup.schemas.matching import (
    CandidateProfile,
    Coordinates,
    MatchCreate,
    MatchingRunRead,
    MatchRead,
    PostingCriteria,
    ProficiencyLevel,
)
from wiseup.services.matching import latest_per_pair

LEVEL_CODES = ["A1", "A2", "B1", "B2", "C1", "C2"]


class Clock:
    """Deterministic time source; every stamp is strictly later than the previous one."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        self._ticks = 0

    def __call__(self) -> datetime:
        return self.now

    def stamp(self) -> datetime:
        self._ticks += 1
        return self.now + timedelta(microseconds=self._ticks)

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


class FakeCandidates:
    def __init__(self, candidates: list[CandidateProfile] | None = None):
        self.candidates = list(candidates or [])

    def find_available(self, country=None, candidate_id=None):
        return [
            c
            for c in self.candidates
            if c.status == "available"
            and (not country or c.address_country == country)
            and (not candidate_id or c.id == candidate_id)
        ]

    def find_by_id(self, candidate_id):
        return next((c for c in self.candidates if c.id == candidate_id), None)


class FakePostings:
    def __init__(self, postings: list[PostingCriteria] | None = None, filled: set | None = None):
        self.postings = {p.id: p for p in postings or []}
        self.filled = set(filled or ())

    def find_by_id(self, job_posting_id):
        return self.postings.get(job_posting_id)

    def find_unfilled_ids(self):
        return [pid for pid in self.postings if pid not in self.filled]

    def find_startup_ids_for_postings(self, job_posting_ids):
        ids = []
        for pid in job_posting_ids:
            posting = self.postings.get(pid)
            if posting and posting.startup_id not in ids:
                ids.append(posting.startup_id)
        return ids

    def find_ids_by_startup(self, startup_id):
        return [pid for pid, p in self.postings.items() if p.startup_id == startup_id]


class FakeReferenceData:
    def __init__(self, levels=None, coordinates=None):
        self.levels = levels if levels is not None else make_levels()
        self.coordinates = dict(coordinates or {})
        self.coordinate_queries = 0

    def list_proficiency_levels(self):
        return list(self.levels.values())

    def find_coordinates(self, zip_code, country):
        self.coordinate_queries += 1
        return self.coordinates.get((zip_code, country))


class FakeMatchStore:
    def __init__(self, clock: Clock):
        self.clock = clock
        self.rows: list[MatchRead] = []
        self.fail_after: int | None = None

    def insert(self, match: MatchCreate) -> MatchRead:
        if self.fail_after is not None and len(self.rows) >= self.fail_after:
            raise RuntimeError("database unavailable")
        row = MatchRead(id=uuid.uuid4(), created_at=self.clock.stamp(), **match.model_dump())
        self.rows.append(row)
        return row

    def count_distinct_acceptable_candidates(self, job_posting_ids, threshold, exclude_run_id=None):
        considered = [
            m
            for m in self.rows
            if m.job_posting_id in job_posting_ids and m.matching_run_id != exclude_run_id
        ]
        return len(
            {
                m.candidate_id
                for m in latest_per_pair(considered).values()
                if m.score >= threshold
            }
        )

    def delete_by_run_ids(self, run_ids):
        before = len(self.rows)
        self.rows = [m for m in self.rows if m.matching_run_id not in run_ids]
        return before - len(self.rows)

    def latest_for_posting(self, job_posting_id):
        latest = latest_per_pair(m for m in self.rows if m.job_posting_id == job_posting_id)
        return sorted(latest.values(), key=lambda m: m.score, reverse=True)


class FakeRunStore:
    def __init__(self, clock: Clock):
        self.clock = clock
        self.runs: list[MatchingRunRead] = []

    def create(self, is_full_run):
        run = MatchingRunRead(id=uuid.uuid4(), is_full_run=is_full_run, created_at=self.clock.stamp())
        self.runs.append(run)
        return run

    def find_older_than(self, cutoff):
        return [r for r in self.runs if r.created_at < cutoff]

    def delete_by_ids(self, run_ids):
        before = len(self.runs)
        self.runs = [r for r in self.runs if r.id not in run_ids]
        return before - len(self.runs)


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, user_id, payload):
        self.sent.append((user_id, payload))


def make_levels() -> dict[str, ProficiencyLevel]:
    return {
        code: ProficiencyLevel(id=uuid.uuid4(), code=code, rank=rank)
        for rank, code in enumerate(LEVEL_CODES)
    }


def make_candidate(**overrides) -> CandidateProfile:
    data = {"id": uuid.uuid4(), "status": "available"}
    data.update(overrides)
    return CandidateProfile(**data)


def make_posting(**overrides) -> PostingCriteria:
    data = {"id": uuid.uuid4(), "startup_id": uuid.uuid4()}
    data.update(overrides)
    return PostingCriteria(**data)


@pytest.fixture()
def clock():
    return Clock()


@pytest.fixture()
def levels():
    return make_levels()


@pytest.fixture()
def no_coordinates():
    def resolve(zip_code, country):
        return None

    return resolve


@pytest.fixture()
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(sqlite_engine):
    with Session(sqlite_engine) as session:
        yield session


BERLIN = Coordinates(lat=52.5323, lon=13.3846)


@pytest_asyncio.fixture()
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture()
async def client(session_factory):
    from wiseup.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
