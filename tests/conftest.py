"""Shared test fixtures and configuration."""
import asyncio
import os
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("VOICE_BACKEND", "simulated")

from app.main import app
from app.db.database import Base, get_db
from app.core.dependencies import get_telephony_provider
from app.services.call_session.manager import IvrSessionManager
from app.services.ivr.scheduler import TimerHandle, TimerScheduler
from app.services.ivr.script import load_script
from app.services.speech.voice import AudioPlaybackError, VoiceAdapter
from app.services.telephony.initiation import CallInitiationAdapter, InitiationOutcome
from app.services.telephony.provider import SimulatedTelephonyProvider


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class ManualScheduler(TimerScheduler):
    """Scheduler driven by a virtual millisecond clock."""

    def __init__(self):
        super().__init__()
        self.now_ms = 0
        self._due: Dict[int, int] = {}

    def _arm(self, handle: TimerHandle) -> None:
        self._due[handle.id] = self.now_ms + handle.delay_ms

    def _disarm(self, handle: TimerHandle) -> None:
        self._due.pop(handle.id, None)

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing due timers in deadline order."""
        target = self.now_ms + ms
        while True:
            due = [(deadline, hid) for hid, deadline in self._due.items() if deadline <= target]
            if not due:
                break
            deadline, hid = min(due)
            self._due.pop(hid)
            self.now_ms = deadline
            self._fire(self._pending[hid])
        self.now_ms = target

    def tokens(self) -> List[str]:
        return [h.token for h in self.pending()]


class RecordingVoiceAdapter(VoiceAdapter):
    """Voice adapter that records calls instead of producing sound."""

    def __init__(self):
        self.spoken: List[Tuple[str, str]] = []
        self.played: List[str] = []
        self.stop_count = 0
        self.fail_tracks: set = set()
        self._on_ended: Optional[Callable[[], None]] = None

    def speak(self, text: str, locale: str) -> None:
        self.spoken.append((text, locale))

    def play_audio(self, track_id: str, on_ended: Callable[[], None]) -> None:
        if track_id in self.fail_tracks:
            raise AudioPlaybackError(f"cannot play {track_id}")
        self.played.append(track_id)
        self._on_ended = on_ended

    def stop_all(self) -> None:
        self.stop_count += 1
        self._on_ended = None

    @property
    def playing(self) -> bool:
        return self._on_ended is not None

    def finish(self) -> None:
        """Complete the current track naturally."""
        on_ended, self._on_ended = self._on_ended, None
        if on_ended:
            on_ended()


class FakeInitiator(CallInitiationAdapter):
    """Call initiation adapter returning a canned outcome."""

    def __init__(self, outcome: Optional[InitiationOutcome] = None):
        self.outcome = outcome or InitiationOutcome(ok=True, simulated=True, call_id="sim-test")
        self.numbers: List[str] = []
        self.error: Optional[Exception] = None
        self.hang = False
        self.closed = False

    async def initiate(self, number: str) -> InitiationOutcome:
        self.numbers.append(number)
        if self.hang:
            await asyncio.Event().wait()
        if self.error:
            raise self.error
        return self.outcome

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def script():
    """Load the bundled IVR script."""
    return load_script()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def voice():
    return RecordingVoiceAdapter()


@pytest.fixture
def initiator():
    return FakeInitiator()


@pytest.fixture
def session_manager(scheduler, voice, initiator, script):
    """Create an IvrSessionManager wired to fakes."""
    return IvrSessionManager(
        scheduler=scheduler,
        voice=voice,
        initiator=initiator,
        script=script,
    )


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def override_get_db(test_db):
    """Override get_db dependency with test database."""
    async def _override_get_db():
        yield test_db
    return _override_get_db


@pytest.fixture
async def api_client(override_get_db):
    """Async HTTP client bound to the app with test database and simulated telephony."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_telephony_provider] = SimulatedTelephonyProvider

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def session_client(session_manager):
    """FastAPI test client whose IVR session is wired to fakes."""
    app.state.ivr_session = session_manager

    client = TestClient(app)

    yield client

    app.state.ivr_session = None


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test"
    )
