"""
Global pytest configuration and shared fixtures.

Provides common test infrastructure for all test suites including:
- A throwaway SQLite database for the API
- Sheet factories for each role
- Scripted generator / recording submitter stubs for the extractor
"""

import os
import sys
import tempfile
import uuid
from pathlib import Path

import pytest

# Add backend to path
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

# Point the app at a scratch database before anything imports spirit_tower.db
_db_dir = tempfile.mkdtemp(prefix="spirit_tower_tests_")
os.environ.setdefault(
    "SPIRIT_TOWER_DATABASE_URL", f"sqlite+aiosqlite:///{Path(_db_dir) / 'test.db'}"
)

from spirit_tower.engine.extractor import (  # noqa: E402
    NO_SPIRIT,
    Ability,
    CandidateSheet,
    Rank,
    Role,
    Spirit,
    SpiritKind,
    SubmissionError,
)
from spirit_tower.models import Base  # noqa: E402

# ============================================================================
# Extractor Stubs
# ============================================================================


class ScriptedGenerator:
    """Generator stand-in that returns a fixed sequence of sheets."""

    def __init__(self, sheets):
        self._sheets = iter(sheets)
        self.draws = 0

    def draw(self) -> CandidateSheet:
        self.draws += 1
        return next(self._sheets)


class RecordingSubmitter:
    """Submitter stand-in that records calls and fails on request."""

    def __init__(self, failures=()):
        self.calls: list[tuple[str, CandidateSheet]] = []
        self.failures = list(failures)
        self.phases_seen = []
        self.extractor = None

    async def create_character(self, name: str, sheet: CandidateSheet) -> None:
        self.calls.append((name, sheet))
        if self.extractor is not None:
            self.phases_seen.append(self.extractor.phase)
        if self.failures:
            raise SubmissionError(self.failures.pop(0))


def make_sheet(role: Role = Role.SENTINEL, **overrides) -> CandidateSheet:
    """Build a sheet that respects the role rules, with optional overrides."""
    defaults = {
        "role": role,
        "mental_rank": Rank.NONE if role is Role.CIVILIAN else Rank.B,
        "physical_rank": Rank.NONE if role is Role.GHOST else Rank.A,
        "gold": 1200,
        "ability": Ability.ELEMENTAL,
        "spirit": (
            Spirit(name="Snow Leopard", kind=SpiritKind.ANIMAL)
            if role in (Role.SENTINEL, Role.GUIDE)
            else NO_SPIRIT
        ),
    }
    defaults.update(overrides)
    return CandidateSheet(**defaults)


@pytest.fixture
def sheet_factory():
    """Factory for CandidateSheet instances."""
    return make_sheet


@pytest.fixture
def scripted_generator():
    """Factory for ScriptedGenerator instances."""
    return ScriptedGenerator


@pytest.fixture
def submitter() -> RecordingSubmitter:
    return RecordingSubmitter()


@pytest.fixture
def failing_submitter() -> RecordingSubmitter:
    """Fails the first submission, succeeds afterwards."""
    return RecordingSubmitter(failures=["Database is locked"])


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_tables():
    """Create tables on the app engine for tests that bypass the lifespan."""
    from spirit_tower.db import engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


# ============================================================================
# Utility Fixtures
# ============================================================================


@pytest.fixture
def unique_name() -> str:
    """Player name that no other test uses (the test database is shared)."""
    return f"tester_{uuid.uuid4().hex[:8]}"
