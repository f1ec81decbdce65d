"""Shared pytest fixtures for the AuraNotes test suite.

Provides mock LLM / curator providers, an in-memory SQLite database, and a
memory-only note orchestrator wired to a relayed speech source.
"""

from unittest.mock import AsyncMock

import pytest

# ---------------------------------------------------------------------------
# LLM / curation fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm():
    """Create a mock LLM provider for unit testing.

    Returns:
        AsyncMock: A mock implementing the BaseLLM interface whose
        ``generate`` returns a short Markdown note.
    """
    from auranotes.services.llm.base import BaseLLM

    llm = AsyncMock(spec=BaseLLM)
    llm.generate.return_value = "- 📝 Curated note"
    return llm


@pytest.fixture
def mock_curator():
    """Create a mock curator returning fixed curated / refined content."""
    from auranotes.services.curation.base import BaseCurator

    curator = AsyncMock(spec=BaseCurator)
    curator.curate.return_value = "# Curated"
    curator.refine.return_value = "# Refined"
    return curator


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from auranotes.services.storage.database import Base, init_db

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    await init_db(engine)
    assert "notes" in Base.metadata.tables
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def repository(db_session):
    """NoteRepository bound to the in-memory test session."""
    from auranotes.services.storage.repository import NoteRepository

    return NoteRepository(db_session)


@pytest.fixture
def use_test_engine(db_engine):
    """Route ``get_session()`` to the in-memory engine for the test's duration."""
    from auranotes.services.storage import database

    database._engine = db_engine
    database._session_factory = None  # force re-creation from new engine
    yield db_engine
    database.reset_engine()


# ---------------------------------------------------------------------------
# Orchestrator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def orchestrator(mock_curator, mock_llm):
    """Memory-only orchestrator with a long tick interval (ticks are driven by hand)."""
    from auranotes.services.capture import RelayedSpeechSource
    from auranotes.services.curation import ArtifactGenerator
    from auranotes.services.documents import DocumentState
    from auranotes.services.orchestrator import NoteOrchestrator

    orch = NoteOrchestrator(
        documents=DocumentState(),
        curator=mock_curator,
        source=RelayedSpeechSource(),
        artifacts=ArtifactGenerator(mock_llm),
        interval=3600,
        min_new_chars=20,
        timeout=5,
    )
    yield orch
    await orch.shutdown()
