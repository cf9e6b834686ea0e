"""Tests for the SQLAlchemy GeoSession store."""

from datetime import UTC, datetime, timedelta

from litestar_dpdlocal.contrib.sqlalchemy.session_store import (
    SQLAlchemySessionStore,
)
from litestar_dpdlocal.protocols import SessionStore
from litestar_dpdlocal.session import Session

EXPIRES = datetime(2026, 3, 10, 10, 30, tzinfo=UTC)


async def test_implements_protocol(async_session_factory):
    """SQLAlchemySessionStore satisfies SessionStore."""
    assert isinstance(
        SQLAlchemySessionStore(async_session_factory), SessionStore
    )


async def test_load_empty(async_session_factory):
    """Loading from an empty table returns None."""
    store = SQLAlchemySessionStore(async_session_factory)
    assert await store.load() is None


async def test_save_and_load(async_session_factory):
    """A saved session loads back unchanged."""
    store = SQLAlchemySessionStore(async_session_factory)

    await store.save(Session("tok-1", EXPIRES))
    loaded = await store.load()

    assert loaded == Session("tok-1", EXPIRES)


async def test_save_overwrites(async_session_factory):
    """Saving again replaces the stored session."""
    store = SQLAlchemySessionStore(async_session_factory)

    await store.save(Session("tok-1", EXPIRES))
    await store.save(Session("tok-2", EXPIRES + timedelta(hours=1)))

    loaded = await store.load()
    assert loaded.token == "tok-2"
    assert loaded.expires_at == EXPIRES + timedelta(hours=1)


async def test_clear(async_session_factory):
    """Clearing removes the stored session."""
    store = SQLAlchemySessionStore(async_session_factory)
    await store.save(Session("tok-1", EXPIRES))

    await store.clear()

    assert await store.load() is None


async def test_keys_are_isolated(async_session_factory):
    """Stores with different keys do not share sessions."""
    first = SQLAlchemySessionStore(async_session_factory, key="ACC1")
    second = SQLAlchemySessionStore(async_session_factory, key="ACC2")

    await first.save(Session("tok-1", EXPIRES))

    assert await second.load() is None
    await second.clear()
    assert (await first.load()).token == "tok-1"


async def test_drives_session_manager(
    async_session_factory, dpd_client, credentials
):
    """SessionManager caches tokens in the database."""
    store = SQLAlchemySessionStore(async_session_factory)
    dpd_client.sessions.store = store

    token = await dpd_client.get_session_token()

    assert token == "token-1"
    assert (await store.load()).token == "token-1"
    assert await dpd_client.get_session_token() == "token-1"
