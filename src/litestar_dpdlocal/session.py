"""GeoSession lifecycle: storage, freshness rules and refresh with retry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, tzinfo
from typing import TYPE_CHECKING

from litestar_dpdlocal.exceptions import DPDError, SessionAcquisitionError
from litestar_dpdlocal.retry import RetryPolicy

if TYPE_CHECKING:
    from litestar_dpdlocal.auth import Authenticator
    from litestar_dpdlocal.config import DPDCredentials
    from litestar_dpdlocal.protocols import SessionStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

SESSION_LIFETIME = timedelta(minutes=90)
STALE_AFTER = timedelta(hours=12)


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class Session:
    """A GeoSession token and the moment it stops being accepted."""

    token: str
    expires_at: datetime

    def issued_at(self, lifetime: timedelta = SESSION_LIFETIME) -> datetime:
        return self.expires_at - lifetime

    def __repr__(self) -> str:
        return f"Session(token='***', expires_at={self.expires_at!r})"


class InMemorySessionStore:
    """Process-local session store. Loses its state on restart."""

    def __init__(self) -> None:
        self._session: Session | None = None

    async def load(self) -> Session | None:
        return self._session

    async def save(self, session: Session) -> None:
        self._session = session

    async def clear(self) -> None:
        self._session = None


def _as_utc_if_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_session_valid(
    session: Session | None,
    now: datetime,
    lifetime: timedelta = SESSION_LIFETIME,
    day_timezone: tzinfo | None = None,
) -> bool:
    """Check hard expiry and the start-of-day refresh rule.

    A session whose expiry falls on the current calendar day but which was
    issued more than 12 hours ago is stale even before it expires. The
    calendar day is taken in ``day_timezone``, or in the timezone of ``now``
    when none is given. Naive datetimes are read as UTC.
    """
    if session is None or not session.token:
        return False

    now = _as_utc_if_naive(now)
    expires_at = _as_utc_if_naive(session.expires_at)

    if now >= expires_at:
        return False

    zone = day_timezone or now.tzinfo
    now = now.astimezone(zone)
    expires_at = expires_at.astimezone(zone)

    if expires_at.date() == now.date():
        issued_at = expires_at - lifetime
        if now - issued_at > STALE_AFTER:
            return False

    return True


class SessionManager:
    """Hands out a usable GeoSession token, refreshing it when needed.

    The store is the only shared state. Two callers refreshing at once both
    authenticate; the store keeps whichever session was saved last.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        store: SessionStore | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
        clock: Clock | None = None,
        day_timezone: tzinfo | None = None,
    ) -> None:
        self.authenticator = authenticator
        self.store = store if store is not None else InMemorySessionStore()
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=3, base_delay=2.0
        )
        self.clock = clock or authenticator.clock
        self.lifetime = authenticator.lifetime
        self.day_timezone = (
            day_timezone or authenticator.settings.day_timezone
        )

    async def get_valid_session(
        self,
        credentials: DPDCredentials,
        force_refresh: bool = False,
        *,
        max_attempts: int | None = None,
    ) -> str:
        """Return a usable token, authenticating if the cached one is not.

        ``max_attempts`` overrides the retry policy for this call only.
        """
        if force_refresh:
            await self.store.clear()
        else:
            stored = await self.store.load()
            if self._is_valid(stored):
                logger.debug("Using cached DPD session")
                return stored.token

        logger.info("Fetching new DPD session")
        policy = self.retry_policy
        if max_attempts is not None:
            policy = policy.with_max_attempts(max_attempts)
        session = await self._authenticate_with_retry(credentials, policy)
        await self.store.save(session)
        return session.token

    async def refresh(self, credentials: DPDCredentials) -> str:
        return await self.get_valid_session(credentials, force_refresh=True)

    async def clear(self) -> None:
        await self.store.clear()

    async def current_session(self) -> Session | None:
        """Return the stored session if it is still usable."""
        stored = await self.store.load()
        if self._is_valid(stored):
            return stored
        return None

    def _is_valid(self, session: Session | None) -> bool:
        return is_session_valid(
            session, self.clock(), self.lifetime, self.day_timezone
        )

    async def _authenticate_with_retry(
        self, credentials: DPDCredentials, policy: RetryPolicy
    ) -> Session:
        errors: list[Exception] = []

        for attempt in range(1, policy.max_attempts + 1):
            logger.debug(
                "DPD authentication attempt %d/%d",
                attempt,
                policy.max_attempts,
            )
            try:
                return await self.authenticator.authenticate(credentials)
            except DPDError as exc:
                errors.append(exc)
                logger.warning(
                    "DPD authentication attempt %d/%d failed: %s",
                    attempt,
                    policy.max_attempts,
                    exc,
                )
                if policy.should_retry(attempt):
                    delay = policy.delay_for(attempt)
                    logger.info("Retrying DPD authentication in %.1fs", delay)
                    await policy.sleep(delay)

        await self.store.clear()
        raise SessionAcquisitionError(
            attempts=policy.max_attempts,
            last_error=errors[-1] if errors else None,
            errors=errors,
        )
