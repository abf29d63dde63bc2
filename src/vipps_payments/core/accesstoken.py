"""
Access token handling.

The API authenticates every call with a short-lived bearer token obtained
from ``/accesstoken/get``. :class:`TokenCache` keeps the current token for a
client and replaces it before it gets close to expiring.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator, Mapping, Optional

from .errors import TransportError

__all__ = [
    "AccessToken",
    "DEFAULT_TOKEN_TTL_SECONDS",
    "TOKEN_SAFETY_MARGIN",
    "TokenCache",
    "is_usable",
    "utc_now",
]

# A token is replaced once less than this much of its lifetime remains.
TOKEN_SAFETY_MARGIN = timedelta(minutes=10)
DEFAULT_TOKEN_TTL_SECONDS = 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _expires_in_seconds(raw: Any) -> int:
    if isinstance(raw, bool):
        return DEFAULT_TOKEN_TTL_SECONDS
    try:
        return int(raw)
    except (TypeError, ValueError):
        return DEFAULT_TOKEN_TTL_SECONDS


@dataclass(frozen=True)
class AccessToken:
    token: str = field(repr=False)
    expires_at: datetime

    @classmethod
    def from_issuance(
        cls,
        payload: Any,
        *,
        now: Optional[datetime] = None,
    ) -> "AccessToken":
        """
        Build a token from the ``/accesstoken/get`` response body.

        ``expires_in`` is sent as a string; anything that does not parse as an
        integer falls back to :data:`DEFAULT_TOKEN_TTL_SECONDS`.
        """
        if not isinstance(payload, Mapping):
            raise TransportError("Access token response is not a JSON object")
        token = payload.get("access_token")
        if not isinstance(token, str) or not token:
            raise TransportError("Access token response has no access_token")

        issued_at = utc_now() if now is None else now
        expires_in = _expires_in_seconds(payload.get("expires_in"))
        return cls(token=token, expires_at=issued_at + timedelta(seconds=expires_in))

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        return is_usable(self, utc_now() if now is None else now)

    def bearer(self) -> str:
        return f"Bearer {self.token}"


def is_usable(token: AccessToken, now: datetime) -> bool:
    """True while more than :data:`TOKEN_SAFETY_MARGIN` remains before expiry."""
    return now + TOKEN_SAFETY_MARGIN < token.expires_at


class _ReadWriteLock:
    """
    Readers-writer lock that prefers writers.

    Any number of readers may hold the lock together. Once a writer is
    waiting, new readers queue behind it until it has finished.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._condition:
            while self._writer or self._writers_waiting:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._condition:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._condition.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._condition:
                self._writer = False
                self._condition.notify_all()


class TokenCache:
    """
    Holds the current access token of a single client.

    ``issue`` performs the token exchange and returns the decoded response
    body; it is only called when no usable token is cached. The refresh runs
    under the exclusive lock and re-checks the slot first, so callers that
    find the token stale at the same moment share one exchange.
    """

    def __init__(
        self,
        issue: Callable[[], Any],
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._issue = issue
        self._clock = clock
        self._lock = _ReadWriteLock()
        self._token: Optional[AccessToken] = None

    @property
    def current(self) -> Optional[AccessToken]:
        with self._lock.read():
            return self._token

    def _usable(self, token: Optional[AccessToken]) -> bool:
        return token is not None and is_usable(token, self._clock())

    def get_valid_credential(self) -> AccessToken:
        with self._lock.read():
            token = self._token
        if self._usable(token):
            logging.debug("Reusing cached access token")
            return token

        with self._lock.write():
            token = self._token
            if self._usable(token):
                logging.debug("Access token was refreshed by another caller")
                return token

            logging.debug("Requesting a new access token")
            payload = self._issue()
            fresh = AccessToken.from_issuance(payload, now=self._clock())
            self._token = fresh

        logging.debug("Got new access token expiring at %s", fresh.expires_at.isoformat())
        return fresh

    def invalidate(self) -> None:
        with self._lock.write():
            self._token = None
