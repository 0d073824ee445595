"""
Request-scoped logical clock.

Every time comparison in the present engine (campaign windows, claim and
receipt stamps) uses a single request time fixed by the outer request layer,
never the wall clock. The value lives in a ContextVar so concurrent asyncio
tasks each see their own request time.

Usage
-----
>>> with request_time_context(1_700_000_000):
...     current_request_time()
1700000000
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Optional

from src.core.exceptions import ClockUnavailableError

_request_time: ContextVar[Optional[int]] = ContextVar("request_time", default=None)


def current_request_time() -> int:
    """
    Return the request time bound to the current context.

    Raises:
        ClockUnavailableError: If no request time has been bound.
    """
    value = _request_time.get()
    if value is None:
        raise ClockUnavailableError()
    return value


class request_time_context:
    """Bind a request time (epoch seconds) for the duration of a block."""

    def __init__(self, request_at: int) -> None:
        if isinstance(request_at, bool) or not isinstance(request_at, int):
            raise ClockUnavailableError(f"invalid request time {request_at!r}")
        if request_at < 0:
            raise ClockUnavailableError(f"negative request time {request_at}")
        self.request_at = request_at
        self._token: Optional[Token[Optional[int]]] = None

    def __enter__(self) -> int:
        self._token = _request_time.set(self.request_at)
        return self.request_at

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _request_time.reset(self._token)
            self._token = None

    async def __aenter__(self) -> int:
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)
