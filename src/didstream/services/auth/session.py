from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

__all__ = ["Session", "SessionState"]


@dataclass(frozen=True, slots=True)
class Session:
    token: str
    acquired_at: float
    generation: int


class SessionState:
    """Holder of the single live session token.

    Expiry is not tracked locally; the token stays current until the owner
    calls :meth:`invalidate` (after a 401) or replaces it with :meth:`set`.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._session: Session | None = None
        self._generation = 0

    @property
    def current(self) -> Session | None:
        return self._session

    @property
    def generation(self) -> int:
        return self._generation

    def set(self, token: str) -> Session:
        if not token:
            raise ValueError("session token must be a non-empty string")
        self._generation += 1
        self._session = Session(token=token, acquired_at=self._clock(), generation=self._generation)
        return self._session

    def get(self) -> str | None:
        return self._session.token if self._session is not None else None

    def invalidate(self) -> None:
        self._session = None
