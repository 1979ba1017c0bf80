"""Subscription handles shared by the auth and change-feed listeners."""

from __future__ import annotations

from typing import Callable, Optional


class Subscription:
    """Handle returned by ``subscribe``; releasing it more than once is a no-op."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Optional[Callable[[], None]] = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()


__all__ = ["Subscription"]
