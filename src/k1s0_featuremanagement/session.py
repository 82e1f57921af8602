"""Session manager abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod


class SessionManager(ABC):
    """Stores feature state across a session.

    The implementor decides what constitutes a session.
    """

    @abstractmethod
    async def get(self, feature_name: str) -> bool | None:
        """Return the session's state for the feature, or None if absent."""
        ...

    @abstractmethod
    async def set(self, feature_name: str, enabled: bool) -> None:
        ...


class InMemorySessionManager(SessionManager):
    """In-memory session manager for testing."""

    def __init__(self) -> None:
        self._states: dict[str, bool] = {}

    async def get(self, feature_name: str) -> bool | None:
        return self._states.get(feature_name.casefold())

    async def set(self, feature_name: str, enabled: bool) -> None:
        self._states[feature_name.casefold()] = enabled

    def clear(self) -> None:
        self._states.clear()
