"""Protocol definitions for inkpress.

The page renderer depends on these small interfaces rather than on concrete
classes, so a different template engine or cache backend can be plugged in
(and tests can pass in lightweight fakes).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TemplateExpander(Protocol):
    """Expands named theme templates against a context."""

    @abstractmethod
    def is_blank(self, name: str) -> bool:
        """Return True if the template is missing or empty."""
        ...

    @abstractmethod
    def expand(self, name: str, context: dict[str, Any]) -> str:
        """Render template ``name`` with ``context``.

        Raises:
            Exception: Any template lookup or rendering error.
        """
        ...


@runtime_checkable
class KeyValueCache(Protocol):
    """String key/value store used to memoize downloads."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value."""
        ...
