"""Abstract base class for persisting the :class:`VersionState` record."""

from __future__ import annotations

from abc import ABC, abstractmethod

from emergency_kb.models.knowledge import VersionState


# Concrete implementation: SQLiteVersionStateStore (emergency_kb/providers/state/)
class IVersionStateStore(ABC):
    """Small durable key/value facility holding the bootstrap version record.

    Only :class:`~emergency_kb.services.version_manager.VersionManager`
    writes through this interface.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Create the backing table or file.  Safe to call repeatedly."""

    @abstractmethod
    def load(self) -> VersionState:
        """Return the stored state, or a fresh ``VersionState()`` if none exists."""

    @abstractmethod
    def save(self, state: VersionState) -> None:
        """Replace the stored state."""

    @abstractmethod
    def reset(self) -> None:
        """Remove the stored state so the next :meth:`load` returns the default."""
