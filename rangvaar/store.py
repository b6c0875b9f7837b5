"""Versioned match storage used by the service layer."""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import Dict, Protocol

from .errors import MatchNotFound, VersionConflict
from .state import MatchState


@dataclass(frozen=True)
class VersionedMatch:
    version: int
    state: MatchState


class MatchStore(Protocol):
    """Host-owned storage with an atomic conditional write."""

    def create(self, match_id: str, state: MatchState) -> int:
        ...

    def load(self, match_id: str) -> VersionedMatch:
        ...

    def commit(self, match_id: str, expected_version: int, state: MatchState) -> int:
        """Write ``state`` if the stored version still equals ``expected_version``.

        Returns the new version, or raises VersionConflict.
        """
        ...


class InMemoryMatchStore:
    """Lock-protected store keeping private copies of every state."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._matches: Dict[str, VersionedMatch] = {}

    def create(self, match_id: str, state: MatchState) -> int:
        with self._lock:
            if match_id in self._matches:
                raise VersionConflict(f"Match {match_id!r} already exists.")
            self._matches[match_id] = VersionedMatch(version=1, state=copy.deepcopy(state))
            return 1

    def load(self, match_id: str) -> VersionedMatch:
        with self._lock:
            stored = self._matches.get(match_id)
            if stored is None:
                raise MatchNotFound(f"Match {match_id!r} not found.")
            return VersionedMatch(version=stored.version, state=copy.deepcopy(stored.state))

    def commit(self, match_id: str, expected_version: int, state: MatchState) -> int:
        with self._lock:
            stored = self._matches.get(match_id)
            if stored is None:
                raise MatchNotFound(f"Match {match_id!r} not found.")
            if stored.version != expected_version:
                raise VersionConflict(
                    f"Match {match_id!r} is at version {stored.version}, not {expected_version}."
                )
            version = stored.version + 1
            self._matches[match_id] = VersionedMatch(version=version, state=copy.deepcopy(state))
            return version
