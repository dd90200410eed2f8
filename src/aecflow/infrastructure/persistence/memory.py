"""
In-memory implementation of the AEC repository.

Useful for testing and single-process deployments.
"""

import copy

from aecflow.domain.exceptions import VersionConflict
from aecflow.domain.interfaces import AECRepositoryInterface
from aecflow.domain.models import AEC


class InMemoryAECRepository(AECRepositoryInterface):
    """Dict-backed store with per-document version checks."""

    def __init__(self) -> None:
        self._aecs: dict[str, AEC] = {}

    async def find_by_id(self, aec_id: str) -> AEC | None:
        stored = self._aecs.get(aec_id)
        return copy.deepcopy(stored) if stored is not None else None

    async def save(self, aec: AEC) -> None:
        stored = self._aecs.get(aec.id)
        current_version = stored.version if stored is not None else 0
        if aec.version != current_version:
            raise VersionConflict(aec.id, aec.version, current_version)
        aec.version = current_version + 1
        self._aecs[aec.id] = copy.deepcopy(aec)

    def __len__(self) -> int:
        return len(self._aecs)
