"""
Persistence adapters for the AEC repository.
"""

from aecflow.infrastructure.persistence.filesystem import (
    FilesystemAECRepository,
    aec_from_dict,
    aec_to_dict,
)
from aecflow.infrastructure.persistence.memory import InMemoryAECRepository

__all__ = [
    "InMemoryAECRepository",
    "FilesystemAECRepository",
    "aec_from_dict",
    "aec_to_dict",
]
