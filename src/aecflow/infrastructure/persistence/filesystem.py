"""
Filesystem implementation of the AEC repository.

Stores one JSON document per AEC and replaces it atomically on save.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

from aecflow.domain.exceptions import VersionConflict
from aecflow.domain.interfaces import AECRepositoryInterface
from aecflow.domain.models import (
    AEC,
    AECStatus,
    GenerationState,
    GenerationStep,
    StepStatus,
    SuspensionKind,
)


def aec_to_dict(aec: AEC) -> dict[str, Any]:
    """Serialize an AEC to a JSON-compatible dict."""
    return {
        "id": aec.id,
        "workspace_id": aec.workspace_id,
        "title": aec.title,
        "description": aec.description,
        "status": aec.status.value,
        "locked_by": aec.locked_by,
        "locked_at": aec.locked_at,
        "generation_state": {
            "current_step": aec.generation_state.current_step,
            "steps": [
                {
                    "id": step.id,
                    "key": step.key,
                    "title": step.title,
                    "status": step.status.value,
                    "details": step.details,
                    "error": step.error,
                    "suspension": step.suspension.value if step.suspension else None,
                }
                for step in aec.generation_state.steps
            ],
        },
        "question_answers": dict(aec.question_answers),
        "findings": list(aec.findings),
        "questions": list(aec.questions),
        "failure_reason": aec.failure_reason,
        "created_at": aec.created_at,
        "last_transitioned_at": aec.last_transitioned_at,
        "updated_at": aec.updated_at,
        "version": aec.version,
    }


def aec_from_dict(data: dict[str, Any]) -> AEC:
    """Deserialize an AEC from a JSON dict."""
    state_data = data.get("generation_state") or {}
    steps = tuple(
        GenerationStep(
            id=s["id"],
            key=s["key"],
            title=s["title"],
            status=StepStatus(s["status"]),
            details=s.get("details"),
            error=s.get("error"),
            suspension=SuspensionKind(s["suspension"]) if s.get("suspension") else None,
        )
        for s in state_data.get("steps", [])
    )
    return AEC(
        id=data["id"],
        workspace_id=data["workspace_id"],
        title=data["title"],
        description=data.get("description"),
        status=AECStatus(data["status"]),
        locked_by=data.get("locked_by"),
        locked_at=data.get("locked_at"),
        generation_state=GenerationState(
            current_step=state_data.get("current_step", 0), steps=steps
        ),
        question_answers=dict(data.get("question_answers", {})),
        findings=list(data.get("findings", [])),
        questions=list(data.get("questions", [])),
        failure_reason=data.get("failure_reason"),
        created_at=data["created_at"],
        last_transitioned_at=data.get("last_transitioned_at", data["created_at"]),
        updated_at=data.get("updated_at", data["created_at"]),
        version=data.get("version", 0),
    )


class FilesystemAECRepository(AECRepositoryInterface):
    """
    Persistent AEC store.

    Directory structure:
    {base_dir}/
        aecs/
            {prefix}/{aec_id}.json

    The read-compare-write in save() is serialized per repository instance;
    cross-process writers are detected by the version check only.
    """

    def __init__(self, base_dir: str | Path):
        self._base_dir = Path(base_dir)
        self._aecs_dir = self._base_dir / "aecs"
        self._aecs_dir.mkdir(parents=True, exist_ok=True)
        self._write_lock = asyncio.Lock()

    def _get_aec_path(self, aec_id: str) -> Path:
        """Get filesystem path for an AEC (using prefix directories)."""
        prefix = aec_id.removeprefix("aec_")[:2]
        return self._aecs_dir / prefix / f"{aec_id}.json"

    def _read(self, aec_id: str) -> AEC | None:
        path = self._get_aec_path(aec_id)
        if not path.exists():
            return None
        with open(path) as f:
            return aec_from_dict(json.load(f))

    def _write_atomic(self, aec: AEC) -> None:
        """Write to a temp file, then rename over the document."""
        path = self._get_aec_path(aec.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "w") as f:
            json.dump(aec_to_dict(aec), f, indent=2)
        temp_path.replace(path)

    async def find_by_id(self, aec_id: str) -> AEC | None:
        return self._read(aec_id)

    async def save(self, aec: AEC) -> None:
        async with self._write_lock:
            stored = self._read(aec.id)
            current_version = stored.version if stored is not None else 0
            if aec.version != current_version:
                raise VersionConflict(aec.id, aec.version, current_version)
            aec.version = current_version + 1
            try:
                self._write_atomic(aec)
            except BaseException:
                aec.version = current_version
                raise

    def list_ids(self) -> list[str]:
        """All stored AEC ids, sorted."""
        return sorted(p.stem for p in self._aecs_dir.glob("*/*.json"))
