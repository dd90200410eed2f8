"""Workspace-scoped AEC loading shared by the coordinator services."""

from aecflow.domain.exceptions import NotFound
from aecflow.domain.interfaces import AECRepositoryInterface
from aecflow.domain.models import AEC


async def load_for_workspace(
    repository: AECRepositoryInterface, aec_id: str, workspace_id: str
) -> AEC:
    """
    Load an AEC the caller's workspace owns.

    Raises:
        NotFound: If the AEC is absent or belongs to another workspace
    """
    aec = await repository.find_by_id(aec_id)
    if aec is None or aec.workspace_id != workspace_id:
        raise NotFound(aec_id)
    return aec
