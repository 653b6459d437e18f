import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from fragments_api.domain.errors import NotFoundError

BLOB_SUFFIX = ".frag"
SIDECAR_SUFFIX = ".json"
METADATA_ERROR = "Could not read metadata"

_ARTIFACT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def validate_artifact_id(artifact_id: str) -> str:
    """Reject identifiers that could address anything outside the store."""
    if not isinstance(artifact_id, str) or not _ARTIFACT_ID_PATTERN.match(artifact_id):
        raise NotFoundError(f"Fragments not found: {artifact_id}")
    return artifact_id


class ArtifactStorage(ABC):
    """
    Abstract interface for fragments storage. Supports both S3 and local filesystem.

    Every artifact is two independently addressable entries under one id: the
    raw blob (``{id}.frag``) and an optional JSON sidecar (``{id}.json``)
    holding ``{"metadata": ..., "timestamp": ...}``.
    """

    @abstractmethod
    def initialize(self, fail_fast: bool = True) -> None:
        """
        Ensure the durable location exists. Idempotent.

        Args:
            fail_fast: Raise PersistenceError on failure instead of logging it
        """
        pass

    @abstractmethod
    def save(self, artifact_id: str, data: bytes, metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Save artifact bytes and, if given, the metadata sidecar.

        Args:
            artifact_id: Identifier of the artifact
            data: Binary artifact payload
            metadata: Optional JSON-serializable mapping

        Returns:
            Storage location of the blob
        """
        pass

    @abstractmethod
    def load(self, artifact_id: str) -> Tuple[bytes, Optional[Dict[str, Any]]]:
        """
        Retrieve artifact bytes and metadata.

        Args:
            artifact_id: Identifier of the artifact

        Returns:
            Tuple of blob bytes and metadata (None if not recorded)
        """
        pass

    @abstractmethod
    def list_artifacts(self) -> List[Dict[str, Any]]:
        """
        Enumerate stored artifacts with whatever metadata is readable.

        Returns:
            One summary per id; unreadable sidecars are flagged, not omitted
        """
        pass

    @abstractmethod
    def exists(self, artifact_id: str) -> bool:
        """Return True if a blob is stored under the identifier."""
        pass

    @abstractmethod
    def get_storage_stats(self) -> Dict[str, Any]:
        """Return artifact count and total blob size."""
        pass
