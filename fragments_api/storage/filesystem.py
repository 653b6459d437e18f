import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fragments_api.domain.errors import NotFoundError, PersistenceError
from fragments_api.storage.interface import (
    BLOB_SUFFIX,
    METADATA_ERROR,
    SIDECAR_SUFFIX,
    ArtifactStorage,
    validate_artifact_id,
)

logger = logging.getLogger(__name__)


def build_sidecar(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap metadata in the sidecar envelope tagged with the write time."""
    return {"metadata": metadata, "timestamp": datetime.now(timezone.utc).isoformat()}


def parse_sidecar(raw: Any) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Split a decoded sidecar into metadata and write timestamp.

    Flat sidecars (metadata merged with upload fields, no envelope) are read
    as metadata without a timestamp.
    """
    if not isinstance(raw, dict):
        raise ValueError("Sidecar is not a JSON object")
    if "metadata" in raw and isinstance(raw["metadata"], dict):
        timestamp = raw.get("timestamp")
        return raw["metadata"], timestamp if isinstance(timestamp, str) else None
    return raw, None


class FilesystemArtifactStorage(ArtifactStorage):
    """
    Implements fragments storage using the local filesystem.
    """

    def __init__(self, base_dir: str = None):
        """
        Initialize filesystem storage.

        Args:
            base_dir: Directory holding ``{id}.frag`` and ``{id}.json`` files.
                      If None, uses 'fragments' in the current working directory.
        """
        if base_dir is None:
            base_dir = os.path.join(os.getcwd(), "fragments")

        self.base_dir = Path(base_dir)

    def blob_path(self, artifact_id: str) -> Path:
        return self.base_dir / f"{validate_artifact_id(artifact_id)}{BLOB_SUFFIX}"

    def sidecar_path(self, artifact_id: str) -> Path:
        return self.base_dir / f"{validate_artifact_id(artifact_id)}{SIDECAR_SUFFIX}"

    def initialize(self, fail_fast: bool = True) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            if fail_fast:
                raise PersistenceError(f"Could not create storage directory {self.base_dir}") from exc
            logger.error(f"Error creating storage directory {self.base_dir}: {exc}")

    def _write_atomic(self, target: Path, payload: bytes) -> None:
        handle = tempfile.NamedTemporaryFile(dir=self.base_dir, prefix=".", suffix=".tmp", delete=False)
        try:
            with handle:
                handle.write(payload)
            os.replace(handle.name, target)
        except BaseException:
            Path(handle.name).unlink(missing_ok=True)
            raise

    def save(self, artifact_id: str, data: bytes, metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Save fragments to the filesystem.

        Blob and sidecar are each replaced atomically. A failed sidecar write
        removes the blob again so no half-saved artifact is left behind.

        Returns:
            Path of the blob file
        """
        blob_path = self.blob_path(artifact_id)
        sidecar_path = self.sidecar_path(artifact_id)

        try:
            self._write_atomic(blob_path, bytes(data))
        except OSError as exc:
            raise PersistenceError(f"Could not write fragments {artifact_id}") from exc

        try:
            if metadata is None:
                sidecar_path.unlink(missing_ok=True)
            else:
                payload = json.dumps(build_sidecar(metadata), indent=2).encode("utf-8")
                self._write_atomic(sidecar_path, payload)
        except (OSError, TypeError, ValueError) as exc:
            blob_path.unlink(missing_ok=True)
            raise PersistenceError(f"Could not write metadata for fragments {artifact_id}") from exc

        logger.info(f"Fragments saved: {artifact_id}")
        return str(blob_path)

    def _read_sidecar(self, artifact_id: str) -> Tuple[Dict[str, Any], Optional[str]] | None:
        sidecar_path = self.sidecar_path(artifact_id)
        if not sidecar_path.exists():
            return None
        with sidecar_path.open("r", encoding="utf-8") as handle:
            return parse_sidecar(json.load(handle))

    def load(self, artifact_id: str) -> Tuple[bytes, Optional[Dict[str, Any]]]:
        """
        Retrieve fragments and metadata from the filesystem.

        A missing or unreadable sidecar degrades to ``None`` metadata.
        """
        blob_path = self.blob_path(artifact_id)
        try:
            data = blob_path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"Fragments not found: {artifact_id}") from exc

        try:
            sidecar = self._read_sidecar(artifact_id)
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not read metadata for fragments {artifact_id}: {exc}")
            sidecar = None

        return data, sidecar[0] if sidecar else None

    def _discover_ids(self) -> List[str]:
        ids = set()
        for path in self.base_dir.iterdir():
            if path.name.startswith("."):
                continue
            for suffix in (BLOB_SUFFIX, SIDECAR_SUFFIX):
                if path.name.endswith(suffix):
                    ids.add(path.name[: -len(suffix)])
        return sorted(ids)

    def list_artifacts(self) -> List[Dict[str, Any]]:
        if not self.base_dir.exists():
            return []

        entries = []
        for artifact_id in self._discover_ids():
            try:
                validate_artifact_id(artifact_id)
            except NotFoundError:
                continue
            entry: Dict[str, Any] = {
                "id": artifact_id,
                "metadata": None,
                "saved_at": None,
                "has_data": self.blob_path(artifact_id).exists(),
            }
            try:
                sidecar = self._read_sidecar(artifact_id)
            except (OSError, ValueError):
                entry["error"] = METADATA_ERROR
            else:
                if sidecar:
                    entry["metadata"], entry["saved_at"] = sidecar
            entries.append(entry)
        return entries

    def exists(self, artifact_id: str) -> bool:
        return self.blob_path(artifact_id).exists()

    def get_storage_stats(self) -> Dict[str, Any]:
        blobs = list(self.base_dir.glob(f"*{BLOB_SUFFIX}")) if self.base_dir.exists() else []
        return {
            "storage_type": "filesystem",
            "location": str(self.base_dir),
            "total_fragments": len(blobs),
            "total_size_bytes": sum(path.stat().st_size for path in blobs),
        }
