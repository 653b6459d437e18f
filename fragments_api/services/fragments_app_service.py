from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fragments_api.domain.entities import ConversionResult, FragmentsMetadata, FragmentsRecord
from fragments_api.domain.errors import (
    ConflictError,
    ConversionFailedError,
    NoArtifactProducedError,
    PersistenceError,
    ValidationError,
)
from fragments_api.domain.events import event_publisher, FragmentsRejected, FragmentsStored
from fragments_api.domain.strategies import IdentifierStrategy
from fragments_api.services.conversion.converters import Converter
from fragments_api.storage.interface import ArtifactStorage

logger = logging.getLogger(__name__)


class FragmentsAppService:
    """Application service orchestrating conversion and artifact persistence.

    Depends on the storage abstraction, a converter selected for the engine
    at construction time and the deployment's identifier strategy.
    """

    def __init__(
        self,
        storage: ArtifactStorage,
        converter: Converter,
        identifiers: IdentifierStrategy,
        prevent_overwrite: bool = False,
        max_id_attempts: int = 5,
    ) -> None:
        self._storage = storage
        self._converter = converter
        self._identifiers = identifiers
        self._prevent_overwrite = prevent_overwrite
        self._max_id_attempts = max(1, max_id_attempts)

    def _reject(self, original_filename: str | None, reason: str) -> None:
        event_publisher.publish(FragmentsRejected(
            event_id="",
            timestamp=None,
            aggregate_id="",
            original_filename=original_filename,
            reason=reason,
        ))

    def _new_id(self) -> str:
        if not self._prevent_overwrite:
            return self._identifiers.generate()
        for _ in range(self._max_id_attempts):
            artifact_id = self._identifiers.generate()
            if not self._storage.exists(artifact_id):
                return artifact_id
            logger.warning(f"Identifier collision on {artifact_id}; generating another")
        raise ConflictError("Could not generate an unused fragments identifier")

    @staticmethod
    def _build_metadata(
        result: ConversionResult, file_size: int, original_filename: str | None
    ) -> FragmentsMetadata:
        return FragmentsMetadata(
            original_filename=original_filename,
            uploaded_at=datetime.now(timezone.utc).isoformat(),
            file_size=file_size,
            data_size=len(result.data),
            fragments_count=result.fragments_count,
            bounding_box=result.bounding_box.to_dict() if result.bounding_box else None,
        )

    def process(self, data: bytes | None, original_filename: str | None = None) -> FragmentsRecord:
        if not data:
            raise ValidationError("No file provided")

        try:
            result = self._converter.convert(data)
        except ConversionFailedError as exc:
            logger.error(f"Error converting {original_filename or 'upload'}: {exc}", exc_info=exc.__cause__)
            self._reject(original_filename, "conversion failed")
            raise

        if result is None:
            self._reject(original_filename, "no fragments produced")
            raise NoArtifactProducedError("No fragments were produced from the uploaded file")

        artifact_id = self._new_id()
        metadata = self._build_metadata(result, len(data), original_filename)
        try:
            self._storage.save(artifact_id, result.data, dict(metadata))
        except PersistenceError as exc:
            logger.error(f"Error saving fragments {artifact_id}: {exc}", exc_info=exc.__cause__)
            self._reject(original_filename, "persistence failed")
            raise

        # Publish domain event
        event_publisher.publish(FragmentsStored(
            event_id="",
            timestamp=None,
            aggregate_id=artifact_id,
            original_filename=original_filename,
            file_size=len(data),
            data_size=len(result.data),
            fragments_count=result.fragments_count,
        ))

        return FragmentsRecord(id=artifact_id, data=result.data, metadata=dict(metadata))

    def get_fragments(self, artifact_id: str) -> FragmentsRecord:
        data, metadata = self._storage.load(artifact_id)
        return FragmentsRecord(id=artifact_id, data=data, metadata=metadata)

    def list_fragments(self) -> Dict[str, Any]:
        return {
            "fragments": self._storage.list_artifacts(),
            "cache": self._converter.snapshot(),
        }
