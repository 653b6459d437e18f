from __future__ import annotations

from functools import lru_cache

from fragments_api.config import settings
from fragments_api.domain.strategies import IdentifierStrategy, IdentifierStrategyFactory
from fragments_api.services.conversion.converters import Converter, create_converter
from fragments_api.services.conversion.engines import EngineFactory
from fragments_api.services.fragments_app_service import FragmentsAppService
from fragments_api.storage.factory import get_storage
from fragments_api.storage.interface import ArtifactStorage

# Components below are process-wide: the converter owns the engine's loaded
# state and the lock guarding it, so every request must share one instance.


@lru_cache
def get_artifact_storage() -> ArtifactStorage:
    return get_storage()


@lru_cache
def get_identifier_strategy() -> IdentifierStrategy:
    return IdentifierStrategyFactory.get_strategy(settings.ID_STRATEGY)


@lru_cache
def get_converter() -> Converter:
    engine = EngineFactory.create(settings.ENGINE, fragment_size=settings.FRAGMENT_SIZE)
    return create_converter(engine, timeout=settings.ENGINE_TIMEOUT_SECONDS)


@lru_cache
def get_fragments_app_service() -> FragmentsAppService:
    return FragmentsAppService(
        storage=get_artifact_storage(),
        converter=get_converter(),
        identifiers=get_identifier_strategy(),
        prevent_overwrite=settings.PREVENT_ID_OVERWRITE,
        max_id_attempts=settings.ID_MAX_ATTEMPTS,
    )


def reset_dependencies() -> None:
    """Drop cached components so the next request rebuilds them from settings."""
    for factory in (get_fragments_app_service, get_converter, get_identifier_strategy, get_artifact_storage):
        factory.cache_clear()
