from __future__ import annotations

import logging
from typing import Any, Dict

from fragments_api.domain.entities import ConversionResult
from fragments_api.services.conversion.engines import GroupLoadingEngine

logger = logging.getLogger(__name__)


class ConversionCache:
    """Single-slot view over the groups a group-loading engine currently holds.

    Only the first group is ever read; exporting clears the whole collection
    so no group survives into the next upload. Callers serialize access.
    """

    def __init__(self, engine: GroupLoadingEngine) -> None:
        self._engine = engine

    def is_empty(self) -> bool:
        return not self._engine.groups

    def first_group(self) -> Any | None:
        if self.is_empty():
            return None
        return next(iter(self._engine.groups.values()))

    def export_and_clear(self) -> ConversionResult | None:
        group = self.first_group()
        if group is None:
            return None

        extra = len(self._engine.groups) - 1
        if extra:
            logger.warning(f"Discarding {extra} additional loaded group(s) after export")

        try:
            data = self._engine.export(group)
            fragments = getattr(group, "fragments", None)
            return ConversionResult(
                data=bytes(data) if data else b"",
                fragments_count=len(fragments) if fragments is not None else None,
                bounding_box=getattr(group, "bounding_box", None),
            )
        finally:
            self.clear()

    def clear(self) -> None:
        self._engine.groups.clear()

    def snapshot(self) -> Dict[str, Any]:
        return {"loaded_groups": len(self._engine.groups)}
