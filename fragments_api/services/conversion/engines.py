"""Conversion engine shapes, reference engines and the engine factory."""
from __future__ import annotations

import gzip
import importlib
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Protocol
from uuid import uuid4

from fragments_api.domain.entities import BoundingBox
from fragments_api.domain.errors import ValidationError

DEFAULT_FRAGMENT_SIZE = 64 * 1024


class DirectEngine(Protocol):
    """Engine returning the artifact bytes straight from the model bytes."""

    def convert(self, data: bytes) -> bytes | None:
        ...


class GroupLoadingEngine(Protocol):
    """Engine that loads models into a shared collection and exports on demand."""

    groups: MutableMapping[str, Any]

    def load(self, data: bytes) -> None:
        ...

    def export(self, group: Any) -> bytes:
        ...


def is_group_loading(engine: Any) -> bool:
    return (
        hasattr(engine, "groups")
        and callable(getattr(engine, "load", None))
        and callable(getattr(engine, "export", None))
    )


def is_direct(engine: Any) -> bool:
    return callable(getattr(engine, "convert", None))


class GzipFragmentsEngine:
    """Reference direct engine: the artifact is the gzip stream of the model."""

    def __init__(self, compresslevel: int = 9) -> None:
        self.compresslevel = compresslevel

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> GzipFragmentsEngine:
        return cls()

    def convert(self, data: bytes) -> bytes:
        return gzip.compress(data, compresslevel=self.compresslevel)


@dataclass
class LoadedGroup:
    uuid: str
    fragments: List[bytes] = field(default_factory=list)
    bounding_box: Optional[BoundingBox] = None


class FragmentGroupsEngine:
    """Reference group-loading engine.

    Every ``load`` splits the model into fixed-size fragments and adds one
    group to ``groups``; nothing is removed until the caller clears it.
    """

    def __init__(self, fragment_size: int = DEFAULT_FRAGMENT_SIZE) -> None:
        if fragment_size <= 0:
            raise ValueError("fragment_size must be positive")
        self.fragment_size = fragment_size
        self.groups: Dict[str, LoadedGroup] = {}

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> FragmentGroupsEngine:
        return cls(fragment_size=options.get("fragment_size", DEFAULT_FRAGMENT_SIZE))

    def load(self, data: bytes) -> None:
        size = self.fragment_size
        group = LoadedGroup(
            uuid=str(uuid4()),
            fragments=[data[i:i + size] for i in range(0, len(data), size)],
        )
        self.groups[group.uuid] = group

    def export(self, group: LoadedGroup) -> bytes:
        return zlib.compress(b"".join(group.fragments))


class EngineFactory:
    """Factory resolving the configured engine by builtin name or dotted path."""

    _engines = {
        "gzip": GzipFragmentsEngine,
        "direct": GzipFragmentsEngine,
        "groups": FragmentGroupsEngine,
        "fragments": FragmentGroupsEngine,
    }

    @classmethod
    def create(cls, spec: str, **options: Any) -> Any:
        """
        Build an engine.

        Args:
            spec: Builtin name or ``package.module:attribute``; a callable
                  attribute is called without arguments
            options: Builtin engine options (e.g. ``fragment_size``)
        """
        spec = spec.strip()
        if ":" in spec:
            module_name, _, attribute = spec.partition(":")
            try:
                target = getattr(importlib.import_module(module_name), attribute)
            except (ImportError, AttributeError) as exc:
                raise ValidationError(f"Cannot load conversion engine: {spec}") from exc
            engine = target() if callable(target) else target
        else:
            engine_class = cls._engines.get(spec.lower())
            if engine_class is None:
                raise ValidationError(f"Unknown conversion engine: {spec}")
            engine = engine_class.from_options(options)

        if not (is_group_loading(engine) or is_direct(engine)):
            raise ValidationError(f"Object from {spec} is not a conversion engine")
        return engine
