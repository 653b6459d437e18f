"""Conversion service component package."""
from .cache_slot import ConversionCache
from .converters import CachedResultConverter, Converter, DirectResultConverter, create_converter
from .engines import EngineFactory, FragmentGroupsEngine, GzipFragmentsEngine

__all__ = [
    "ConversionCache",
    "Converter",
    "CachedResultConverter",
    "DirectResultConverter",
    "create_converter",
    "EngineFactory",
    "FragmentGroupsEngine",
    "GzipFragmentsEngine",
]
