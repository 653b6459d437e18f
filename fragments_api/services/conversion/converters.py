"""Uniform conversion interface over direct and group-loading engines."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Dict, Protocol

from fragments_api.domain.entities import ConversionResult
from fragments_api.domain.errors import ConversionFailedError, ValidationError
from fragments_api.services.conversion.cache_slot import ConversionCache
from fragments_api.services.conversion.engines import (
    DirectEngine,
    GroupLoadingEngine,
    is_direct,
    is_group_loading,
)

logger = logging.getLogger(__name__)


class Converter(Protocol):
    """Protocol shared by both converter variants."""

    mode: str

    def convert(self, data: bytes) -> ConversionResult | None:
        """Return the conversion result, or None when nothing was produced."""
        ...

    def snapshot(self) -> Dict[str, Any]:
        ...

    def close(self) -> None:
        ...


def _normalize_timeout(timeout: float | None) -> float | None:
    if timeout is None or timeout <= 0:
        return None
    return timeout


class DirectResultConverter:
    """Runs a direct engine; engine output is the artifact."""

    mode = "direct"

    def __init__(self, engine: DirectEngine, timeout: float | None = None) -> None:
        self._engine = engine
        self._timeout = _normalize_timeout(timeout)
        self._executor = ThreadPoolExecutor(thread_name_prefix="conversion")

    def convert(self, data: bytes) -> ConversionResult | None:
        future = self._executor.submit(self._engine.convert, data)
        try:
            output = future.result(timeout=self._timeout)
        except FuturesTimeoutError as exc:
            # the engine call cannot be interrupted; it runs to completion in the pool
            raise ConversionFailedError(f"Conversion timed out after {self._timeout}s") from exc
        except Exception as exc:
            raise ConversionFailedError(f"Conversion engine failed: {exc}") from exc

        if isinstance(output, ConversionResult):
            return output if output.data else None
        if not output:
            return None
        return ConversionResult(data=bytes(output))

    def snapshot(self) -> Dict[str, Any]:
        return {"mode": self.mode}

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class CachedResultConverter:
    """Runs a group-loading engine through a ConversionCache.

    The lock spans draining stale state, loading and export-and-clear, so
    at most one conversion touches the engine's collection at a time. When
    the engine overruns the timeout the lock stays held until the engine
    call returns and its output has been discarded.
    """

    mode = "cached"

    def __init__(self, engine: GroupLoadingEngine, timeout: float | None = None) -> None:
        self._engine = engine
        self._cache = ConversionCache(engine)
        self._timeout = _normalize_timeout(timeout)
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="conversion")

    @property
    def cache(self) -> ConversionCache:
        return self._cache

    def _drain_and_release(self, future: Future) -> None:
        try:
            logger.warning("Timed out conversion finished; discarding its loaded groups")
            self._cache.clear()
        except Exception:
            logger.exception("Failed to drain conversion cache after timeout")
        finally:
            self._lock.release()

    def convert(self, data: bytes) -> ConversionResult | None:
        if not self._lock.acquire(timeout=self._timeout or -1):
            raise ConversionFailedError("Conversion engine busy")
        handed_off = False
        try:
            if not self._cache.is_empty():
                logger.warning("Conversion cache not empty before load; clearing stale groups")
                self._cache.clear()

            future = self._executor.submit(self._engine.load, data)
            try:
                future.result(timeout=self._timeout)
            except FuturesTimeoutError as exc:
                handed_off = True
                future.add_done_callback(self._drain_and_release)
                raise ConversionFailedError(f"Conversion timed out after {self._timeout}s") from exc
            except Exception as exc:
                self._cache.clear()
                raise ConversionFailedError(f"Conversion engine failed: {exc}") from exc

            try:
                result = self._cache.export_and_clear()
            except Exception as exc:
                raise ConversionFailedError(f"Fragments export failed: {exc}") from exc

            if result is None or not result.data:
                return None
            return result
        finally:
            if not handed_off:
                self._lock.release()

    def snapshot(self) -> Dict[str, Any]:
        return {"mode": self.mode, "busy": self._lock.locked(), **self._cache.snapshot()}

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


def create_converter(engine: Any, timeout: float | None = None) -> Converter:
    """Pick the converter variant matching the engine's shape."""
    if is_group_loading(engine):
        return CachedResultConverter(engine, timeout=timeout)
    if is_direct(engine):
        return DirectResultConverter(engine, timeout=timeout)
    raise ValidationError(f"Unsupported conversion engine: {type(engine).__name__}")
