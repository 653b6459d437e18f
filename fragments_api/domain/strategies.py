"""Strategy pattern for artifact identifier generation."""
from __future__ import annotations

import random
from typing import Protocol

from fragments_api.domain.errors import ValidationError


class IdentifierStrategy(Protocol):
    """Protocol for identifier generation strategies."""

    def generate(self) -> str:
        """Return a new, statistically unique identifier."""
        ...


def _hyphenate(digits: str) -> str:
    return f"{digits[:8]}-{digits[8:12]}-{digits[12:16]}-{digits[16:20]}-{digits[20:]}"


class UUID4IdentifierStrategy:
    """Random UUID v4 layout: version nibble 4, variant nibble 8-b.

    Uses non-cryptographic randomness; identifiers are not security tokens.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def generate(self) -> str:
        value = self._rng.getrandbits(128)
        # RFC 4122 section 4.4
        value &= ~(0xF000 << 64)
        value |= 0x4000 << 64
        value &= ~(0xC000 << 48)
        value |= 0x8000 << 48
        return _hyphenate(f"{value:032x}")


class HexGuidIdentifierStrategy:
    """32 uniformly random hex digits in 8-4-4-4-12 groups, no version bits."""

    _digits = "0123456789abcdef"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def generate(self) -> str:
        return _hyphenate("".join(self._rng.choice(self._digits) for _ in range(32)))


class IdentifierStrategyFactory:
    """Factory to select the identifier strategy configured for a deployment."""

    _strategies = {
        "uuid4": UUID4IdentifierStrategy,
        "uuid": UUID4IdentifierStrategy,
        "hex": HexGuidIdentifierStrategy,
        "guid": HexGuidIdentifierStrategy,
    }

    @classmethod
    def get_strategy(cls, name: str) -> IdentifierStrategy:
        """Get identifier strategy by name."""
        strategy_class = cls._strategies.get(name.strip().lower())
        if strategy_class is None:
            raise ValidationError(f"Unknown identifier strategy: {name}")
        return strategy_class()

    @classmethod
    def register_strategy(cls, name: str, strategy_class: type) -> None:
        """Register a new identifier strategy."""
        cls._strategies[name.lower()] = strategy_class
