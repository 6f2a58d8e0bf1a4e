from __future__ import annotations

from dataclasses import dataclass

from .strategies.base import SlotMatchingStrategy
from .strategies.ordinal_strategy import OrdinalMatchingStrategy
from .strategies.overlap_strategy import OverlapMatchingStrategy


@dataclass
class SlotMatchingFactory:
    """Factory Pattern: choose the slot matching strategy from settings."""

    default: str = OrdinalMatchingStrategy.name

    def for_name(self, name: str | None = None) -> SlotMatchingStrategy:
        key = (name or self.default).strip().lower()
        if key == OrdinalMatchingStrategy.name:
            return OrdinalMatchingStrategy()
        if key == OverlapMatchingStrategy.name:
            return OverlapMatchingStrategy()
        raise ValueError(f"Unknown RECONCILE_MATCHING value: {name!r}")
