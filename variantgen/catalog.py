"""Segment duration variants generated for every video."""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class VariantSpec:
    """One HLS rendition: a segment duration and a normal/fast-start mode."""
    segment_duration: float  # seconds
    suffix: str  # e.g. "4s", "4s_fast"
    fast_start: bool = False

    @property
    def target_duration(self) -> int:
        """Value of the EXT-X-TARGETDURATION tag for this variant."""
        return math.ceil(self.segment_duration)


# Durations ascending, normal before fast-start within each duration
VARIANT_CATALOG: Tuple[VariantSpec, ...] = (
    VariantSpec(0.5, "500ms"),
    VariantSpec(0.5, "500ms_fast", fast_start=True),
    VariantSpec(1, "1s"),
    VariantSpec(1, "1s_fast", fast_start=True),
    VariantSpec(4, "4s"),
    VariantSpec(4, "4s_fast", fast_start=True),
    VariantSpec(8, "8s"),
    VariantSpec(8, "8s_fast", fast_start=True),
    VariantSpec(12, "12s"),
    VariantSpec(12, "12s_fast", fast_start=True),
)


def get_variant(suffix: str) -> VariantSpec:
    """
    Look up a catalog entry by its directory suffix.

    Args:
        suffix: Variant suffix (e.g., "1s_fast")

    Returns:
        The matching VariantSpec

    Raises:
        KeyError: If no catalog entry uses this suffix
    """
    for variant in VARIANT_CATALOG:
        if variant.suffix == suffix:
            return variant
    raise KeyError(suffix)
