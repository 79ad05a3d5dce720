"""
Stage 4: Dimension Aggregation
==============================
Groups the enriched score breakdown into three 0-100 dimensions:
- Fit: who the company and contact are
- Intent: how and why the lead came in
- Timing: how soon they want to buy
"""

import math
from typing import Mapping

from ..models.schemas import DimensionBreakdown
from ..config.settings import DIMENSION_SIGNALS, DIMENSION_MAXIMA


def _normalize(total: float, maximum: int) -> int:
    value = min(100.0, total / maximum * 100)
    # A penalty-dominated dimension reports 0
    return max(0, int(math.floor(value + 0.5)))


def compute_dimensions(breakdown: Mapping[str, int]) -> DimensionBreakdown:
    """
    Normalize a signal breakdown into Fit / Intent / Timing.

    Args:
        breakdown: Sparse signal key -> weighted points map

    Returns:
        DimensionBreakdown with each value in 0-100
    """
    values = {}
    for dimension, signals in DIMENSION_SIGNALS.items():
        total = sum(breakdown.get(signal, 0) for signal in signals)
        values[dimension] = _normalize(total, DIMENSION_MAXIMA[dimension])
    return DimensionBreakdown(**values)
