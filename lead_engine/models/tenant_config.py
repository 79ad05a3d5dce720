"""
Tenant Scoring Configuration Models
"""

import math
from typing import List, Dict, Optional, Any
from pydantic import BaseModel, Field, field_validator

from ..config.settings import DEFAULT_SCORING_VERSION, DEFAULT_THRESHOLDS, MAX_WEIGHT_OVERRIDE


class TenantScoringConfig(BaseModel):
    """Per-tenant scoring configuration.

    warm_threshold <= hot_threshold is expected of callers but not enforced.
    """
    tenant_id: Optional[str] = None
    scoring_version: str = DEFAULT_SCORING_VERSION

    # Signal key -> multiplier, unlisted keys use 1.0
    weight_overrides: Dict[str, float] = Field(default_factory=dict)

    # Case-insensitive substrings
    priority_industries: List[str] = Field(default_factory=list)
    priority_use_cases: List[str] = Field(default_factory=list)
    excluded_regions: List[str] = Field(default_factory=list)

    hot_threshold: int = DEFAULT_THRESHOLDS["hot_threshold"]
    warm_threshold: int = DEFAULT_THRESHOLDS["warm_threshold"]

    @field_validator("weight_overrides")
    @classmethod
    def _check_weights(cls, weights: Dict[str, float]) -> Dict[str, float]:
        for key, weight in weights.items():
            if not math.isfinite(weight) or abs(weight) > MAX_WEIGHT_OVERRIDE:
                raise ValueError(
                    f"weight for '{key}' must be a finite number within "
                    f"+/-{MAX_WEIGHT_OVERRIDE:g}, got {weight}"
                )
        return weights

    def snapshot(self) -> Dict[str, Any]:
        """Plain copy of the config for audit records"""
        return self.model_dump(mode="json")


def create_default_tenant_config(
    tenant_id: Optional[str] = None,
    priority_industries: Optional[List[str]] = None,
    priority_use_cases: Optional[List[str]] = None,
    excluded_regions: Optional[List[str]] = None,
    weight_overrides: Optional[Dict[str, float]] = None,
) -> TenantScoringConfig:
    """
    Factory function to create a tenant config with the documented defaults
    """
    overrides: Dict[str, Any] = {}

    if priority_industries:
        overrides["priority_industries"] = list(priority_industries)

    if priority_use_cases:
        overrides["priority_use_cases"] = list(priority_use_cases)

    if excluded_regions:
        overrides["excluded_regions"] = list(excluded_regions)

    if weight_overrides:
        overrides["weight_overrides"] = dict(weight_overrides)

    return TenantScoringConfig(tenant_id=tenant_id, **overrides)
