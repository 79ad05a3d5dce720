"""
Lead Scoring Engine - Main Orchestrator
=======================================
Orchestrates the four-stage pipeline:
  Stage 1: Classify & Map → Stage 2: Enrich →
  Stage 3: Dual Scoring → Stage 4: Dimensions

Key properties:
- The raw snapshot is captured before enrichment and never modified
- Enrichment failures degrade to scoring the original record
- Every run produces an auditable ScoringRun record
"""

from typing import Optional, Dict, Any

from loguru import logger

from .models.schemas import (
    CanonicalLeadRecord,
    LeadProcessingResult,
    MappedLead,
    ScoringResult,
    ScoringRun,
)
from .models.tenant_config import TenantScoringConfig, create_default_tenant_config
from .stages.stage1_mapping import classify_and_map
from .stages.stage2_enrichment import (
    EnrichmentProvider,
    NullEnrichmentProvider,
    merge_enrichment,
    run_enrichment,
)
from .stages.stage3_scoring import score_lead_dual, score_lead


class LeadScoringEngine:
    """
    Main engine that runs a CRM payload through all four stages.
    """

    def __init__(
        self,
        tenant_config: Optional[TenantScoringConfig] = None,
        enrichment_provider: Optional[EnrichmentProvider] = None,
    ):
        """
        Initialize the engine.

        Args:
            tenant_config: Default tenant config (uses defaults if not provided)
            enrichment_provider: Async provider (no enrichment if not provided)
        """
        self.config = tenant_config or create_default_tenant_config()
        self.enrichment_provider = enrichment_provider or NullEnrichmentProvider()

        # Track statistics
        self.stats = self._empty_stats()

    # =========================================================================
    # Core entry points
    # =========================================================================

    def classify_and_map(self, payload: Dict[str, Any], hint: Optional[str] = None) -> MappedLead:
        """Stage 1 only: detect the source and map to the canonical schema"""
        return classify_and_map(payload, hint)

    def score_lead_dual(
        self,
        raw_lead: CanonicalLeadRecord,
        enriched_lead: CanonicalLeadRecord,
        tenant_config: Optional[TenantScoringConfig] = None,
    ) -> ScoringResult:
        """Stages 3-4 on two existing snapshots"""
        return score_lead_dual(raw_lead, enriched_lead, tenant_config or self.config)

    def score_lead(
        self,
        lead: CanonicalLeadRecord,
        tenant_config: Optional[TenantScoringConfig] = None,
    ) -> ScoringResult:
        """Legacy single-record scoring (lift is always 0)"""
        return score_lead(lead, tenant_config or self.config)

    async def process_payload(
        self,
        payload: Dict[str, Any],
        hint: Optional[str] = None,
        tenant_config: Optional[TenantScoringConfig] = None,
    ) -> LeadProcessingResult:
        """
        Run a CRM payload through the full pipeline.

        Args:
            payload: Raw CRM payload
            hint: Optional source name overriding detection
            tenant_config: Config for this call (engine default if not provided)

        Returns:
            LeadProcessingResult with both snapshots, scoring and audit record

        Raises:
            LeadValidationError: if the payload has no derivable company domain
        """
        config = tenant_config or self.config

        # =====================================================================
        # STAGE 1: Classify & Map
        # =====================================================================
        mapped = classify_and_map(payload, hint)
        raw_lead = mapped.lead
        logger.info(
            f"Mapped {mapped.source.value} payload for {raw_lead.company_domain} "
            f"(external_id={mapped.external_id})"
        )

        # =====================================================================
        # STAGE 2: Enrichment
        # =====================================================================
        outcome = await run_enrichment(raw_lead, self.enrichment_provider)
        if outcome.succeeded:
            enriched_lead = merge_enrichment(raw_lead, outcome.partial)
        else:
            self.stats["enrichment_failures"] += 1
            enriched_lead = raw_lead

        # =====================================================================
        # STAGES 3-4: Dual Scoring + Dimensions
        # =====================================================================
        scoring = score_lead_dual(raw_lead, enriched_lead, config)
        logger.info(
            f"Scored {raw_lead.company_domain}: raw={scoring.raw_score} "
            f"enriched={scoring.enriched_score} lift={scoring.lift} tier={scoring.tier.value}"
        )

        run = self._build_run(mapped, enriched_lead, scoring, outcome, config)

        self.stats["total_processed"] += 1
        self.stats["total_lift"] += scoring.lift

        return LeadProcessingResult(
            source=mapped.source,
            external_id=mapped.external_id,
            raw_lead=raw_lead,
            enriched_lead=enriched_lead,
            scoring=scoring,
            enrichment=outcome,
            run=run,
        )

    def update_config(self, new_config: TenantScoringConfig):
        """Replace the engine's default tenant config"""
        self.config = new_config

    def get_stats(self) -> Dict[str, Any]:
        """Get engine statistics"""
        stats = self.stats.copy()
        if stats["total_processed"] > 0:
            stats["avg_lift"] = round(stats["total_lift"] / stats["total_processed"], 2)
            stats["enrichment_failure_rate"] = round(
                stats["enrichment_failures"] / stats["total_processed"] * 100, 1
            )
        return stats

    def reset_stats(self):
        """Reset engine statistics"""
        self.stats = self._empty_stats()

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "total_processed": 0,
            "enrichment_failures": 0,
            "total_lift": 0,
        }

    def _build_run(
        self,
        mapped: MappedLead,
        enriched_lead: CanonicalLeadRecord,
        scoring: ScoringResult,
        outcome,
        config: TenantScoringConfig,
    ) -> ScoringRun:
        """Assemble the audit record for one run"""
        return ScoringRun(
            tenant_id=config.tenant_id,
            source=mapped.source,
            external_id=mapped.external_id,
            input_snapshot=mapped.lead,
            enriched_snapshot=enriched_lead,
            config_snapshot=config.snapshot(),
            raw_score=scoring.raw_score,
            raw_tier=scoring.raw_tier,
            enriched_score=scoring.enriched_score,
            enriched_tier=scoring.enriched_tier,
            lift=scoring.lift,
            scoring_version=scoring.scoring_version,
            score_breakdown=scoring.score_breakdown,
            raw_breakdown=scoring.raw_breakdown,
            dimensions=scoring.dimensions,
            reasons=scoring.reasons,
            enrichment_sources=outcome.sources,
            enrichment_duration_ms=outcome.duration_ms,
            enrichment_error=outcome.error,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def create_engine(
    priority_industries: Optional[list] = None,
    priority_use_cases: Optional[list] = None,
    excluded_regions: Optional[list] = None,
    enrichment_provider: Optional[EnrichmentProvider] = None,
) -> LeadScoringEngine:
    """
    Factory function to create an engine with common settings.
    """
    config = create_default_tenant_config(
        priority_industries=priority_industries,
        priority_use_cases=priority_use_cases,
        excluded_regions=excluded_regions,
    )
    return LeadScoringEngine(tenant_config=config, enrichment_provider=enrichment_provider)


def quick_score(lead_data: Dict[str, Any]) -> ScoringResult:
    """
    Quick scoring for a single canonical-shaped dict.

    Args:
        lead_data: Dictionary of canonical lead fields

    Returns:
        ScoringResult (raw == enriched)
    """
    lead = classify_and_map(lead_data, hint="api").lead
    return score_lead(lead)
