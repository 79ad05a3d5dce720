"""
Stage 3: Dual Scoring
=====================
Deterministic, explainable lead scoring run twice per lead:
once on the raw (pre-enrichment) record and once on the enriched record.

Signals (each weighted by the tenant, rounded, then summed):
- Fit: email domain, company size, revenue, seniority, industry, region penalty
- Intent: lead source, use case, deal band
- Timing: urgency

Total is clamped to 0-100 and mapped to Hot / Warm / Cold.
"""

import math
import re
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from ..models.schemas import (
    CanonicalLeadRecord,
    LeadTier,
    PhaseScore,
    ScoringPhase,
    ScoringResult,
)
from ..models.tenant_config import TenantScoringConfig, create_default_tenant_config
from .stage4_dimensions import compute_dimensions
from ..config.settings import (
    FREE_EMAIL_DOMAINS,
    CORPORATE_EMAIL_POINTS,
    EMPLOYEE_BAND_POINTS,
    REVENUE_BAND_POINTS,
    SENIORITY_POINTS,
    TITLE_KEYWORD_POINTS,
    PRIORITY_INDUSTRY_POINTS,
    HIGH_VALUE_INDUSTRY_POINTS,
    MEDIUM_VALUE_INDUSTRY_POINTS,
    HIGH_VALUE_INDUSTRIES,
    MEDIUM_VALUE_INDUSTRIES,
    HIGH_QUALITY_SOURCE_POINTS,
    MEDIUM_QUALITY_SOURCE_POINTS,
    HIGH_QUALITY_SOURCES,
    MEDIUM_QUALITY_SOURCES,
    PRIORITY_USE_CASE_POINTS,
    ANY_USE_CASE_POINTS,
    URGENCY_POINTS,
    DEAL_BAND_POINTS,
    EXCLUDED_REGION_PENALTY,
    MAX_WEIGHT_OVERRIDE,
    SIGNAL_EMAIL_DOMAIN,
    SIGNAL_COMPANY_SIZE,
    SIGNAL_REVENUE,
    SIGNAL_SENIORITY,
    SIGNAL_INDUSTRY,
    SIGNAL_LEAD_SOURCE,
    SIGNAL_USE_CASE,
    SIGNAL_URGENCY,
    SIGNAL_DEAL_BAND,
    SIGNAL_REGION_PENALTY,
)


class SignalScore(NamedTuple):
    """Unweighted points for one signal plus a reason template"""
    points: int
    reason: Optional[str] = None  # "{points}" is filled with the weighted value


NO_SIGNAL = SignalScore(0)

Weights = Mapping[str, float]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero"""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def _contains_any(text: str, needles: Sequence[str]) -> Optional[str]:
    """First needle found in text (both lowercased), if any"""
    lowered = text.lower()
    for needle in needles:
        if isinstance(needle, str) and needle.strip() and needle.strip().lower() in lowered:
            return needle
    return None


def _compile_keyword_table() -> Tuple[Tuple["re.Pattern[str]", int], ...]:
    """Pre-compile title keyword sets into word-boundary patterns"""
    compiled = []
    for keywords, points in TITLE_KEYWORD_POINTS:
        alternatives = "|".join(keywords)
        compiled.append((re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE), points))
    return tuple(compiled)


_TITLE_PATTERNS = _compile_keyword_table()


# =============================================================================
# Signal scorers
# =============================================================================

def score_email_domain(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    email = lead.contact_email
    if not email or "@" not in email:
        return NO_SIGNAL
    domain = email.split("@")[1].strip().lower()
    if not domain:
        return NO_SIGNAL
    if domain in FREE_EMAIL_DOMAINS:
        return SignalScore(0, f"Free email provider: {domain} (+0)")
    return SignalScore(CORPORATE_EMAIL_POINTS, f"Corporate email domain: {domain} ({{points}})")


def score_company_size(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    band = lead.company_employee_band
    if band is None:
        return NO_SIGNAL
    return SignalScore(
        EMPLOYEE_BAND_POINTS[band.value],
        f"Company size: {band.value} employees ({{points}})",
    )


def score_revenue(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    band = lead.company_revenue_band
    if band is None:
        return NO_SIGNAL
    return SignalScore(
        REVENUE_BAND_POINTS[band.value],
        f"Annual revenue: {band.value} ({{points}})",
    )


def score_title(title: Optional[str]) -> int:
    """Points for a free-text job title"""
    if not title:
        return 0
    for pattern, points in _TITLE_PATTERNS:
        if pattern.search(title):
            return points
    return 0


def score_seniority(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    seniority = lead.contact_role_seniority
    if seniority is not None:
        return SignalScore(
            SENIORITY_POINTS[seniority.value],
            f"Seniority: {seniority.value} ({{points}})",
        )

    points = score_title(lead.contact_title_raw)
    if not points:
        return NO_SIGNAL
    return SignalScore(points, f"Title: {lead.contact_title_raw} ({{points}})")


def score_industry(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    industry = lead.company_industry
    if not industry:
        return NO_SIGNAL

    if _contains_any(industry, config.priority_industries):
        return SignalScore(PRIORITY_INDUSTRY_POINTS, f"Priority industry: {industry} ({{points}})")
    if _contains_any(industry, HIGH_VALUE_INDUSTRIES):
        return SignalScore(HIGH_VALUE_INDUSTRY_POINTS, f"Industry: {industry} ({{points}})")
    if _contains_any(industry, MEDIUM_VALUE_INDUSTRIES):
        return SignalScore(MEDIUM_VALUE_INDUSTRY_POINTS, f"Industry: {industry} ({{points}})")
    return NO_SIGNAL


def score_lead_source(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    source = lead.lead_source
    if not source:
        return NO_SIGNAL

    if _contains_any(source, HIGH_QUALITY_SOURCES):
        return SignalScore(HIGH_QUALITY_SOURCE_POINTS, f"Lead source: {source} ({{points}})")
    if _contains_any(source, MEDIUM_QUALITY_SOURCES):
        return SignalScore(MEDIUM_QUALITY_SOURCE_POINTS, f"Lead source: {source} ({{points}})")
    return NO_SIGNAL


def score_use_case(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    use_case = lead.primary_use_case
    if not use_case or not use_case.strip():
        return NO_SIGNAL

    if _contains_any(use_case, config.priority_use_cases):
        return SignalScore(PRIORITY_USE_CASE_POINTS, f"Priority use case: {use_case} ({{points}})")
    return SignalScore(ANY_USE_CASE_POINTS, f"Use case: {use_case} ({{points}})")


def score_urgency(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    urgency = lead.urgency_band
    if urgency is None:
        return NO_SIGNAL
    return SignalScore(URGENCY_POINTS[urgency.value], f"Urgency: {urgency.value} ({{points}})")


def score_deal_band(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    deal = lead.estimated_deal_band
    if deal is None:
        return NO_SIGNAL
    return SignalScore(DEAL_BAND_POINTS[deal.value], f"Deal size: {deal.value} ({{points}})")


def score_region_penalty(lead: CanonicalLeadRecord, config: TenantScoringConfig) -> SignalScore:
    if not config.excluded_regions:
        return NO_SIGNAL
    for region in (lead.company_region, lead.contact_geo):
        if region and _contains_any(region, config.excluded_regions):
            return SignalScore(EXCLUDED_REGION_PENALTY, f"Excluded region: {region} ({{points}})")
    return NO_SIGNAL


SignalScorer = Callable[[CanonicalLeadRecord, TenantScoringConfig], SignalScore]

# Order here is the order of breakdown entries and reasons
SIGNAL_SCORERS: Tuple[Tuple[str, SignalScorer], ...] = (
    (SIGNAL_EMAIL_DOMAIN, score_email_domain),
    (SIGNAL_COMPANY_SIZE, score_company_size),
    (SIGNAL_REVENUE, score_revenue),
    (SIGNAL_SENIORITY, score_seniority),
    (SIGNAL_INDUSTRY, score_industry),
    (SIGNAL_LEAD_SOURCE, score_lead_source),
    (SIGNAL_USE_CASE, score_use_case),
    (SIGNAL_URGENCY, score_urgency),
    (SIGNAL_DEAL_BAND, score_deal_band),
    (SIGNAL_REGION_PENALTY, score_region_penalty),
)

UNWEIGHTED_SIGNALS = frozenset({SIGNAL_REGION_PENALTY})


# =============================================================================
# Engine
# =============================================================================

def classify_tier(score: int, config: TenantScoringConfig) -> LeadTier:
    """Hot / Warm / Cold from the tenant's thresholds"""
    if score >= config.hot_threshold:
        return LeadTier.HOT
    if score >= config.warm_threshold:
        return LeadTier.WARM
    return LeadTier.COLD


def _bounded_weight(weight: float) -> float:
    """Clamp a multiplier to +/-MAX_WEIGHT_OVERRIDE; NaN means unweighted"""
    if math.isnan(weight):
        return 1.0
    return max(-MAX_WEIGHT_OVERRIDE, min(MAX_WEIGHT_OVERRIDE, weight))


def _format_points(points: int) -> str:
    return f"+{points}" if points >= 0 else str(points)


def compute_score(
    lead: CanonicalLeadRecord,
    config: Optional[TenantScoringConfig] = None,
    weights: Optional[Weights] = None,
    phase: ScoringPhase = ScoringPhase.ENRICHED,
) -> PhaseScore:
    """
    Score one snapshot of a lead.

    Args:
        lead: Canonical lead record
        config: Tenant config (defaults when omitted)
        weights: Signal multipliers (defaults to config.weight_overrides)
        phase: RAW suppresses reasons; points are recorded either way

    Returns:
        PhaseScore with clamped score, tier, sparse breakdown and reasons
    """
    config = config or create_default_tenant_config()
    weights = config.weight_overrides if weights is None else weights
    phase = ScoringPhase(phase)
    collect_reasons = phase == ScoringPhase.ENRICHED

    breakdown: Dict[str, int] = {}
    reasons: List[str] = []

    for key, scorer in SIGNAL_SCORERS:
        signal = scorer(lead, config)

        if key in UNWEIGHTED_SIGNALS:
            points = signal.points
        else:
            points = round_half_up(signal.points * _bounded_weight(weights.get(key, 1.0)))

        if points != 0:
            breakdown[key] = points

        if collect_reasons and signal.reason:
            reasons.append(signal.reason.replace("{points}", _format_points(points)))

    total = max(0, min(100, sum(breakdown.values())))

    return PhaseScore(
        phase=phase,
        score=total,
        tier=classify_tier(total, config),
        breakdown=breakdown,
        reasons=reasons,
    )


def score_lead_dual(
    raw_lead: CanonicalLeadRecord,
    enriched_lead: CanonicalLeadRecord,
    tenant_config: Optional[TenantScoringConfig] = None,
) -> ScoringResult:
    """
    Score a lead before and after enrichment.

    Args:
        raw_lead: Record as mapped from the CRM, before enrichment
        enriched_lead: Record after the fill-gaps merge
        tenant_config: Tenant config (defaults when omitted)

    Returns:
        ScoringResult; `score`/`tier` mirror the enriched values
    """
    config = tenant_config or create_default_tenant_config()
    weights = config.weight_overrides

    raw = compute_score(raw_lead, config, weights, ScoringPhase.RAW)
    enriched = compute_score(enriched_lead, config, weights, ScoringPhase.ENRICHED)

    return ScoringResult(
        raw_score=raw.score,
        raw_tier=raw.tier,
        enriched_score=enriched.score,
        enriched_tier=enriched.tier,
        lift=enriched.score - raw.score,
        scoring_version=config.scoring_version,
        score_breakdown=enriched.breakdown,
        raw_breakdown=raw.breakdown,
        dimensions=compute_dimensions(enriched.breakdown),
        reasons=enriched.reasons,
    )


def score_lead(
    lead: CanonicalLeadRecord,
    tenant_config: Optional[TenantScoringConfig] = None,
) -> ScoringResult:
    """Single-record entry point: the same record is raw and enriched"""
    return score_lead_dual(lead, lead, tenant_config)
