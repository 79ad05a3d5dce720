"""
Pydantic schemas for the Lead Enrichment & Scoring Engine
"""

from enum import Enum
from typing import List, Dict, Optional, Any
from pydantic import BaseModel, Field, computed_field, field_validator
from datetime import datetime
import uuid

from .tenant_config import TenantScoringConfig


# =============================================================================
# ENUMS
# =============================================================================

class EmployeeBand(str, Enum):
    """Company headcount band"""
    B_1_10 = "1-10"
    B_11_50 = "11-50"
    B_51_200 = "51-200"
    B_201_1000 = "201-1000"
    B_1000_PLUS = "1000+"


class RevenueBand(str, Enum):
    """Annual revenue band"""
    UNDER_1M = "<1M"
    R_1_10M = "1-10M"
    R_10_50M = "10-50M"
    R_50_250M = "50-250M"
    OVER_250M = "250M+"


class RoleFunction(str, Enum):
    """Contact's department"""
    SALES = "Sales"
    MARKETING = "Marketing"
    REVOPS = "RevOps"
    OPS = "Ops"
    FINANCE = "Finance"
    IT = "IT"
    FOUNDER_EXEC = "FounderExec"
    LEGAL = "Legal"
    OTHER = "Other"


class RoleSeniority(str, Enum):
    """Contact seniority, lowest to highest"""
    IC = "IC"
    MANAGER = "Manager"
    DIRECTOR = "Director"
    VP = "VP"
    C_LEVEL = "C-Level"


class DealBand(str, Enum):
    """Estimated deal size"""
    SMALL = "Small"
    MID = "Mid"
    ENTERPRISE = "Enterprise"


class UrgencyBand(str, Enum):
    """Buying timeline"""
    EXPLORING = "Exploring"
    THIS_QUARTER = "ThisQuarter"
    THIS_MONTH = "ThisMonth"


class LeadTier(str, Enum):
    """Final lead classification"""
    HOT = "Hot"
    WARM = "Warm"
    COLD = "Cold"


class ScoringPhase(str, Enum):
    """Which snapshot a score was computed from"""
    RAW = "raw"
    ENRICHED = "enriched"


class SourceCRM(str, Enum):
    """Known payload sources"""
    SALESFORCE = "salesforce"
    HUBSPOT = "hubspot"
    PIPEDRIVE = "pipedrive"
    API = "api"


# =============================================================================
# ERRORS
# =============================================================================

class LeadValidationError(ValueError):
    """Raised when a payload cannot be turned into a canonical lead"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


# =============================================================================
# CANONICAL LEAD
# =============================================================================

_TEXT_FIELDS = (
    "company_name",
    "company_industry",
    "company_region",
    "contact_email",
    "contact_first_name",
    "contact_last_name",
    "contact_title_raw",
    "contact_geo",
    "contact_phone",
    "primary_use_case",
    "lead_source",
)

_ENUM_FIELDS = {
    "company_employee_band": EmployeeBand,
    "company_revenue_band": RevenueBand,
    "contact_role_function": RoleFunction,
    "contact_role_seniority": RoleSeniority,
    "estimated_deal_band": DealBand,
    "urgency_band": UrgencyBand,
}


def _text_or_none(value: Any) -> Optional[str]:
    # Wrong-typed values are absent, empty strings are kept
    return value if isinstance(value, str) else None


def _enum_or_none(enum_cls, value: Any):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            return None
    return None


class _LeadFields(BaseModel):
    """Fields shared by the canonical record and enrichment patches"""
    company_name: Optional[str] = None
    company_industry: Optional[str] = None
    company_employee_band: Optional[EmployeeBand] = None
    company_revenue_band: Optional[RevenueBand] = None
    company_region: Optional[str] = None
    company_tech_stack_summary: Optional[Dict[str, Any]] = None

    contact_email: Optional[str] = None
    contact_first_name: Optional[str] = None
    contact_last_name: Optional[str] = None
    contact_role_function: Optional[RoleFunction] = None
    contact_role_seniority: Optional[RoleSeniority] = None
    contact_title_raw: Optional[str] = None
    contact_geo: Optional[str] = None
    contact_phone: Optional[str] = None

    primary_use_case: Optional[str] = None
    estimated_deal_band: Optional[DealBand] = None
    urgency_band: Optional[UrgencyBand] = None
    lead_source: Optional[str] = None

    class Config:
        frozen = True
        extra = "ignore"

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return _text_or_none(value)

    @field_validator(*_ENUM_FIELDS.keys(), mode="before")
    @classmethod
    def _coerce_enum(cls, value, info):
        return _enum_or_none(_ENUM_FIELDS[info.field_name], value)

    @field_validator("company_tech_stack_summary", mode="before")
    @classmethod
    def _coerce_mapping(cls, value):
        return value if isinstance(value, dict) else None


class CanonicalLeadRecord(_LeadFields):
    """Universal lead schema, independent of the source CRM"""
    company_domain: str

    @field_validator("company_domain", mode="before")
    @classmethod
    def _coerce_domain(cls, value):
        return value if isinstance(value, str) else ""


class PartialLeadRecord(_LeadFields):
    """Subset of canonical fields returned by an enrichment provider"""
    company_domain: Optional[str] = None

    @field_validator("company_domain", mode="before")
    @classmethod
    def _coerce_domain(cls, value):
        return _text_or_none(value)


LEAD_FIELD_NAMES = tuple(CanonicalLeadRecord.model_fields.keys())


class MappedLead(BaseModel):
    """Output of payload classification"""
    source: SourceCRM
    lead: CanonicalLeadRecord
    external_id: Optional[str] = None

    class Config:
        frozen = True


# =============================================================================
# SCORING RESULT SCHEMAS
# =============================================================================

class PhaseScore(BaseModel):
    """Score computed from one snapshot of a lead"""
    phase: ScoringPhase
    score: int
    tier: LeadTier
    breakdown: Dict[str, int] = Field(default_factory=dict)
    reasons: List[str] = Field(default_factory=list)


class DimensionBreakdown(BaseModel):
    """Fit / Intent / Timing, each 0-100"""
    fit: int = 0
    intent: int = 0
    timing: int = 0


class ScoringResult(BaseModel):
    """Dual (raw vs enriched) scoring result"""
    raw_score: int
    raw_tier: LeadTier
    enriched_score: int
    enriched_tier: LeadTier
    lift: int
    scoring_version: str
    score_breakdown: Dict[str, int] = Field(default_factory=dict)
    raw_breakdown: Dict[str, int] = Field(default_factory=dict)
    dimensions: DimensionBreakdown = Field(default_factory=DimensionBreakdown)
    reasons: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def score(self) -> int:
        return self.enriched_score

    @computed_field
    @property
    def tier(self) -> LeadTier:
        return self.enriched_tier


# =============================================================================
# PIPELINE SCHEMAS
# =============================================================================

class EnrichmentOutcome(BaseModel):
    """What the enrichment step produced for one lead"""
    partial: PartialLeadRecord = Field(default_factory=PartialLeadRecord)
    sources: List[str] = Field(default_factory=list)
    duration_ms: float = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class ScoringRun(BaseModel):
    """Audit record of one dual-score computation"""
    run_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: Optional[str] = None
    source: SourceCRM
    external_id: Optional[str] = None

    input_snapshot: CanonicalLeadRecord
    enriched_snapshot: CanonicalLeadRecord
    config_snapshot: Dict[str, Any]

    raw_score: int
    raw_tier: LeadTier
    enriched_score: int
    enriched_tier: LeadTier
    lift: int
    scoring_version: str
    score_breakdown: Dict[str, int] = Field(default_factory=dict)
    raw_breakdown: Dict[str, int] = Field(default_factory=dict)
    dimensions: DimensionBreakdown = Field(default_factory=DimensionBreakdown)
    reasons: List[str] = Field(default_factory=list)

    enrichment_sources: List[str] = Field(default_factory=list)
    enrichment_duration_ms: float = 0
    enrichment_error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class LeadProcessingResult(BaseModel):
    """Everything the pipeline produced for one payload"""
    source: SourceCRM
    external_id: Optional[str] = None
    raw_lead: CanonicalLeadRecord
    enriched_lead: CanonicalLeadRecord
    scoring: ScoringResult
    enrichment: EnrichmentOutcome
    run: ScoringRun


# =============================================================================
# API REQUEST / RESPONSE SCHEMAS
# =============================================================================

class DualScoreRequest(BaseModel):
    """Request to dual-score two canonical records"""
    raw_lead: CanonicalLeadRecord
    enriched_lead: Optional[CanonicalLeadRecord] = None
    tenant_config: Optional[TenantScoringConfig] = None


class ClassifyResponse(BaseModel):
    """Response for payload classification"""
    source: SourceCRM
    external_id: Optional[str] = None
    lead: CanonicalLeadRecord


class EnrichLeadResponse(BaseModel):
    """Full enrichment + scoring response"""
    lead_id: str
    scoring_run_id: str
    source: SourceCRM
    external_id: Optional[str] = None

    enriched: CanonicalLeadRecord
    scoring: ScoringResult

    # Top-level mirrors of the scoring object
    lead_score: int
    lead_tier: LeadTier
    scoring_version: str
    score_breakdown: Dict[str, int]
    reasons: List[str]
    raw_score: int
    raw_tier: LeadTier
    enriched_score: int
    enriched_tier: LeadTier
    lift: int
    dimensions: DimensionBreakdown

    enrichment_sources: List[str] = Field(default_factory=list)
    enrichment_duration_ms: float = 0

