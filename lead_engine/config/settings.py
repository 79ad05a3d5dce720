"""
Configuration settings for the Lead Enrichment & Scoring Engine
"""

from types import MappingProxyType
from typing import Mapping, Tuple
import os

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# APPLICATION CONFIGURATION
# =============================================================================

APP_CONFIG = {
    "host": os.getenv("LEAD_ENGINE_HOST", "0.0.0.0"),
    "port": int(os.getenv("LEAD_ENGINE_PORT", "8000")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "log_file": os.getenv("LOG_FILE", ""),  # empty = stderr only
    "enrichment_provider": os.getenv("ENRICHMENT_PROVIDER", "none"),  # none, static
}

# =============================================================================
# DEFAULT TENANT SCORING CONFIG
# =============================================================================

DEFAULT_SCORING_VERSION = "v1"

DEFAULT_THRESHOLDS = {
    "hot_threshold": 70,
    "warm_threshold": 40,
}

# Tenant weight overrides are limited to [-MAX, MAX]
MAX_WEIGHT_OVERRIDE = 100.0

# =============================================================================
# SOURCE CRM NAMES
# =============================================================================

# Hints accepted in place of a source name
SOURCE_ALIASES = MappingProxyType({"raw": "api"})

SALESFORCE_ID_LENGTH = 18

# =============================================================================
# BAND BREAKPOINTS (inclusive upper bound for employees, exclusive for money)
# =============================================================================

EMPLOYEE_BAND_BREAKPOINTS: Tuple[Tuple[int, str], ...] = (
    (10, "1-10"),
    (50, "11-50"),
    (200, "51-200"),
    (1000, "201-1000"),
)
EMPLOYEE_TOP_BAND = "1000+"

REVENUE_BAND_BREAKPOINTS: Tuple[Tuple[int, str], ...] = (
    (1_000_000, "<1M"),
    (10_000_000, "1-10M"),
    (50_000_000, "10-50M"),
    (250_000_000, "50-250M"),
)
REVENUE_TOP_BAND = "250M+"

DEAL_BAND_BREAKPOINTS: Tuple[Tuple[int, str], ...] = (
    (10_000, "Small"),
    (100_000, "Mid"),
)
DEAL_TOP_BAND = "Enterprise"

# =============================================================================
# SIGNAL KEYS
# =============================================================================

SIGNAL_EMAIL_DOMAIN = "email_domain"
SIGNAL_COMPANY_SIZE = "company_size"
SIGNAL_REVENUE = "revenue"
SIGNAL_SENIORITY = "seniority"
SIGNAL_INDUSTRY = "industry"
SIGNAL_LEAD_SOURCE = "lead_source"
SIGNAL_USE_CASE = "use_case"
SIGNAL_URGENCY = "urgency"
SIGNAL_DEAL_BAND = "deal_band"
SIGNAL_REGION_PENALTY = "region_penalty"

# =============================================================================
# POINT TABLES
# =============================================================================

FREE_EMAIL_DOMAINS = frozenset({
    "gmail.com",
    "yahoo.com",
    "outlook.com",
    "hotmail.com",
    "icloud.com",
    "aol.com",
    "proton.me",
    "protonmail.com",
})

CORPORATE_EMAIL_POINTS = 15

EMPLOYEE_BAND_POINTS = MappingProxyType({
    "1-10": 5,
    "11-50": 10,
    "51-200": 15,
    "201-1000": 20,
    "1000+": 25,
})

REVENUE_BAND_POINTS = MappingProxyType({
    "<1M": 5,
    "1-10M": 10,
    "10-50M": 15,
    "50-250M": 20,
    "250M+": 25,
})

SENIORITY_POINTS = MappingProxyType({
    "IC": 5,
    "Manager": 10,
    "Director": 15,
    "VP": 20,
    "C-Level": 30,
})

# Regex fragments, checked in order, first match wins. Matched on word boundaries.
TITLE_KEYWORD_POINTS: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    ((r"ceo", r"cto", r"cfo", r"coo", r"cmo", r"cro", r"ciso", r"chief", r"founder",
      r"co-founder", r"cofounder", r"owner", r"(?<!vice )(?<!vice-)president"), 30),
    ((r"vp", r"svp", r"evp", r"vice[\s-]+president", r"head\s+of"), 20),
    ((r"director",), 15),
    ((r"manager", r"lead(?:s|er|ers|ership)?", r"senior"), 10),
)

PRIORITY_INDUSTRY_POINTS = 20
HIGH_VALUE_INDUSTRY_POINTS = 15
MEDIUM_VALUE_INDUSTRY_POINTS = 8

HIGH_VALUE_INDUSTRIES: Tuple[str, ...] = (
    "technology",
    "software",
    "finance",
    "healthcare",
    "saas",
)

MEDIUM_VALUE_INDUSTRIES: Tuple[str, ...] = (
    "manufacturing",
    "retail",
    "consulting",
    "professional services",
)

HIGH_QUALITY_SOURCE_POINTS = 15
MEDIUM_QUALITY_SOURCE_POINTS = 8

HIGH_QUALITY_SOURCES: Tuple[str, ...] = (
    "referral",
    "partner",
    "event",
    "conference",
    "demo request",
)

MEDIUM_QUALITY_SOURCES: Tuple[str, ...] = (
    "website",
    "webinar",
    "content download",
)

PRIORITY_USE_CASE_POINTS = 15
ANY_USE_CASE_POINTS = 5

URGENCY_POINTS = MappingProxyType({
    "Exploring": 5,
    "ThisQuarter": 10,
    "ThisMonth": 20,
})

DEAL_BAND_POINTS = MappingProxyType({
    "Small": 5,
    "Mid": 10,
    "Enterprise": 15,
})

EXCLUDED_REGION_PENALTY = -20

# =============================================================================
# DIMENSIONS
# =============================================================================

DIMENSION_SIGNALS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "fit": (
        SIGNAL_EMAIL_DOMAIN,
        SIGNAL_COMPANY_SIZE,
        SIGNAL_REVENUE,
        SIGNAL_SENIORITY,
        SIGNAL_INDUSTRY,
        SIGNAL_REGION_PENALTY,
    ),
    "intent": (
        SIGNAL_LEAD_SOURCE,
        SIGNAL_USE_CASE,
        SIGNAL_DEAL_BAND,
    ),
    "timing": (
        SIGNAL_URGENCY,
    ),
})

# Ceiling of each dimension's unweighted signals
DIMENSION_MAXIMA = MappingProxyType({
    "fit": 95,
    "intent": 35,
    "timing": 20,
})
