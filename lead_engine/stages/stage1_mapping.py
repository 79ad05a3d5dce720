"""
Stage 1: Payload Classification & Schema Mapping
================================================
Turns a CRM payload into the canonical lead record.

Mappers, checked in order (first detector match wins):
- Salesforce (PascalCase flat fields)
- HubSpot (nested `properties.<key>.value` or flat lowercase fields)
- Pipedrive (snake_case, email/phone may be `[{value, primary}]` lists)
- Raw / API fallback (canonical field names passed straight through)

Every function here is pure and never raises on malformed input;
wrong-typed values are treated as absent.
"""

import math
import re
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple
from urllib.parse import urlparse

from ..models.schemas import (
    CanonicalLeadRecord,
    LeadValidationError,
    MappedLead,
    SourceCRM,
    LEAD_FIELD_NAMES,
)
from ..config.settings import (
    EMPLOYEE_BAND_BREAKPOINTS,
    EMPLOYEE_TOP_BAND,
    REVENUE_BAND_BREAKPOINTS,
    REVENUE_TOP_BAND,
    DEAL_BAND_BREAKPOINTS,
    DEAL_TOP_BAND,
    SALESFORCE_ID_LENGTH,
    SOURCE_ALIASES,
)

Payload = Dict[str, Any]
MapperOutput = Tuple[CanonicalLeadRecord, Optional[str]]

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")
_LEADING_FLOAT = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


# =============================================================================
# Type helpers
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_number(value: Any) -> Optional[float]:
    """Numeric value or None; NaN counts as absent"""
    if not _is_number(value):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _parse_int(value: Any) -> Optional[int]:
    """Leading integer of a string ("1200 employees" -> 1200)"""
    if _is_number(value):
        number = _as_number(value)
        return int(number) if number is not None and not math.isinf(number) else None
    if not isinstance(value, str):
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(0)) if match else None


def _parse_float(value: Any) -> Optional[float]:
    """Leading decimal number of a string ("2.5e6" -> 2500000.0)"""
    if _is_number(value):
        return _as_number(value)
    if not isinstance(value, str):
        return None
    match = _LEADING_FLOAT.match(value)
    return float(match.group(0)) if match else None


def _id_to_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value or None
    if _is_number(value):
        number = _as_number(value)
        if number is None:
            return None
        if isinstance(number, float) and number.is_integer():
            number = int(number)
        return str(number)
    return None


# =============================================================================
# Normalization helpers
# =============================================================================

def email_domain(email: Optional[str]) -> str:
    """Domain part of an email address, lowercased ("" if none)"""
    if not isinstance(email, str) or "@" not in email:
        return ""
    return email.split("@")[1].strip().lower()


def extract_domain_from_url(url: Optional[str]) -> str:
    """Hostname of a website URL without `www.` (scheme optional)"""
    if not isinstance(url, str) or not url.strip():
        return ""
    url = url.strip()
    candidate = url if url.lower().startswith("http") else f"https://{url}"
    try:
        host = urlparse(candidate).hostname or ""
    except ValueError:
        host = ""
    if not host:
        host = re.sub(r"^(https?://)?(www\.)?", "", url, flags=re.IGNORECASE).split("/")[0]
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def slugify_company(name: Optional[str]) -> str:
    """Company name turned into a guessed `.com` domain"""
    if not isinstance(name, str):
        return ""
    slug = _NON_ALNUM.sub("", name.lower())
    return f"{slug}.com" if slug else ""


def derive_domain(
    email: Optional[str] = None,
    website: Optional[str] = None,
    company: Optional[str] = None,
) -> str:
    """Email domain > website hostname > company slug"""
    return email_domain(email) or extract_domain_from_url(website) or slugify_company(company)


def map_employee_count_to_band(count: Any) -> Optional[str]:
    count = _as_number(count)
    if count is None:
        return None
    for upper, band in EMPLOYEE_BAND_BREAKPOINTS:
        if count <= upper:
            return band
    return EMPLOYEE_TOP_BAND


def map_revenue_to_band(revenue: Any) -> Optional[str]:
    revenue = _as_number(revenue)
    if revenue is None:
        return None
    for upper, band in REVENUE_BAND_BREAKPOINTS:
        if revenue < upper:
            return band
    return REVENUE_TOP_BAND


def map_value_to_deal_band(value: Any) -> Optional[str]:
    value = _as_number(value)
    if value is None:
        return None
    for upper, band in DEAL_BAND_BREAKPOINTS:
        if value < upper:
            return band
    return DEAL_TOP_BAND


def build_region(country: Optional[str], state: Optional[str]) -> Optional[str]:
    if country and state:
        return f"{state}, {country}"
    return country or state or None


# =============================================================================
# Salesforce
# =============================================================================

def is_salesforce_payload(payload: Payload) -> bool:
    record_id = payload.get("Id")
    return (
        isinstance(payload.get("LastName"), str)
        or isinstance(payload.get("Company"), str)
        or _is_number(payload.get("NumberOfEmployees"))
        or _is_number(payload.get("AnnualRevenue"))
        or (isinstance(record_id, str) and len(record_id) == SALESFORCE_ID_LENGTH)
    )


def map_salesforce(payload: Payload) -> MapperOutput:
    email = _as_text(payload.get("Email"))
    company = _as_text(payload.get("Company"))
    region = build_region(_as_text(payload.get("Country")), _as_text(payload.get("State")))

    lead = CanonicalLeadRecord(
        company_domain=derive_domain(email, _as_text(payload.get("Website")), company),
        company_name=company,
        company_industry=payload.get("Industry"),
        company_employee_band=map_employee_count_to_band(payload.get("NumberOfEmployees")),
        company_revenue_band=map_revenue_to_band(payload.get("AnnualRevenue")),
        company_region=region,
        contact_email=email,
        contact_first_name=payload.get("FirstName"),
        contact_last_name=payload.get("LastName"),
        contact_title_raw=payload.get("Title"),
        contact_phone=payload.get("Phone"),
        contact_geo=region,
        lead_source=payload.get("LeadSource"),
    )
    return lead, _id_to_text(payload.get("Id"))


# =============================================================================
# HubSpot
# =============================================================================

_HUBSPOT_FLAT_MARKERS = ("firstname", "lastname", "jobtitle", "lifecyclestage", "hs_lead_status")


def is_hubspot_payload(payload: Payload) -> bool:
    return (
        _is_number(payload.get("vid"))
        or isinstance(payload.get("properties"), dict)
        or any(isinstance(payload.get(key), str) for key in _HUBSPOT_FLAT_MARKERS)
    )


def hubspot_value(payload: Payload, key: str) -> Optional[str]:
    """Read a HubSpot property from the nested shape first, then flat"""
    properties = payload.get("properties")
    if isinstance(properties, dict) and properties.get(key) is not None:
        prop = properties[key]
        if isinstance(prop, dict):
            value = prop.get("value")
            if isinstance(value, str):
                return value
            if _is_number(value):
                return str(value)
            return None
        if isinstance(prop, str):
            return prop
    return _as_text(payload.get(key))


def map_hubspot(payload: Payload) -> MapperOutput:
    email = hubspot_value(payload, "email")
    company = hubspot_value(payload, "company")
    region = build_region(hubspot_value(payload, "country"), hubspot_value(payload, "state"))

    lead = CanonicalLeadRecord(
        company_domain=derive_domain(email, hubspot_value(payload, "website"), company),
        company_name=company,
        company_industry=hubspot_value(payload, "industry"),
        company_employee_band=map_employee_count_to_band(
            _parse_int(hubspot_value(payload, "numberofemployees"))
        ),
        company_revenue_band=map_revenue_to_band(
            _parse_float(hubspot_value(payload, "annualrevenue"))
        ),
        company_region=region,
        contact_email=email,
        contact_first_name=hubspot_value(payload, "firstname"),
        contact_last_name=hubspot_value(payload, "lastname"),
        contact_title_raw=hubspot_value(payload, "jobtitle"),
        contact_phone=hubspot_value(payload, "phone"),
        contact_geo=region,
        lead_source=(
            hubspot_value(payload, "lifecyclestage") or hubspot_value(payload, "hs_lead_status")
        ),
    )
    external_id = _id_to_text(payload.get("vid")) or _id_to_text(payload.get("id"))
    return lead, external_id


# =============================================================================
# Pipedrive
# =============================================================================

def _is_value_list(value: Any) -> bool:
    return (
        isinstance(value, list)
        and len(value) > 0
        and isinstance(value[0], dict)
        and value[0].get("value") is not None
    )


def is_pipedrive_payload(payload: Payload) -> bool:
    org_id = payload.get("org_id")
    return (
        _is_number(payload.get("person_id"))
        or _is_number(org_id)
        or isinstance(org_id, dict)
        or isinstance(payload.get("org_name"), str)
        or _is_number(payload.get("owner_id"))
        or _is_value_list(payload.get("email"))
        or _is_value_list(payload.get("phone"))
    )


def pipedrive_primary(value: Any) -> Optional[str]:
    """Plain string, or the primary (else first) entry of a value list"""
    if isinstance(value, str):
        return value
    if not isinstance(value, list) or not value:
        return None
    entries = [entry for entry in value if isinstance(entry, dict)]
    if not entries:
        return None
    primary = next((entry for entry in entries if entry.get("primary")), entries[0])
    return _as_text(primary.get("value"))


def map_pipedrive(payload: Payload) -> MapperOutput:
    email = pipedrive_primary(payload.get("email"))
    phone = pipedrive_primary(payload.get("phone"))

    org_id = payload.get("org_id")
    organization = payload.get("organization")
    company = (
        _as_text(payload.get("org_name"))
        or (_as_text(org_id.get("name")) if isinstance(org_id, dict) else None)
        or (_as_text(organization.get("name")) if isinstance(organization, dict) else None)
    )

    first_name = _as_text(payload.get("first_name"))
    last_name = _as_text(payload.get("last_name"))
    full_name = _as_text(payload.get("name"))
    if not first_name and not last_name and full_name:
        parts = full_name.split(" ")
        first_name = parts[0]
        last_name = " ".join(parts[1:]) or None

    lead = CanonicalLeadRecord(
        company_domain=derive_domain(email, None, company),
        company_name=company,
        contact_email=email,
        contact_first_name=first_name,
        contact_last_name=last_name,
        contact_title_raw=payload.get("title"),
        contact_phone=phone,
        estimated_deal_band=map_value_to_deal_band(payload.get("value")),
    )
    external_id = _id_to_text(payload.get("person_id")) or _id_to_text(payload.get("id"))
    return lead, external_id


# =============================================================================
# Raw / API fallback
# =============================================================================

def is_raw_payload(payload: Payload) -> bool:
    return True


def map_raw(payload: Payload) -> MapperOutput:
    fields = {name: payload[name] for name in LEAD_FIELD_NAMES if name in payload}
    domain = _as_text(fields.get("company_domain")) or ""
    if not domain:
        domain = email_domain(_as_text(fields.get("contact_email")))
    fields["company_domain"] = domain

    external_id = _id_to_text(payload.get("external_id")) or _id_to_text(payload.get("id"))
    return CanonicalLeadRecord(**fields), external_id


# =============================================================================
# Classifier
# =============================================================================

class SchemaMapper(NamedTuple):
    """A detector/mapper pair for one payload source"""
    source: SourceCRM
    detect: Callable[[Payload], bool]
    map: Callable[[Payload], MapperOutput]


# Detection priority: first match wins
SCHEMA_MAPPERS: Tuple[SchemaMapper, ...] = (
    SchemaMapper(SourceCRM.SALESFORCE, is_salesforce_payload, map_salesforce),
    SchemaMapper(SourceCRM.HUBSPOT, is_hubspot_payload, map_hubspot),
    SchemaMapper(SourceCRM.PIPEDRIVE, is_pipedrive_payload, map_pipedrive),
    SchemaMapper(SourceCRM.API, is_raw_payload, map_raw),
)

_MAPPERS_BY_SOURCE = {mapper.source.value: mapper for mapper in SCHEMA_MAPPERS}


def resolve_hint(hint: Any) -> Optional[SchemaMapper]:
    """Mapper named by an explicit source hint, if it names a known source"""
    if not isinstance(hint, str):
        return None
    name = hint.strip().lower()
    name = SOURCE_ALIASES.get(name, name)
    return _MAPPERS_BY_SOURCE.get(name)


def select_mapper(payload: Payload, hint: Optional[str] = None) -> SchemaMapper:
    """
    Pick the mapper for a payload.

    An explicit hint (argument, then the payload's `_source` field) wins
    without running detectors; otherwise the first matching detector wins.
    """
    mapper = resolve_hint(hint) or resolve_hint(payload.get("_source"))
    if mapper:
        return mapper

    for mapper in SCHEMA_MAPPERS:
        if mapper.detect(payload):
            return mapper

    return SCHEMA_MAPPERS[-1]


def classify_and_map(payload: Any, hint: Optional[str] = None) -> MappedLead:
    """
    Classify a CRM payload and map it to the canonical schema.

    Args:
        payload: Arbitrary key-value payload
        hint: Optional source name that overrides detection

    Returns:
        MappedLead with source, canonical lead and external id

    Raises:
        LeadValidationError: if no company domain can be derived
    """
    if not isinstance(payload, dict):
        payload = {}

    mapper = select_mapper(payload, hint)
    lead, external_id = mapper.map(payload)

    if not lead.company_domain:
        raise LeadValidationError(
            f"Could not derive company_domain from {mapper.source.value} payload",
            field="company_domain",
        )

    return MappedLead(source=mapper.source, lead=lead, external_id=external_id)
