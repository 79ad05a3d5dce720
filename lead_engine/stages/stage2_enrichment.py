"""
Stage 2: Enrichment
===================
Fills gaps in a canonical lead from an external provider.

- Providers are async callables returning a partial canonical record.
- `merge_enrichment` only fills absent fields; the original always wins
  and `company_domain` is never replaced.
- `run_enrichment` isolates provider latency and failures from scoring.
"""

import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from loguru import logger

from ..models.schemas import (
    CanonicalLeadRecord,
    PartialLeadRecord,
    EnrichmentOutcome,
    LEAD_FIELD_NAMES,
)

PartialInput = Union[PartialLeadRecord, Mapping[str, Any], None]
EnrichmentProvider = Callable[[CanonicalLeadRecord], Awaitable[PartialInput]]


def to_partial(partial: PartialInput) -> PartialLeadRecord:
    """Coerce provider output to a PartialLeadRecord"""
    if isinstance(partial, PartialLeadRecord):
        return partial
    if isinstance(partial, CanonicalLeadRecord):
        return PartialLeadRecord(**partial.model_dump())
    if isinstance(partial, Mapping):
        return PartialLeadRecord(**{k: v for k, v in partial.items() if isinstance(k, str)})
    return PartialLeadRecord()


def merge_enrichment(
    original: CanonicalLeadRecord,
    partial: PartialInput,
) -> CanonicalLeadRecord:
    """
    Fill-gaps merge of an enrichment result into a canonical lead.

    Args:
        original: Lead as mapped from the CRM payload
        partial: Provider output (model, dict of canonical fields, or None)

    Returns:
        New CanonicalLeadRecord; `original` is left untouched
    """
    patch = to_partial(partial)
    merged: Dict[str, Any] = {}

    for name in LEAD_FIELD_NAMES:
        if name == "company_domain":
            merged[name] = original.company_domain
            continue
        value = getattr(original, name)
        merged[name] = value if value is not None else getattr(patch, name)

    return CanonicalLeadRecord(**merged)


def provider_name(provider: Any) -> str:
    return getattr(provider, "name", None) or getattr(provider, "__name__", None) or type(provider).__name__


async def run_enrichment(
    lead: CanonicalLeadRecord,
    provider: Optional[EnrichmentProvider],
) -> EnrichmentOutcome:
    """
    Call an enrichment provider for one lead.

    Provider exceptions are logged and reported on the outcome instead
    of propagating, so scoring can continue with the original record.
    """
    if provider is None:
        return EnrichmentOutcome()

    name = provider_name(provider)
    start_time = time.time()

    try:
        result = await provider(lead)
    except Exception as e:
        duration = (time.time() - start_time) * 1000
        error_msg = f"Enrichment via {name} failed: {str(e)}"
        logger.error(error_msg)
        return EnrichmentOutcome(
            sources=[name],
            duration_ms=round(duration, 2),
            error=error_msg,
        )

    duration = (time.time() - start_time) * 1000
    partial = to_partial(result)
    filled = sorted(partial.model_dump(exclude_none=True).keys())
    logger.info(
        f"Enrichment via {name} for {lead.company_domain} returned "
        f"{len(filled)} fields in {duration:.1f}ms"
    )

    return EnrichmentOutcome(
        partial=partial,
        sources=[name] if filled else [],
        duration_ms=round(duration, 2),
    )


# =============================================================================
# Built-in providers
# =============================================================================

class NullEnrichmentProvider:
    """Provider that never adds data"""

    name = "none"

    async def __call__(self, lead: CanonicalLeadRecord) -> PartialLeadRecord:
        return PartialLeadRecord()


class StaticEnrichmentProvider:
    """
    In-memory provider keyed by company domain.

    Useful for demos, tests, and pre-fetched firmographic snapshots.
    """

    name = "static"

    def __init__(self, records: Optional[Mapping[str, PartialInput]] = None):
        self.records = {
            domain.lower(): to_partial(record)
            for domain, record in (records or {}).items()
        }

    async def __call__(self, lead: CanonicalLeadRecord) -> PartialLeadRecord:
        return self.records.get(lead.company_domain.lower(), PartialLeadRecord())


def create_provider(kind: str) -> EnrichmentProvider:
    """Build a provider by name ("none" or "static")"""
    kind = (kind or "none").strip().lower()
    if kind == "static":
        return StaticEnrichmentProvider()
    if kind != "none":
        logger.warning(f"Unknown enrichment provider '{kind}', using none")
    return NullEnrichmentProvider()
