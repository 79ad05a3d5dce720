"""
FastAPI Endpoints for the Lead Enrichment & Scoring Engine
==========================================================
RESTful API for CRM lead normalization, enrichment and dual scoring.

Base URL: http://localhost:8000

Endpoints:
- GET    /                                - API info
- GET    /api/health                      - Health check
- POST   /api/leads/classify              - Detect source and map to canonical
- POST   /api/leads/score                 - Dual-score two canonical records
- POST   /api/leads/enrich                - Full pipeline for a CRM payload
- PUT    /api/tenants/{tenant_id}/config  - Create/replace tenant config
- GET    /api/tenants/{tenant_id}/config  - Get tenant config (defaults if none)
- DELETE /api/tenants/{tenant_id}/config  - Delete tenant config
- GET    /api/runs/{run_id}               - Get a scoring run audit record
- GET    /api/stats                       - Engine statistics
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from fastapi import FastAPI, HTTPException, Query, Body, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from ..models.schemas import (
    LeadValidationError,
    ClassifyResponse,
    DualScoreRequest,
    EnrichLeadResponse,
    ScoringResult,
    ScoringRun,
)
from ..models.tenant_config import TenantScoringConfig, create_default_tenant_config
from ..engine import LeadScoringEngine
from ..stages.stage1_mapping import classify_and_map
from ..stages.stage2_enrichment import create_provider, provider_name
from ..config.settings import APP_CONFIG
from .. import __version__


# =============================================================================
# FastAPI App Initialization
# =============================================================================

app = FastAPI(
    title="Lead Enrichment & Scoring API",
    description="""
## CRM Lead Normalization, Enrichment & Dual Scoring

Accepts leads from Salesforce, HubSpot, Pipedrive or plain API callers,
normalizes them, enriches missing fields and scores them twice
(before and after enrichment) so the value of enrichment is visible as **lift**.

### Quick Start:
1. Use `/api/leads/classify` to see how a payload is mapped
2. Use `/api/leads/enrich` for the full pipeline
3. Use `/api/tenants/{tenant_id}/config` to tune weights and thresholds
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Storage & Engine Initialization
# =============================================================================

# In-memory storage (persistence is the caller's concern)
tenant_configs: Dict[str, TenantScoringConfig] = {}
scoring_runs: Dict[str, ScoringRun] = {}

engine = LeadScoringEngine(
    enrichment_provider=create_provider(APP_CONFIG["enrichment_provider"]),
)


def _get_tenant_config(tenant_id: Optional[str]) -> TenantScoringConfig:
    """Stored config for a tenant, or defaults"""
    if tenant_id and tenant_id in tenant_configs:
        return tenant_configs[tenant_id]
    return create_default_tenant_config(tenant_id=tenant_id)


# =============================================================================
# Health & Info Endpoints
# =============================================================================

@app.get("/", tags=["Info"])
async def root():
    """API information and available endpoints"""
    return {
        "service": "Lead Enrichment & Scoring Engine",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "Classify": "POST /api/leads/classify",
            "Dual Score": "POST /api/leads/score",
            "Enrich": "POST /api/leads/enrich",
            "Tenant Config": "PUT/GET/DELETE /api/tenants/{tenant_id}/config",
            "Scoring Run": "GET /api/runs/{run_id}",
            "Health": "GET /api/health",
        },
    }


@app.get("/api/health", tags=["Info"])
async def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "service": "Lead Enrichment & Scoring Engine",
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat(),
        "enrichment_provider": provider_name(engine.enrichment_provider),
    }


# =============================================================================
# Lead Endpoints
# =============================================================================

@app.post("/api/leads/classify", response_model=ClassifyResponse, tags=["Leads"])
async def classify_lead(
    payload: Dict[str, Any] = Body(..., description="Raw CRM payload"),
    source: Optional[str] = Query(None, description="Source hint: salesforce, hubspot, pipedrive, api"),
):
    """Detect the payload's CRM and map it to the canonical schema"""
    try:
        mapped = classify_and_map(payload, source)
    except LeadValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return ClassifyResponse(
        source=mapped.source,
        external_id=mapped.external_id,
        lead=mapped.lead,
    )


@app.post("/api/leads/score", response_model=ScoringResult, tags=["Leads"])
async def score_leads(request: DualScoreRequest):
    """
    Dual-score canonical records.

    When `enriched_lead` is omitted the raw lead is scored as both
    snapshots (lift 0).
    """
    config = request.tenant_config or create_default_tenant_config()
    enriched = request.enriched_lead or request.raw_lead
    return engine.score_lead_dual(request.raw_lead, enriched, config)


@app.post("/api/leads/enrich", response_model=EnrichLeadResponse, tags=["Leads"])
async def enrich_lead(
    payload: Dict[str, Any] = Body(..., description="Raw CRM payload"),
    source: Optional[str] = Query(None, description="Source hint: salesforce, hubspot, pipedrive, api"),
    x_tenant_id: Optional[str] = Header(None, description="Tenant whose scoring config applies"),
):
    """
    Full pipeline: classify → enrich → dual score → dimensions.

    The response mirrors the scoring object at the top level for
    CRM field mapping convenience.
    """
    config = _get_tenant_config(x_tenant_id)

    try:
        result = await engine.process_payload(payload, hint=source, tenant_config=config)
    except LeadValidationError as e:
        logger.warning(f"Rejected payload for tenant {x_tenant_id}: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    scoring_runs[result.run.run_id] = result.run
    scoring = result.scoring

    return EnrichLeadResponse(
        lead_id=result.external_id or str(uuid.uuid4()),
        scoring_run_id=result.run.run_id,
        source=result.source,
        external_id=result.external_id,
        enriched=result.enriched_lead,
        scoring=scoring,
        lead_score=scoring.enriched_score,
        lead_tier=scoring.enriched_tier,
        scoring_version=scoring.scoring_version,
        score_breakdown=scoring.score_breakdown,
        reasons=scoring.reasons,
        raw_score=scoring.raw_score,
        raw_tier=scoring.raw_tier,
        enriched_score=scoring.enriched_score,
        enriched_tier=scoring.enriched_tier,
        lift=scoring.lift,
        dimensions=scoring.dimensions,
        enrichment_sources=result.enrichment.sources,
        enrichment_duration_ms=result.enrichment.duration_ms,
    )


# =============================================================================
# Tenant Configuration Endpoints
# =============================================================================

@app.put("/api/tenants/{tenant_id}/config", tags=["Configuration"])
async def put_tenant_config(tenant_id: str, config: TenantScoringConfig):
    """Create or replace a tenant's scoring configuration"""
    stored = config.model_copy(update={"tenant_id": tenant_id})
    tenant_configs[tenant_id] = stored
    logger.info(f"Stored scoring config {stored.scoring_version} for tenant {tenant_id}")
    return {
        "tenant_id": tenant_id,
        "status": "saved",
        "config": stored,
    }


@app.get("/api/tenants/{tenant_id}/config", response_model=TenantScoringConfig, tags=["Configuration"])
async def get_tenant_config(tenant_id: str):
    """Get a tenant's scoring configuration (defaults when none is stored)"""
    return _get_tenant_config(tenant_id)


@app.delete("/api/tenants/{tenant_id}/config", tags=["Configuration"])
async def delete_tenant_config(tenant_id: str):
    """Delete a tenant's scoring configuration"""
    if tenant_id not in tenant_configs:
        raise HTTPException(status_code=404, detail="Tenant config not found")
    del tenant_configs[tenant_id]
    return {"status": "deleted", "tenant_id": tenant_id}


# =============================================================================
# Audit & Statistics
# =============================================================================

@app.get("/api/runs/{run_id}", response_model=ScoringRun, tags=["Audit"])
async def get_scoring_run(run_id: str):
    """Get a scoring run audit record"""
    if run_id not in scoring_runs:
        raise HTTPException(status_code=404, detail="Scoring run not found")
    return scoring_runs[run_id]


@app.get("/api/stats", tags=["Info"])
async def get_stats():
    """Get engine statistics"""
    return {
        "engine": engine.get_stats(),
        "tenant_configs": len(tenant_configs),
        "scoring_runs": len(scoring_runs),
    }


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
            "type": type(exc).__name__,
        }
    )
