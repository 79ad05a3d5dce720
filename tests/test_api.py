import pytest
from fastapi.testclient import TestClient

from lead_engine.api import endpoints
from lead_engine.api.endpoints import app
from lead_engine.stages.stage2_enrichment import StaticEnrichmentProvider


client = TestClient(app)

HUBSPOT_PAYLOAD = {
    "vid": 2024,
    "properties": {
        "email": {"value": "john@acme.com"},
        "firstname": {"value": "John"},
        "jobtitle": {"value": "Sales Manager"},
    },
}


@pytest.fixture(autouse=True)
def isolated_state():
    provider = endpoints.engine.enrichment_provider
    endpoints.engine.enrichment_provider = StaticEnrichmentProvider({
        "acme.com": {
            "company_employee_band": "201-1000",
            "company_revenue_band": "50-250M",
            "urgency_band": "ThisQuarter",
            "company_region": "Ontario, Canada",
        },
    })
    endpoints.tenant_configs.clear()
    endpoints.scoring_runs.clear()
    endpoints.engine.reset_stats()
    yield
    endpoints.engine.enrichment_provider = provider
    endpoints.tenant_configs.clear()
    endpoints.scoring_runs.clear()


def test_root_and_health():
    assert client.get("/").status_code == 200

    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["enrichment_provider"] == "static"


def test_classify_detects_source():
    response = client.post("/api/leads/classify", json={"LastName": "Doe", "Company": "Acme", "NumberOfEmployees": 5000})
    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "salesforce"
    assert data["lead"]["company_domain"] == "acme.com"
    assert data["lead"]["company_employee_band"] == "1000+"


def test_classify_with_source_hint():
    response = client.post(
        "/api/leads/classify",
        params={"source": "api"},
        json={"Company": "Acme", "company_domain": "acme.io"},
    )
    assert response.status_code == 200
    assert response.json()["source"] == "api"
    assert response.json()["lead"]["company_domain"] == "acme.io"


def test_classify_without_domain_is_422():
    response = client.post("/api/leads/classify", json={"FirstName": "Nobody"})
    assert response.status_code == 422
    assert "company_domain" in response.json()["detail"]


def test_dual_score_endpoint():
    response = client.post("/api/leads/score", json={
        "raw_lead": {"company_domain": "acme.com", "contact_email": "john@acme.com", "contact_title_raw": "Sales Manager"},
        "enriched_lead": {
            "company_domain": "acme.com",
            "contact_email": "john@acme.com",
            "contact_title_raw": "Sales Manager",
            "company_employee_band": "201-1000",
            "company_revenue_band": "50-250M",
            "urgency_band": "ThisQuarter",
        },
    })
    assert response.status_code == 200
    data = response.json()
    assert data["raw_score"] == 25
    assert data["enriched_score"] == 75
    assert data["lift"] == 50
    assert data["score"] == 75
    assert data["tier"] == "Hot"
    assert data["dimensions"] == {"fit": 68, "intent": 0, "timing": 50}


def test_dual_score_without_enriched_lead_has_zero_lift():
    response = client.post("/api/leads/score", json={
        "raw_lead": {"company_domain": "acme.com", "company_industry": "Fintech"},
        "tenant_config": {"priority_industries": ["fintech"]},
    })
    assert response.status_code == 200
    assert response.json()["lift"] == 0
    assert response.json()["score_breakdown"] == {"industry": 20}


def test_dual_score_missing_raw_lead_is_422():
    assert client.post("/api/leads/score", json={}).status_code == 422


def test_enrich_endpoint_and_run_lookup():
    response = client.post("/api/leads/enrich", json=HUBSPOT_PAYLOAD)
    assert response.status_code == 200
    data = response.json()

    assert data["source"] == "hubspot"
    assert data["lead_id"] == "2024"
    assert data["lead_score"] == data["scoring"]["enriched_score"] == 75
    assert data["lead_tier"] == "Hot"
    assert data["raw_score"] == 25
    assert data["lift"] == 50
    assert data["enriched"]["company_employee_band"] == "201-1000"
    assert data["enrichment_sources"] == ["static"]

    run = client.get(f"/api/runs/{data['scoring_run_id']}")
    assert run.status_code == 200
    assert run.json()["input_snapshot"]["company_employee_band"] is None
    assert run.json()["lift"] == 50

    assert client.get("/api/stats").json()["scoring_runs"] == 1


def test_enrich_uses_tenant_config_from_header():
    config = {"excluded_regions": ["canada"], "hot_threshold": 90}
    assert client.put("/api/tenants/north/config", json=config).status_code == 200

    response = client.post("/api/leads/enrich", json=HUBSPOT_PAYLOAD, headers={"X-Tenant-Id": "north"})
    assert response.status_code == 200
    data = response.json()
    assert data["score_breakdown"]["region_penalty"] == -20
    assert data["lead_score"] == 55
    assert data["lead_tier"] == "Warm"
    assert "Excluded region: Ontario, Canada (-20)" in data["reasons"]


def test_enrich_without_domain_is_422():
    response = client.post("/api/leads/enrich", json={"vid": 1, "properties": {}})
    assert response.status_code == 422


def test_tenant_config_lifecycle():
    # Defaults when nothing is stored
    response = client.get("/api/tenants/acme/config")
    assert response.status_code == 200
    assert response.json()["hot_threshold"] == 70
    assert response.json()["tenant_id"] == "acme"

    saved = client.put("/api/tenants/acme/config", json={"tenant_id": "ignored", "scoring_version": "v2"})
    assert saved.status_code == 200
    assert saved.json()["config"]["tenant_id"] == "acme"

    assert client.get("/api/tenants/acme/config").json()["scoring_version"] == "v2"
    assert client.delete("/api/tenants/acme/config").status_code == 200
    assert client.delete("/api/tenants/acme/config").status_code == 404


def test_invalid_tenant_config_is_422():
    response = client.put("/api/tenants/acme/config", json={"hot_threshold": "very hot"})
    assert response.status_code == 422


def test_unknown_run_is_404():
    assert client.get("/api/runs/does-not-exist").status_code == 404


def test_oversized_weight_override_is_rejected_and_enrich_still_scores():
    response = client.put("/api/tenants/greedy/config", json={"weight_overrides": {"revenue": 1e308}})
    assert response.status_code == 422

    enriched = client.post("/api/leads/enrich", json=HUBSPOT_PAYLOAD, headers={"X-Tenant-Id": "greedy"})
    assert enriched.status_code == 200
    assert enriched.json()["lead_score"] == 75
