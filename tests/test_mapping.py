import pytest

from lead_engine.models.schemas import (
    DealBand,
    EmployeeBand,
    LeadValidationError,
    RevenueBand,
    SourceCRM,
)
from lead_engine.stages.stage1_mapping import (
    classify_and_map,
    derive_domain,
    extract_domain_from_url,
    map_employee_count_to_band,
    map_revenue_to_band,
    map_value_to_deal_band,
    select_mapper,
)


def test_salesforce_minimal_payload():
    mapped = classify_and_map({"LastName": "Doe", "Company": "Acme", "NumberOfEmployees": 5000})

    assert mapped.source == SourceCRM.SALESFORCE
    assert mapped.lead.company_domain == "acme.com"
    assert mapped.lead.company_name == "Acme"
    assert mapped.lead.company_employee_band == EmployeeBand.B_1000_PLUS
    assert mapped.lead.contact_last_name == "Doe"
    assert mapped.external_id is None


def test_salesforce_full_payload():
    payload = {
        "Id": "00Q5e00000AbCdEfGH",
        "FirstName": "John",
        "LastName": "Smith",
        "Email": "John@Acme.com",
        "Title": "VP Sales",
        "Company": "Acme Corp",
        "Website": "https://www.acme-corp.com",
        "Industry": "Software",
        "NumberOfEmployees": 350,
        "AnnualRevenue": 12_000_000,
        "Country": "USA",
        "State": "CA",
        "LeadSource": "Referral",
    }
    mapped = classify_and_map(payload)
    lead = mapped.lead

    assert mapped.source == SourceCRM.SALESFORCE
    assert mapped.external_id == "00Q5e00000AbCdEfGH"
    # Email domain beats website
    assert lead.company_domain == "acme.com"
    assert lead.company_employee_band == EmployeeBand.B_201_1000
    assert lead.company_revenue_band == RevenueBand.R_10_50M
    assert lead.company_region == "CA, USA"
    assert lead.contact_geo == "CA, USA"
    assert lead.lead_source == "Referral"
    assert lead.contact_title_raw == "VP Sales"


def test_salesforce_website_fallback():
    mapped = classify_and_map({"LastName": "Doe", "Website": "www.Initech.io/about"})
    assert mapped.lead.company_domain == "initech.io"


def test_salesforce_wrong_types_are_absent():
    mapped = classify_and_map({"LastName": "Doe", "Company": "Acme", "NumberOfEmployees": "lots", "Industry": 42})
    assert mapped.lead.company_employee_band is None
    assert mapped.lead.company_industry is None


def test_hubspot_nested_properties():
    payload = {
        "vid": 101,
        "properties": {
            "email": {"value": "jane@globex.io"},
            "firstname": {"value": "Jane"},
            "jobtitle": {"value": "Director of Marketing"},
            "numberofemployees": {"value": "120"},
            "annualrevenue": {"value": "2500000"},
            "lifecyclestage": {"value": "lead"},
        },
    }
    mapped = classify_and_map(payload)

    assert mapped.source == SourceCRM.HUBSPOT
    assert mapped.external_id == "101"
    assert mapped.lead.company_domain == "globex.io"
    assert mapped.lead.contact_first_name == "Jane"
    assert mapped.lead.company_employee_band == EmployeeBand.B_51_200
    assert mapped.lead.company_revenue_band == RevenueBand.R_1_10M
    assert mapped.lead.lead_source == "lead"


def test_hubspot_flat_properties():
    payload = {
        "firstname": "Jane",
        "email": "jane@globex.io",
        "numberofemployees": "45 people",
        "hs_lead_status": "NEW",
    }
    mapped = classify_and_map(payload)

    assert mapped.source == SourceCRM.HUBSPOT
    assert mapped.lead.company_domain == "globex.io"
    assert mapped.lead.company_employee_band == EmployeeBand.B_11_50
    assert mapped.lead.lead_source == "NEW"


def test_hubspot_v3_bare_string_properties():
    mapped = classify_and_map({"id": "55", "properties": {"email": "sam@hooli.com", "company": "Hooli"}})
    assert mapped.source == SourceCRM.HUBSPOT
    assert mapped.external_id == "55"
    assert mapped.lead.company_domain == "hooli.com"
    assert mapped.lead.company_name == "Hooli"


def test_pipedrive_primary_email_and_deal_band():
    payload = {
        "person_id": 7,
        "name": "Ana Lima",
        "email": [
            {"value": "ana@old.com", "primary": False},
            {"value": "ana@initech.com", "primary": True},
        ],
        "phone": [{"value": "+1 555 0100", "primary": True}],
        "org_name": "Initech",
        "value": 50_000,
    }
    mapped = classify_and_map(payload)
    lead = mapped.lead

    assert mapped.source == SourceCRM.PIPEDRIVE
    assert mapped.external_id == "7"
    assert lead.company_domain == "initech.com"
    assert lead.contact_email == "ana@initech.com"
    assert lead.contact_phone == "+1 555 0100"
    assert lead.contact_first_name == "Ana"
    assert lead.contact_last_name == "Lima"
    assert lead.company_name == "Initech"
    assert lead.estimated_deal_band == DealBand.MID


def test_pipedrive_org_object_slug_fallback():
    mapped = classify_and_map({"org_id": {"name": "Wayne Enterprises"}, "title": "CFO"})
    assert mapped.source == SourceCRM.PIPEDRIVE
    assert mapped.lead.company_domain == "wayneenterprises.com"


def test_raw_fallback_infers_domain_from_email():
    mapped = classify_and_map({"contact_email": "bob@umbrella.co", "urgency_band": "ThisMonth", "external_id": 9})

    assert mapped.source == SourceCRM.API
    assert mapped.lead.company_domain == "umbrella.co"
    assert mapped.lead.urgency_band.value == "ThisMonth"
    assert mapped.external_id == "9"


def test_raw_unknown_enum_value_is_absent():
    mapped = classify_and_map({"company_domain": "acme.com", "urgency_band": "Yesterday"})
    assert mapped.lead.urgency_band is None


def test_hint_overrides_detection():
    payload = {"Company": "Acme", "company_domain": "acme.io"}

    assert classify_and_map(payload).source == SourceCRM.SALESFORCE

    mapped = classify_and_map(payload, hint="api")
    assert mapped.source == SourceCRM.API
    assert mapped.lead.company_domain == "acme.io"

    assert classify_and_map(payload, hint="RAW").source == SourceCRM.API


def test_payload_source_field_acts_as_hint():
    mapper = select_mapper({"_source": "pipedrive", "Company": "Acme"})
    assert mapper.source == SourceCRM.PIPEDRIVE


def test_unknown_hint_falls_back_to_detection():
    mapped = classify_and_map({"LastName": "Doe", "Company": "Acme"}, hint="zoho")
    assert mapped.source == SourceCRM.SALESFORCE


@pytest.mark.parametrize("payload", [{}, {"FirstName": "Only"}, None, ["not", "a", "dict"]])
def test_missing_domain_raises(payload):
    with pytest.raises(LeadValidationError) as exc_info:
        classify_and_map(payload)
    assert exc_info.value.field == "company_domain"


def test_mapping_is_idempotent():
    payload = {"LastName": "Doe", "Company": "Acme", "Email": "doe@acme.com", "AnnualRevenue": 75_000_000}
    assert classify_and_map(payload) == classify_and_map(payload)


@pytest.mark.parametrize("count,band", [
    (1, "1-10"),
    (10, "1-10"),
    (11, "11-50"),
    (200, "51-200"),
    (1000, "201-1000"),
    (1001, "1000+"),
])
def test_employee_band_boundaries(count, band):
    assert map_employee_count_to_band(count) == band


@pytest.mark.parametrize("revenue,band", [
    (999_999, "<1M"),
    (1_000_000, "1-10M"),
    (49_999_999, "10-50M"),
    (250_000_000, "250M+"),
])
def test_revenue_band_boundaries(revenue, band):
    assert map_revenue_to_band(revenue) == band


def test_deal_band_boundaries():
    assert map_value_to_deal_band(9_999) == "Small"
    assert map_value_to_deal_band(10_000) == "Mid"
    assert map_value_to_deal_band(100_000) == "Enterprise"
    assert map_value_to_deal_band(None) is None
    assert map_value_to_deal_band(float("nan")) is None


def test_domain_derivation_order():
    assert derive_domain("a@b.com", "https://c.com", "D") == "b.com"
    assert derive_domain("no-at-sign", "https://c.com", "D") == "c.com"
    assert derive_domain(None, None, "Big Co, Inc.") == "bigcoinc.com"
    assert derive_domain(None, None, None) == ""
    assert extract_domain_from_url("HTTP://WWW.Example.org/path?q=1") == "example.org"
