import pytest

from lead_engine.stages.stage4_dimensions import compute_dimensions


def test_empty_breakdown_is_all_zero():
    dims = compute_dimensions({})
    assert (dims.fit, dims.intent, dims.timing) == (0, 0, 0)


def test_dimensions_normalize_against_maxima():
    dims = compute_dimensions({
        "email_domain": 15,
        "company_size": 20,
        "lead_source": 15,
        "deal_band": 10,
        "urgency": 10,
    })
    # 35/95, 25/35, 10/20
    assert dims.fit == 37
    assert dims.intent == 71
    assert dims.timing == 50


def test_dimensions_cap_at_100():
    dims = compute_dimensions({"seniority": 300, "use_case": 90, "urgency": 45})
    assert (dims.fit, dims.intent, dims.timing) == (100, 100, 100)


def test_penalty_only_fit_floors_at_zero():
    dims = compute_dimensions({"region_penalty": -20, "urgency": 5})
    assert dims.fit == 0
    assert dims.timing == 25


def test_unknown_signal_keys_are_ignored():
    dims = compute_dimensions({"mystery": 50})
    assert (dims.fit, dims.intent, dims.timing) == (0, 0, 0)


@pytest.mark.parametrize("breakdown", [
    {"email_domain": 15, "region_penalty": -20},
    {"company_size": 25, "revenue": 25, "seniority": 30, "industry": 20, "email_domain": 15},
    {"use_case": 5},
])
def test_dimensions_stay_in_range(breakdown):
    dims = compute_dimensions(breakdown)
    for value in (dims.fit, dims.intent, dims.timing):
        assert 0 <= value <= 100
