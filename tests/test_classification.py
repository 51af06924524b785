import pytest

from backend.readiness.classification import (
    classify, classify_risk, get_risk_specific_recommendations,
)
from backend.readiness.context import DeviceAttributes, RiskLevel


@pytest.mark.parametrize("kwargs, expected", [
    ({"fda_class": "Class III"}, RiskLevel.VERY_HIGH),
    ({"eu_class": "Class III", "is_drug_device": True}, RiskLevel.VERY_HIGH),
    ({"fda_class": "Class II"}, RiskLevel.HIGH),
    ({"eu_class": "Class IIb", "is_sterile": True}, RiskLevel.HIGH),
    ({"is_drug_device": True}, RiskLevel.HIGH),
    ({"eu_class": "Class IIa"}, RiskLevel.MEDIUM),
    ({"fda_class": "Class I", "is_measuring": True}, RiskLevel.MEDIUM),
    ({"has_active_components": True}, RiskLevel.MEDIUM),
    ({"fda_class": "Class I", "eu_class": "Class I"}, RiskLevel.LOW),
    ({}, RiskLevel.LOW),
])
def test_classify_rules_first_match_wins(kwargs, expected):
    assert classify(**kwargs) is expected


def test_classify_is_pure():
    args = ("Class II", "Class IIa", True, False, True, False)
    assert classify(*args) is classify(*args)


def test_classify_risk_carries_attributes():
    attrs = DeviceAttributes(eu_class="Class IIb", is_sterile=True, device_category="Implant")
    result = classify_risk(attrs)
    assert result.level is RiskLevel.HIGH
    assert result.eu_class == "Class IIb"
    assert result.is_sterile
    assert result.device_category == "Implant"
    assert "EU MDR Class IIb" in result.justification


def test_classify_risk_without_attributes_is_low():
    result = classify_risk(None)
    assert result.level is RiskLevel.LOW
    assert "no higher-risk attributes" in result.justification


def test_risk_levels_are_ordered():
    assert RiskLevel.LOW < RiskLevel.MEDIUM < RiskLevel.HIGH < RiskLevel.VERY_HIGH
    assert max([RiskLevel.MEDIUM, RiskLevel.VERY_HIGH, RiskLevel.LOW]) is RiskLevel.VERY_HIGH
    assert RiskLevel.LOW <= RiskLevel.HIGH <= RiskLevel.HIGH
    assert RiskLevel.VERY_HIGH >= RiskLevel.MEDIUM > RiskLevel.LOW
    assert not RiskLevel.HIGH <= RiskLevel.MEDIUM
    assert sorted([RiskLevel.HIGH, RiskLevel.LOW, RiskLevel.VERY_HIGH, RiskLevel.MEDIUM]) == [
        RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.VERY_HIGH]


def test_recommendations_follow_device_flags():
    result = classify_risk(DeviceAttributes(eu_class="Class IIa", is_sterile=True,
                                            has_active_components=True))
    recs = get_risk_specific_recommendations(result)
    assert any("sterilization" in r for r in recs)
    assert any("IEC 62304" in r for r in recs)
    assert not any("drug-device" in r for r in recs)
