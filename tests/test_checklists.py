import pytest

from backend.readiness.checklists import (
    CHECKLIST_ITEMS, DEVICE_CATEGORIES, PREPARATION_GUIDES, ChecklistPriority,
    get_checklists_by_priority, get_filtered_checklists, get_preparation_guide,
)
from backend.readiness.context import Framework


def _ids(items):
    return [item.id for item in items]


@pytest.mark.parametrize("category, risk_class, frameworks, expected", [
    ("surgical", "Class III", ["CFR_820"],
     ["DC001", "DC002", "MFG001", "SUR001", "QS001", "QS002"]),
    ("surgical", "Class I", ["CFR_820"], ["DC001", "DC002", "QS001", "QS002"]),
    ("diagnostic", "Class IIa", [Framework.MDR],
     ["DC001", "DC002", "MFG001", "DIAG001", "SW001", "QS001", "QS002"]),
    ("therapeutic", "Class II", ["ISO_14155"], []),
    ("surgical", "Class III", [], []),
    ("veterinary", "Class II", ["CFR_820"], []),
])
def test_filtered_checklists(category, risk_class, frameworks, expected):
    assert _ids(get_filtered_checklists(category, risk_class, frameworks)) == expected


def test_unknown_framework_names_are_ignored():
    items = get_filtered_checklists("surgical", "Class I", ["CFR_820", "NOT_A_FRAMEWORK"])
    assert _ids(items) == ["DC001", "DC002", "QS001", "QS002"]


def test_checklists_by_priority_keeps_every_key():
    items = get_filtered_checklists("surgical", "Class III", ["CFR_820"])
    grouped = get_checklists_by_priority(items)
    assert list(grouped) == ["critical", "high", "medium", "low"]
    assert _ids(grouped["critical"]) == ["DC001", "DC002", "SUR001"]
    assert _ids(grouped["high"]) == ["MFG001", "QS001", "QS002"]
    assert grouped["medium"] == [] and grouped["low"] == []
    assert get_checklists_by_priority([]) == {p.value: [] for p in ChecklistPriority}


def test_preparation_guide_lookup():
    guide = get_preparation_guide("surgical", "Class III")
    assert guide.id == "SURGICAL_CLASS_III"
    assert [s.order for s in guide.sections] == [1, 2, 3]
    assert get_preparation_guide("diagnostic", "Class II").id == "DIAGNOSTIC_CLASS_II"
    assert get_preparation_guide("surgical", "Class I") is None
    assert get_preparation_guide("therapeutic", "Class III") is None


@pytest.mark.parametrize("guide", PREPARATION_GUIDES, ids=lambda g: g.id)
def test_guide_hours_add_up(guide):
    assert sum(s.estimated_hours for s in guide.sections) == guide.total_estimated_hours
    days = [m.days_from_start for m in guide.milestones]
    assert days == sorted(days)


def test_checklist_catalog_is_consistent():
    ids = _ids(CHECKLIST_ITEMS)
    assert len(ids) == len(set(ids))
    for item in CHECKLIST_ITEMS:
        assert set(item.dependencies) <= set(ids)
        assert set(item.device_categories) <= set(DEVICE_CATEGORIES)
        assert item.frameworks and item.estimated_hours > 0
