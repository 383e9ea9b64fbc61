from app.core.constants import (
    ACTIVE_SYNC_STATUSES,
    ALLOWED_SYNC_TRANSITIONS,
    ITEM_SOURCES,
    PRODUCT_TYPE_LABELS,
    PRODUCT_TYPES,
    SEVERITIES,
    SYNC_STATUSES,
    TERMINAL_SYNC_STATUSES,
    THRESHOLD_TYPES,
)
from app.core.default_rubric import DEFAULT_CATEGORIES, DEFAULT_RED_FLAGS
from app.schemas.common import (
    ItemSource,
    ProductType,
    Severity,
    SyncStatus,
    ThresholdType,
)
from app.services.weight_validator import validate_category_weights


class TestConstantsConsistency:
    """Verify that constants, enums, and schemas stay in sync."""

    def test_sync_statuses_match_enum(self):
        assert SYNC_STATUSES == {member.value for member in SyncStatus}

    def test_severities_match_enum(self):
        assert SEVERITIES == {member.value for member in Severity}

    def test_threshold_types_match_enum(self):
        assert THRESHOLD_TYPES == {member.value for member in ThresholdType}

    def test_item_sources_match_enum(self):
        assert ITEM_SOURCES == {member.value for member in ItemSource}

    def test_every_product_type_has_a_label(self):
        for member in ProductType:
            assert member.value in PRODUCT_TYPES
            assert PRODUCT_TYPE_LABELS[member.value]

    def test_terminal_statuses_are_subset(self):
        assert TERMINAL_SYNC_STATUSES.issubset(SYNC_STATUSES)

    def test_active_plus_terminal_equals_all(self):
        assert ACTIVE_SYNC_STATUSES | TERMINAL_SYNC_STATUSES == SYNC_STATUSES
        assert not ACTIVE_SYNC_STATUSES & TERMINAL_SYNC_STATUSES

    def test_transition_table_covers_every_status(self):
        assert set(ALLOWED_SYNC_TRANSITIONS) == SYNC_STATUSES
        for targets in ALLOWED_SYNC_TRANSITIONS.values():
            assert set(targets).issubset(SYNC_STATUSES)

    def test_terminal_statuses_have_no_outgoing_edges(self):
        for status in TERMINAL_SYNC_STATUSES:
            assert ALLOWED_SYNC_TRANSITIONS[status] == []


class TestDefaultRubric:
    """The seeded rubric must be activatable as-is."""

    def test_default_weights_sum_to_100(self):
        assert validate_category_weights(DEFAULT_CATEGORIES).is_valid

    def test_six_categories_with_five_criteria_each(self):
        assert len(DEFAULT_CATEGORIES) == 6
        for category in DEFAULT_CATEGORIES:
            scores = [c["score"] for c in category["scoring_criteria"]]
            assert scores == [1, 2, 3, 4, 5]

    def test_twelve_red_flags_split_by_severity(self):
        assert len(DEFAULT_RED_FLAGS) == 12
        by_severity = {}
        for flag in DEFAULT_RED_FLAGS:
            by_severity[flag["severity"]] = by_severity.get(flag["severity"], 0) + 1
        assert by_severity == {"critical": 4, "high": 4, "medium": 4}

    def test_slugs_and_flag_keys_are_unique(self):
        slugs = [c["slug"] for c in DEFAULT_CATEGORIES]
        keys = [f["flag_key"] for f in DEFAULT_RED_FLAGS]
        assert len(slugs) == len(set(slugs))
        assert len(keys) == len(set(keys))

    def test_talk_ratio_is_a_percentage_threshold(self):
        flag = next(f for f in DEFAULT_RED_FLAGS if f["flag_key"] == "excessive_talk_ratio")
        assert flag["threshold_type"] == "percentage"
        assert flag["threshold_value"] == 70.0
