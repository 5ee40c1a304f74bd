"""Unit tests for field level change detection."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from chronicle.audit.domain.diff import canonicalize, diff, serialize, to_jsonable


class TestDiff:
    def test_changed_and_added_fields(self):
        assert diff({"a": 1, "b": 2}, {"a": 1, "b": 3, "c": 4}) == ["b", "c"]

    def test_removed_fields_come_after_new_keys(self):
        assert diff({"a": 1, "gone": True}, {"a": 2}) == ["a", "gone"]

    def test_identical_snapshots_have_no_changes(self):
        snapshot = {"status": "pending", "items": [1, 2], "meta": {"x": 1}}
        assert diff(snapshot, dict(snapshot)) == []

    def test_missing_old_snapshot_reports_every_new_key(self):
        assert diff(None, {"a": 1, "b": 2}) == ["a", "b"]

    def test_missing_new_snapshot_reports_every_old_key(self):
        assert diff({"a": 1, "b": 2}, None) == ["a", "b"]

    def test_both_missing(self):
        assert diff(None, None) == []

    def test_nested_key_order_does_not_matter(self):
        old = {"meta": {"x": 1, "y": 2}}
        new = {"meta": {"y": 2, "x": 1}}
        assert diff(old, new) == []

    def test_nested_value_change_is_detected(self):
        assert diff({"meta": {"x": 1}}, {"meta": {"x": 2}}) == ["meta"]

    def test_integral_float_equals_int(self):
        assert diff({"amount": 1}, {"amount": 1.0}) == []

    def test_none_differs_from_missing_key(self):
        assert diff({}, {"deleted_at": None}) == ["deleted_at"]

    def test_list_order_matters(self):
        assert diff({"tags": ["a", "b"]}, {"tags": ["b", "a"]}) == ["tags"]

    def test_tuple_equals_list(self):
        assert diff({"tags": ("a", "b")}, {"tags": ["a", "b"]}) == []

    def test_bool_is_not_int(self):
        assert diff({"flag": 1}, {"flag": True}) == ["flag"]

    def test_result_is_ordered_deterministically(self):
        old = {"z": 1, "a": 1}
        new = {"z": 2, "a": 2, "m": 0}
        assert diff(old, new) == diff(old, new) == ["z", "a", "m"]


class TestCanonicalize:
    def test_sets_become_sorted_lists(self):
        assert canonicalize({3, 1, 2}) == [1, 2, 3]

    def test_rich_values_become_json_types(self):
        value = {
            "when": datetime(2026, 1, 1, tzinfo=timezone.utc),
            "id": UUID("12345678-1234-5678-1234-567812345678"),
            "price": Decimal("9.90"),
        }
        assert canonicalize(value) == {
            "when": "2026-01-01T00:00:00+00:00",
            "id": "12345678-1234-5678-1234-567812345678",
            "price": "9.90",
        }

    def test_serialize_sorts_keys(self):
        assert serialize({"b": 1, "a": [1.0, 2]}) == '{"a":[1,2],"b":1}'

    def test_to_jsonable_keeps_floats(self):
        assert to_jsonable({"amount": 1.0}) == {"amount": 1.0}
        assert isinstance(to_jsonable({"amount": 1.0})["amount"], float)
