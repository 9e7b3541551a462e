from __future__ import annotations

from src.hr_portal.hr_portal.forms.changeset import ChangeTracker, diff_record

RECORD = {
    "id": 7,
    "name": "Alice",
    "phone": "0123",
    "marital_status": "Married",
    "employment_of_spouse": "Engineer",
    "number_of_children": 2,
    "nationality": None,
}


def test_fresh_tracker_has_only_the_key():
    tracker = ChangeTracker(RECORD)

    assert tracker.changed_data == {"id": 7}
    assert tracker.data_changed is False
    assert tracker.initial_data["nationality"] == ""


def test_edit_then_revert_drops_the_field():
    tracker = ChangeTracker(RECORD)

    tracker.set("name", "Alicia")
    assert tracker.changed_data == {"id": 7, "name": "Alicia"}
    assert tracker.data_changed is True

    tracker.set("name", "Alice")
    assert tracker.changed_data == {"id": 7}
    assert tracker.data_changed is False


def test_clearing_a_field_removes_it_from_both_views():
    tracker = ChangeTracker(RECORD)
    tracker.set("phone", "")

    assert "phone" not in tracker.changed_data
    assert "phone" not in tracker.initial_data


def test_single_marital_status_clears_spouse_fields():
    tracker = ChangeTracker(RECORD)
    tracker.set("marital_status", "Single")

    assert tracker.changed_data == {
        "id": 7,
        "marital_status": "Single",
        "employment_of_spouse": None,
        "number_of_children": None,
    }
    assert tracker.initial_data["employment_of_spouse"] == ""
    assert tracker.is_disabled("number_of_children")
    assert not tracker.is_disabled("nationality")


def test_single_on_single_record_is_not_a_change():
    record = {**RECORD, "marital_status": "Single", "employment_of_spouse": None, "number_of_children": None}
    tracker = ChangeTracker(record)
    tracker.set("marital_status", "Single")

    assert tracker.changed_data == {"id": 7}
    assert tracker.data_changed is False
    assert tracker.is_disabled("employment_of_spouse")


def test_payload_and_reset():
    tracker = ChangeTracker(RECORD, fields=["name", "phone"])
    tracker.set_many({"id": 99, "name": "Al", "phone": "0123"})

    assert tracker.payload(ruleSet="profile") == {"ruleSet": "profile", "id": 7, "name": "Al"}

    tracker.reset()
    assert tracker.changed_data == {"id": 7}
    assert tracker.initial_data == {"id": 7, "name": "Alice", "phone": "0123"}


def test_diff_record_ignores_blank_and_type_noise():
    stored = {"name": "Bob", "number_of_children": 3, "about": None}
    incoming = {"name": " Bob ", "number_of_children": "3", "about": "", "religion": "None given"}

    assert diff_record(stored, incoming) == {"religion": "None given"}


def test_diff_record_limits_to_fields():
    assert diff_record({"a": 1}, {"a": 2, "b": 3}, fields=["b"]) == {"b": 3}
