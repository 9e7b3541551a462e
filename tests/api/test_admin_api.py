from __future__ import annotations

import io
from datetime import date


def test_holiday_lifecycle(logged_in, people):
    hr = logged_in("hr")

    created = hr.post("/holidays", json={"title": "Victory Day", "fromDate": "2026-12-16", "toDate": "2026-12-17"})
    assert created.status_code == 201
    holiday = created.get_json()["holiday"]
    assert (holiday["duration"], holiday["type"]) == (2, "public")

    updated = hr.post("/holidays", json={"id": holiday["id"], "title": "Victory Day", "fromDate": "2026-12-16"})
    assert updated.status_code == 200
    assert updated.get_json()["message"] == "Holiday updated successfully."

    assert [h["title"] for h in logged_in("alice").get("/holidays").get_json()["holidays"]] == ["Victory Day"]
    assert logged_in("alice").delete(f"/holidays/{holiday['id']}").status_code == 403

    deleted = hr.delete(f"/holidays/{holiday['id']}")
    assert deleted.get_json() == {"message": "Holiday deleted successfully.", "holidays": []}


def test_mark_present_then_timesheet_and_absent(logged_in, people):
    hr = logged_in("hr")

    marked = hr.post(
        "/attendance/mark-as-present",
        json={"user_id": people["alice"].id, "date": "2026-10-18", "punch_in_time": "08:00", "punch_out_time": "16:30"},
    )
    assert marked.status_code == 201
    assert marked.get_json()["attendance"]["work_duration"] == "8h 30m"

    again = hr.post("/attendance/mark-as-present", json={"user_id": people["alice"].id, "date": "2026-10-18"})
    assert again.status_code == 422

    sheet = hr.get("/attendance/timesheet", query_string={"date": "2026-10-18"}).get_json()
    assert [row["user"]["name"] for row in sheet["data"]] == ["Alice"]

    absent = hr.get("/attendance/absent").get_json()
    assert [u["name"] for u in absent["absent_users"]] == ["Bob"]
    assert absent["total"] == 1


def test_bad_date_argument(logged_in, people):
    response = logged_in("hr").get("/attendance/absent", query_string={"date": "18/10/2026"})

    assert response.status_code == 422
    assert "date" in response.get_json()["errors"]


def test_department_and_designation_endpoints(logged_in, people):
    hr = logged_in("hr")

    department = hr.post("/departments", json={"name": "Engineering", "code": "ENG"}).get_json()["department"]
    hr.post("/departments", json={"name": "Field", "parent_id": department["id"]})

    tree = logged_in("alice").get("/departments", query_string={"tree": 1}).get_json()["departments"]
    assert [n["name"] for n in tree] == ["Engineering"]
    assert [n["name"] for n in tree[0]["children"]] == ["Field"]

    designation = hr.post(
        "/designations", json={"title": "Site Engineer", "department_id": department["id"]}
    )
    assert designation.status_code == 201

    blocked = hr.delete(f"/departments/{department['id']}")
    assert blocked.status_code == 422


def test_non_numeric_ids_are_field_errors(container, logged_in, people):
    hr = logged_in("hr")
    work = container.daily_works_repo.add(date=date(2026, 10, 18), number="S-1", location="K10+200", incharge=people["alice"].id)

    responses = {
        "assigned": hr.post(f"/daily-works/{work.id}/assigned", json={"assigned": "abc"}),
        "id": hr.post("/holidays", json={"id": "x1", "title": "Ghost", "fromDate": "2026-12-16"}),
        "department": hr.post(f"/users/{people['alice'].id}/department", json={"department": "sales"}),
    }

    for field, response in responses.items():
        assert response.status_code == 422, field
        assert field in response.get_json()["errors"]


def test_image_upload_for_a_non_numeric_user(logged_in, people):
    response = logged_in("hr").post(
        "/profile/image",
        data={"user_id": "me", "profile_image": (io.BytesIO(b"\x89PNG fake"), "me.png")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 422
    assert response.get_json()["errors"] == {"user_id": ["The user_id must be an integer."]}
