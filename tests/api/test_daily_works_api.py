from __future__ import annotations

import io
from datetime import date

import pytest

from src.hr_portal.hr_portal.daily_works.export import TEMPLATE_HEADER, XLSX_MIMETYPE


@pytest.fixture
def sections(container, people):
    container.jurisdictions_repo.add("Section A", "K0+000", "K23+999", people["alice"].id)
    container.jurisdictions_repo.add("Section B", "K24+000", "K48+000", people["bob"].id)


def payload(number, location="K10+200", **extra):
    return {
        "date": "2026-10-18",
        "number": number,
        "planned_time": "10:00 AM",
        "type": "Structure",
        "description": "Level check",
        "location": location,
        "side": "SR-R",
        **extra,
    }


def test_add_and_validation(sections, logged_in, people):
    hr = logged_in("hr")

    created = hr.post("/daily-works/add", json=payload("S-1"))
    assert created.status_code == 201
    body = created.get_json()
    assert body["message"] == "Daily work added successfully"
    assert body["dailyWork"]["incharge"] == people["alice"].id

    duplicate = hr.post("/daily-works/add", json=payload("S-1"))
    assert duplicate.status_code == 422
    assert "number" in duplicate.get_json()["errors"]

    assert logged_in("alice").post("/daily-works/add", json=payload("S-2")).status_code == 403


def test_employees_only_see_their_own_works(sections, container, logged_in, people):
    repo = container.daily_works_repo
    repo.add(date=date(2026, 10, 18), number="S-1", location="K10+200", incharge=people["alice"].id)
    repo.add(date=date(2026, 10, 18), number="S-2", location="K10+200", incharge=people["bob"].id, assigned=people["alice"].id)
    repo.add(date=date(2026, 10, 18), number="S-3", location="K10+200", incharge=people["bob"].id)

    mine = logged_in("alice").get("/daily-works/paginate").get_json()
    everything = logged_in("hr").get("/daily-works/paginate", query_string={"perPage": 2}).get_json()

    assert sorted(w["number"] for w in mine["data"]) == ["S-1", "S-2"]
    assert mine["total"] == 2
    assert (everything["total"], everything["last_page"], len(everything["data"])) == (3, 2, 2)


def test_status_updates_need_the_incharge_or_assignee(sections, container, logged_in, people):
    work = container.daily_works_repo.add(date=date(2026, 10, 18), number="S-1", location="K10+200", incharge=people["alice"].id)

    assert logged_in("bob").post(f"/daily-works/{work.id}/status", json={"status": "completed"}).status_code == 403

    response = logged_in("alice").post(
        f"/daily-works/{work.id}/status", json={"status": "completed", "inspection_result": "pass"}
    )
    body = response.get_json()
    assert body["message"] == "Status updated successfully"
    assert body["dailyWork"]["status"] == "completed"
    assert body["dailyWork"]["completion_time"] == "2026-10-18T09:30:00"


def test_delete_reports_the_number(sections, container, logged_in, people):
    work = container.daily_works_repo.add(date=date(2026, 10, 18), number="S-9", location="K10+200", incharge=people["alice"].id)

    response = logged_in("admin").delete(f"/daily-works/{work.id}")

    assert response.get_json() == {"message": "Daily work 'S-9' deleted successfully", "id": work.id}
    assert logged_in("admin").delete(f"/daily-works/{work.id}").status_code == 404


def test_export_csv_download(sections, container, logged_in, people):
    container.daily_works_repo.add(date=date(2026, 10, 18), number="S-1", location="K10+200", incharge=people["alice"].id)

    response = logged_in("hr").post("/daily-works/export", json={"columns": "number,incharge", "format": "csv"})

    assert response.status_code == 200
    assert response.headers["Content-Disposition"] == "attachment; filename=daily_works_2026_10_18_09_30_00.csv"
    assert response.data.decode("utf-8-sig").splitlines() == ["RFI Number,In Charge", "S-1,Alice"]


def test_import_over_multipart(sections, container, logged_in, people):
    body = "\n".join(
        [
            ",".join(TEMPLATE_HEADER),
            "2026-10-18,S-100,Structure,Wall check,K10+200,SR-R,,10:00 AM",
            "2026-10-18,P-101,Pavement,Base course,K30+100,SR-L,,2:00 PM",
        ]
    )

    response = logged_in("hr").post(
        "/daily-works/import",
        data={"file": (io.BytesIO(body.encode("utf-8")), "rfis.csv")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    result = response.get_json()
    assert result["message"] == "Import completed successfully."
    assert result["results"][0]["processed_count"] == 2
    assert container.daily_works_repo.get_by_number("P-101").incharge == people["bob"].id


def test_import_without_file_is_a_validation_error(logged_in, people):
    response = logged_in("hr").post("/daily-works/import", data={"note": "no file"}, content_type="multipart/form-data")

    assert response.status_code == 422
    assert response.get_json()["errors"] == {"file": ["The file field is required."]}


def test_template_download(logged_in, people):
    response = logged_in("hr").get("/daily-works/import/template")

    assert response.mimetype == XLSX_MIMETYPE
    assert "daily_works_import_template_2026-10-18_09-30-00.xlsx" in response.headers["Content-Disposition"]
    assert response.data[:2] == b"PK"


def test_summary_is_scoped_for_employees(sections, logged_in, people):
    hr = logged_in("hr")
    hr.post("/daily-works/add", json=payload("S-1"))
    hr.post("/daily-works/add", json=payload("S-2", location="K30+000"))

    everyone = hr.get("/daily-works-summary").get_json()
    own = logged_in("alice").get("/daily-works-summary").get_json()

    assert everyone["totals"]["totalDailyWorks"] == 2
    assert [s["incharge"] for s in own["summaries"]] == [people["alice"].id]
    assert own["totals"]["pending"] == 1
