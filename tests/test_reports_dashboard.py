import csv
import io
from datetime import date, timedelta

import pytest

from conftest import project_payload


@pytest.fixture
def projects(client, backend, user):
    a = client.post(
        "/projects",
        json=project_payload(name="Road works", vendor="Acme", completion_percentage=50),
        headers=user["headers"],
    ).json()["project"]
    b = client.post(
        "/projects",
        json=project_payload(
            name="Bridge repair",
            vendor="Zenith",
            status="delayed",
            activities=[{"name": "Steel", "quantity": 3, "rate": 33.333}],
        ),
        headers=user["headers"],
    ).json()["project"]
    backend.insert(None, "vendors", [{"name": "Bolt Ltd"}])
    return a, b


def test_report_rows_and_filters(client, user, projects):
    body = client.get("/reports", headers=user["headers"]).json()
    budgets = {r["name"]: r["total_budget"] for r in body["rows"]}
    assert budgets["Road works"] == 65.0
    assert budgets["Bridge repair"] == pytest.approx(99.999)
    assert body["summary"]["projects"] == 2
    assert body["vendors"] == ["Bolt Ltd"]

    by_name = client.get("/reports?name=ROAD", headers=user["headers"]).json()["rows"]
    assert [r["name"] for r in by_name] == ["Road works"]
    by_vendor = client.get("/reports?vendor=Zenith", headers=user["headers"]).json()["rows"]
    assert [r["name"] for r in by_vendor] == ["Bridge repair"]
    # vendor match is exact
    assert client.get("/reports?vendor=zen", headers=user["headers"]).json()["rows"] == []
    by_status = client.get("/reports?status=delayed", headers=user["headers"]).json()["rows"]
    assert [r["name"] for r in by_status] == ["Bridge repair"]


def test_export_csv(client, user, projects):
    resp = client.get("/reports/export?status=ongoing", headers=user["headers"])
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "projects_report.csv" in resp.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == ["Project Name", "Vendor", "Status", "Start Date", "End Date", "Completion %", "Total Budget"]
    assert rows[1:] == [["Road works", "Acme", "ongoing", "2026-01-01", "2026-06-30", "50", "65.00"]]


def test_export_rounds_budget_to_two_decimals(client, user, projects):
    resp = client.get("/reports/export?vendor=Zenith", headers=user["headers"])
    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[1][-1] == "100.00"


def test_dashboard(client, backend, user, projects):
    road, bridge = projects
    soon = (date.today() + timedelta(days=3)).isoformat()
    past = (date.today() - timedelta(days=3)).isoformat()
    backend.insert(
        None,
        "activities",
        [
            {"project_id": road["id"], "name": "Soon", "end_date": soon},
            {"project_id": road["id"], "name": "Past", "end_date": past},
        ],
    )
    backend.insert(None, "notifications", [{"user_id": user["id"], "message": f"n{i}"} for i in range(7)])

    body = client.get("/dashboard", headers=user["headers"]).json()
    assert body["kpis"] == {"total": 2, "ongoing": 1, "completed": 0, "delayed": 1}
    assert {"status": "delayed", "count": 1} in body["status_breakdown"]
    assert {b["name"]: b["budget"] for b in body["budgets"]}["Road works"] == 65.0
    assert [a["name"] for a in body["upcoming_activities"]] == ["Soon"]
    assert body["upcoming_activities"][0]["project_name"] == "Road works"
    assert len(body["recent_notifications"]) == 5
