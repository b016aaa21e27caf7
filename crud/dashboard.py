# crud/dashboard.py
from __future__ import annotations

from datetime import date
from typing import Optional

from backend import BackendClient
from crud.notifications import list_notifications
from crud.reports import budgets_by_project

STATUSES = ("ongoing", "completed", "delayed")
UPCOMING_LIMIT = 5
RECENT_LIMIT = 5


def dashboard(client: BackendClient, user_id: str, today: Optional[date] = None) -> dict:
    today_iso = (today or date.today()).isoformat()
    projects = client.select("projects", order="created_at", desc=True)
    activities = client.select("activities")
    totals = budgets_by_project(activities)
    names = {p["id"]: p["name"] for p in projects}

    counts = {s: 0 for s in STATUSES}
    for p in projects:
        if p.get("status") in counts:
            counts[p["status"]] += 1

    # ISO dates compare correctly as strings
    upcoming = sorted(
        (a for a in activities if a.get("end_date") and a["end_date"][:10] >= today_iso),
        key=lambda a: a["end_date"],
    )[:UPCOMING_LIMIT]

    return {
        "kpis": {"total": len(projects), **counts},
        "status_breakdown": [{"status": s, "count": counts[s]} for s in STATUSES],
        "budgets": [
            {"project_id": p["id"], "name": p["name"], "budget": totals.get(p["id"], 0.0)} for p in projects
        ],
        "upcoming_activities": [
            {
                "id": a["id"],
                "name": a["name"],
                "project_id": a["project_id"],
                "project_name": names.get(a["project_id"]),
                "end_date": a["end_date"],
                "status": a.get("status"),
            }
            for a in upcoming
        ],
        "recent_notifications": list_notifications(client, user_id, limit=RECENT_LIMIT),
    }
