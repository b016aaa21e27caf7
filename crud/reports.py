# crud/reports.py
from __future__ import annotations

import csv
import io
from collections import defaultdict
from typing import Optional

from backend import BackendClient
from utils.csv_import import to_number

EXPORT_COLUMNS = [
    "Project Name",
    "Vendor",
    "Status",
    "Start Date",
    "End Date",
    "Completion %",
    "Total Budget",
]


def budgets_by_project(activities: list[dict]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for a in activities:
        totals[a["project_id"]] += to_number(a.get("quantity")) * to_number(a.get("rate"))
    return totals


def report_rows(
    client: BackendClient,
    name: Optional[str] = None,
    vendor: Optional[str] = None,
    status: Optional[str] = None,
) -> list[dict]:
    projects = client.select("projects", order="created_at", desc=True)
    totals = budgets_by_project(client.select("activities", "project_id,quantity,rate"))

    needle = (name or "").strip().lower()
    out = []
    for p in projects:
        if needle and needle not in (p.get("name") or "").lower():
            continue
        if vendor and p.get("vendor") != vendor:
            continue
        if status and p.get("status") != status:
            continue
        out.append(
            {
                "id": p["id"],
                "name": p["name"],
                "vendor": p.get("vendor"),
                "status": p.get("status"),
                "start_date": p.get("start_date"),
                "end_date": p.get("end_date"),
                "completion_percentage": to_number(p.get("completion_percentage")),
                "total_budget": totals.get(p["id"], 0.0),
            }
        )
    return out


def summarize(rows: list[dict]) -> dict:
    by_status: dict[str, int] = defaultdict(int)
    for r in rows:
        by_status[r.get("status") or "unknown"] += 1
    return {
        "projects": len(rows),
        "by_status": dict(by_status),
        "total_budget": sum(r["total_budget"] for r in rows),
    }


def export_csv(rows: list[dict]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for r in rows:
        writer.writerow(
            [
                r["name"],
                r.get("vendor") or "",
                r.get("status") or "",
                r.get("start_date") or "",
                r.get("end_date") or "",
                f"{r['completion_percentage']:g}",
                f"{r['total_budget']:.2f}",
            ]
        )
    return buf.getvalue()
