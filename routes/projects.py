import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from backend import AuthUser, BackendClient, BackendError
from crud import projects as crud
from crud.settings import get_settings, vendor_options
from routes.auth_router import backend_failure, get_client, require_user
from schemas.common import toast
from schemas.projects import (
    ActivityOut,
    BudgetIn,
    BudgetOut,
    ProjectCreate,
    ProjectDetailOut,
    ProjectOut,
    ProjectUpdate,
)
from utils.csv_import import parse_activities_csv, to_number, total_budget

router = APIRouter(prefix="/projects", tags=["Projects"])

STATUSES = ["ongoing", "completed", "delayed"]


def _form_options(client: BackendClient) -> dict:
    s = get_settings(client)
    return {
        "vendors": vendor_options(client),
        "project_types": s["project_types"],
        "statuses": STATUSES,
    }


@router.get("")
def list_projects(
    q: Optional[str] = None,
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        rows = crud.list_projects(client, q)
    except BackendError as e:
        raise backend_failure("Error loading projects", e)
    return {"q": q or "", "projects": [ProjectOut.model_validate(r) for r in rows]}


@router.get("/new")
def new_project_form(client: BackendClient = Depends(get_client), _u: AuthUser = Depends(require_user)):
    try:
        options = _form_options(client)
    except BackendError as e:
        raise backend_failure("Error loading form", e)
    return {
        # resubmitting with the same request_id resumes instead of duplicating
        "request_id": str(uuid.uuid4()),
        "defaults": {"status": "ongoing", "completion_percentage": 0, "activities": []},
        **options,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    client: BackendClient = Depends(get_client),
    user: AuthUser = Depends(require_user),
):
    try:
        project = crud.create_project(client, payload, user.id)
    except BackendError as e:
        raise backend_failure("Error creating project", e)
    return {
        "toast": toast("Success", "Project created successfully."),
        "redirect": f"/projects/{project['id']}",
        "project": ProjectOut.model_validate(project),
    }


@router.post("/activities/import")
def import_activities(file: UploadFile = File(...), _u: AuthUser = Depends(require_user)):
    activities = parse_activities_csv(file.file.read())
    return {
        "toast": toast("CSV Imported", f"{len(activities)} activities loaded from CSV."),
        "activities": activities,
        "total_budget": total_budget(activities),
    }


@router.post("/budget", response_model=BudgetOut)
def budget(payload: BudgetIn, _u: AuthUser = Depends(require_user)):
    rows = [to_number(a.quantity) * to_number(a.rate) for a in payload.activities]
    return {"total_budget": sum(rows), "rows": rows}


@router.get("/{project_id}", response_model=ProjectDetailOut)
def get_project(
    project_id: str,
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        return crud.project_detail(client, project_id)
    except BackendError as e:
        raise backend_failure("Error loading project", e)


@router.get("/{project_id}/edit")
def edit_project_form(
    project_id: str,
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        project = crud.get_project(client, project_id)
        activities = crud.list_activities(client, project_id)
        options = _form_options(client)
    except BackendError as e:
        raise backend_failure("Error loading project", e)
    return {
        "project": ProjectOut.model_validate(project),
        "activities": [ActivityOut.model_validate(a) for a in activities],
        "total_budget": total_budget(activities),
        **options,
    }


@router.put("/{project_id}")
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        project = crud.update_project(client, project_id, payload)
    except BackendError as e:
        raise backend_failure("Error updating project", e)
    return {
        "toast": toast("Success", "Project updated successfully."),
        "redirect": f"/projects/{project_id}",
        "project": ProjectOut.model_validate(project),
    }


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        crud.delete_project(client, project_id)
    except BackendError as e:
        raise backend_failure("Error deleting project", e)
    return {"toast": toast("Project deleted"), "redirect": "/projects"}
