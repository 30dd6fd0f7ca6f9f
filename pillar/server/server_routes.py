"""
JSON API for the local web UI.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from pillar.commands.comment_commands import add_comment, list_comments
from pillar.commands.issue_commands import create_issue, edit_issue
from pillar.commands.milestone_commands import create_milestone, edit_milestone
from pillar.commands.project_commands import create_project, edit_project
from pillar.config.logger import get_logger
from pillar.file_storage.document_store import DocumentStore
from pillar.model.tracker_model import Issue, Milestone, Project

log = get_logger(__name__)


router = APIRouter()


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


class CreateProjectRequest(BaseModel):
    name: str
    id: Optional[str] = None
    priority: Optional[str] = None


class UpdateProjectRequest(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    description: Optional[str] = None


class CreateMilestoneRequest(BaseModel):
    project: str
    title: str
    date: Optional[str] = None


class UpdateMilestoneRequest(BaseModel):
    status: Optional[str] = None
    target_date: Optional[str] = None
    description: Optional[str] = None


class CreateIssueRequest(BaseModel):
    project: str
    title: str
    priority: Optional[str] = None
    milestone: Optional[str] = None
    tags: Optional[str] = None


class UpdateIssueRequest(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    milestone: Optional[str] = None
    tags: Optional[str] = None
    description: Optional[str] = None


class AddCommentRequest(BaseModel):
    content: str


def project_json(project: Project) -> Dict[str, Any]:
    return {**to_jsonable_python(project), "id": project.dir_name}


def milestone_json(milestone: Milestone) -> Dict[str, Any]:
    return {**to_jsonable_python(milestone), "id": milestone.title}


def issue_json(issue: Issue) -> Dict[str, Any]:
    return {**to_jsonable_python(issue), "id": issue.id, "number": issue.number}


@router.get("/api/data")
def get_data(store: DocumentStore = Depends(get_store)):
    projects = store.list_projects()
    milestones = []
    issues = []
    for project in projects:
        milestones += store.list_milestones(project)
        issues += store.list_issues(project)

    return {
        "projects": [project_json(p) for p in projects],
        "milestones": [milestone_json(m) for m in milestones],
        "issues": [issue_json(i) for i in issues],
    }


@router.post("/api/projects", status_code=201)
def post_project(body: CreateProjectRequest, store: DocumentStore = Depends(get_store)):
    return project_json(create_project(store, body.name, body.id, body.priority))


@router.patch("/api/projects/{name}")
def patch_project(
    name: str, body: UpdateProjectRequest, store: DocumentStore = Depends(get_store)
):
    return project_json(
        edit_project(store, name, body.status, body.priority, body.description)
    )


@router.post("/api/milestones", status_code=201)
def post_milestone(body: CreateMilestoneRequest, store: DocumentStore = Depends(get_store)):
    return milestone_json(create_milestone(store, body.project, body.title, body.date))


@router.patch("/api/milestones/{project}/{title}")
def patch_milestone(
    project: str,
    title: str,
    body: UpdateMilestoneRequest,
    store: DocumentStore = Depends(get_store),
):
    return milestone_json(
        edit_milestone(store, project, title, body.status, body.target_date, body.description)
    )


@router.post("/api/issues", status_code=201)
def post_issue(body: CreateIssueRequest, store: DocumentStore = Depends(get_store)):
    return issue_json(
        create_issue(store, body.project, body.title, body.priority, body.milestone, body.tags)
    )


@router.patch("/api/issues/{project}/{number}")
def patch_issue(
    project: str, number: str, body: UpdateIssueRequest, store: DocumentStore = Depends(get_store)
):
    issue = edit_issue(
        store,
        f"{project}/{number}",
        body.status,
        body.priority,
        body.milestone,
        body.tags,
        body.description,
    )
    return issue_json(issue)


@router.get("/api/comments/{entity_type}/{project}")
@router.get("/api/comments/{entity_type}/{project}/{identifier}")
def get_comments(
    entity_type: str,
    project: str,
    identifier: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
):
    return to_jsonable_python(list_comments(store, entity_type, project, identifier))


@router.post("/api/comments/{entity_type}/{project}", status_code=201)
@router.post("/api/comments/{entity_type}/{project}/{identifier}", status_code=201)
def post_comment(
    entity_type: str,
    project: str,
    body: AddCommentRequest,
    identifier: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
):
    comment = add_comment(store, entity_type, project, identifier, body.content)
    return to_jsonable_python(comment)
