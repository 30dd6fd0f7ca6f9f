from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from pillar.commands.issue_commands import create_issue
from pillar.commands.project_commands import create_project
from pillar.file_storage.document_store import DocumentStore
from pillar.server.local_server import app_setup


@pytest.fixture
def store(tmp_path: Path) -> DocumentStore:
    store = DocumentStore(tmp_path, author="Alice")
    create_project(store, "backend", priority="high")
    create_issue(store, "backend", "Fix login bug", tags="auth")
    return store


@pytest.fixture
def client(store: DocumentStore) -> TestClient:
    return TestClient(app_setup(store, ui_dir=None))


def test_get_data(client: TestClient):
    response = client.get("/api/data")
    assert response.status_code == 200
    data = response.json()
    assert data["projects"][0]["id"] == "backend"
    assert data["projects"][0]["metadata"]["priority"] == "high"
    issue = data["issues"][0]
    assert issue["id"] == "backend/001"
    assert issue["number"] == "001"
    assert issue["metadata"]["tags"] == ["auth"]
    assert data["milestones"] == []


def test_home_page(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert "/api/data" in response.text


def test_create_and_update(client: TestClient, store: DocumentStore):
    response = client.post("/api/milestones", json={"project": "backend", "title": "v1.0"})
    assert response.status_code == 201

    response = client.patch("/api/milestones/backend/v1.0", json={"target_date": "2025-06-01"})
    assert response.status_code == 200
    assert response.json()["metadata"]["target_date"] == "2025-06-01"

    response = client.post(
        "/api/issues", json={"project": "backend", "title": "Second", "milestone": "v1.0"}
    )
    assert response.status_code == 201
    assert response.json()["id"] == "backend/002"

    response = client.patch("/api/issues/backend/2", json={"status": "completed"})
    assert response.status_code == 200
    assert store.find_issue("backend", "002").metadata.status.value == "completed"

    response = client.patch("/api/projects/backend", json={"status": "in-progress"})
    assert response.status_code == 200


def test_comments(client: TestClient, store: DocumentStore):
    response = client.post("/api/comments/issue/backend/001", json={"content": "Looks good"})
    assert response.status_code == 201
    assert response.json()["author"] == "Alice"

    response = client.get("/api/comments/issue/backend/001")
    assert [c["content"] for c in response.json()] == ["Looks good"]

    client.post("/api/comments/project/backend", json={"content": "Kickoff"})
    response = client.get("/api/comments/project/backend")
    assert [c["author"] for c in response.json()] == ["Alice"]


def test_error_status_codes(client: TestClient, store: DocumentStore):
    assert client.get("/api/comments/issue/backend/042").status_code == 404
    assert client.patch("/api/projects/nope", json={"status": "todo"}).status_code == 404

    response = client.patch("/api/projects/backend", json={"priority": "critical"})
    assert response.status_code == 400
    assert "Invalid priority" in response.json()["message"]

    assert client.get("/api/comments/epic/backend").status_code == 400
    assert client.post("/api/projects", json={"name": "backend"}).status_code == 409

    bad = store.project_dir("backend") / "README.md"
    bad.write_text("no header here\n")
    assert client.get("/api/comments/project/backend").status_code == 422


def test_comment_with_section_heading_is_rejected(client: TestClient, store: DocumentStore):
    path = store.issue_path("backend", "001")
    before = path.read_text()

    response = client.post(
        "/api/comments/issue/backend/001", json={"content": "See:\n## Notes\nmore"}
    )
    assert response.status_code == 400
    assert path.read_text() == before
