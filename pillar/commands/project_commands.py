import re
from dataclasses import dataclass
from typing import List, Optional

from pillar.config.logger import get_logger
from pillar.errors import FileExists, InvalidInput
from pillar.file_storage.document_store import DocumentStore
from pillar.file_storage.filenames import ISSUES_DIR, MILESTONES_DIR
from pillar.model.tracker_model import Issue, Milestone, Priority, Project, ProjectMetadata, Status
from pillar.util.time_utils import utc_now

log = get_logger(__name__)

PROJECT_ID_MAX_LEN = 20

_project_id_re = re.compile(r"[\w-]+")


@dataclass
class ProjectDetails:
    project: Project
    milestones: List[Milestone]
    issues: List[Issue]

    @property
    def completed_count(self) -> int:
        return sum(1 for i in self.issues if i.metadata.status == Status.completed)


def validate_project_id(project_id: str) -> str:
    if not project_id:
        raise InvalidInput("Project ID cannot be empty")
    if len(project_id) > PROJECT_ID_MAX_LEN:
        raise InvalidInput(f"Project ID must be {PROJECT_ID_MAX_LEN} characters or less")
    if not _project_id_re.fullmatch(project_id):
        raise InvalidInput(
            "Project ID can only contain alphanumeric characters, hyphens, and underscores"
        )
    return project_id


def default_project_id(name: str) -> str:
    """
    Acronym of up to four words of the name, or the first four characters of a
    single-word name.

    "Customer Web Portal" -> "cwp"
    "backend" -> "back"
    """
    words = [w for w in re.split(r"[ _-]", name) if w]
    if len(words) > 1:
        return "".join(w[0] for w in words[:4]).lower()
    return name[:4].lower()


def project_template(name: str) -> str:
    return f"# {name}\n\nProject description goes here.\n\n## Goals\n\n- Goal 1\n- Goal 2\n"


def create_project(
    store: DocumentStore,
    name: str,
    project_id: Optional[str] = None,
    priority: Optional[str] = None,
) -> Project:
    path = store.project_dir(name)
    if path.exists():
        raise FileExists(f"Project `{name}` already exists")

    if project_id:
        validate_project_id(project_id)
        if any(p.metadata.project_id == project_id for p in store.list_projects()):
            raise InvalidInput(f"Project ID `{project_id}` is already in use by another project")
    else:
        project_id = default_project_id(name)

    now = utc_now()
    metadata = ProjectMetadata(
        name=name,
        project_id=project_id,
        status=store.config.defaults.status,
        priority=Priority.parse(priority) if priority else store.config.defaults.priority,
        created=now,
        updated=now,
    )

    (path / MILESTONES_DIR).mkdir(parents=True)
    (path / ISSUES_DIR).mkdir()

    project = Project(metadata=metadata, description=project_template(name), path=path)
    store.save_project(project)
    log.info("Created project %s (ID: %s)", name, project_id)

    return project


def list_projects(
    store: DocumentStore, status: Optional[str] = None, priority: Optional[str] = None
) -> List[ProjectDetails]:
    """
    Projects matching the filters, most urgent first, then by name.
    """
    status_filter = Status.parse(status) if status else None
    priority_filter = Priority.parse(priority) if priority else None

    projects = [
        p
        for p in store.list_projects()
        if (not status_filter or p.metadata.status == status_filter)
        and (not priority_filter or p.metadata.priority == priority_filter)
    ]
    projects.sort(key=lambda p: (-p.metadata.priority.rank, p.name))

    return [
        ProjectDetails(p, store.list_milestones(p), store.list_issues(p)) for p in projects
    ]


def show_project(store: DocumentStore, name: str) -> ProjectDetails:
    project = store.find_project(name)
    return ProjectDetails(project, store.list_milestones(project), store.list_issues(project))


def edit_project(
    store: DocumentStore,
    name: str,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    description: Optional[str] = None,
) -> Project:
    project = store.find_project(name)

    if status is None and priority is None and description is None:
        raise InvalidInput("No changes specified. Use --status, --priority, or --description")

    if status is not None:
        project.metadata.status = Status.parse(status)
    if priority is not None:
        project.metadata.priority = Priority.parse(priority)
    if description is not None:
        project.description = description
    project.metadata.updated = utc_now()

    store.save_project(project)
    log.info("Updated project %s", name)

    return project


## Tests


def test_default_project_id():
    assert default_project_id("Customer Web Portal") == "cwp"
    assert default_project_id("my-cool_new project thing") == "mcnp"
    assert default_project_id("Backend") == "back"
    assert default_project_id("api") == "api"


def test_validate_project_id():
    import pytest

    assert validate_project_id("web_app-2") == "web_app-2"
    for bad in ["", "a" * 21, "has space", "semi;colon"]:
        with pytest.raises(InvalidInput):
            validate_project_id(bad)


def test_project_lifecycle():
    import tempfile
    from pathlib import Path

    import pytest

    with tempfile.TemporaryDirectory() as tmp:
        store = DocumentStore(Path(tmp), author="Alice")

        project = create_project(store, "test-project", priority="high")
        assert (project.path / MILESTONES_DIR).is_dir()
        assert (project.path / ISSUES_DIR).is_dir()
        assert project.metadata.project_id == "tp"
        assert project.metadata.status == Status.backlog

        with pytest.raises(FileExists):
            create_project(store, "test-project")

        create_project(store, "other", project_id="oth", priority="low")
        with pytest.raises(InvalidInput):
            create_project(store, "third", project_id="oth")

        assert [d.project.name for d in list_projects(store)] == ["test-project", "other"]
        assert [d.project.name for d in list_projects(store, priority="low")] == ["other"]

        with pytest.raises(InvalidInput):
            edit_project(store, "test-project")

        edited = edit_project(store, "test-project", status="in-progress", priority="urgent")
        reread = store.find_project("test-project")
        assert reread.metadata.status == Status.in_progress
        assert reread.metadata.priority == Priority.urgent
        assert reread.metadata.updated == edited.metadata.updated
        assert "## Goals" in reread.description
