from datetime import date
from typing import List, Optional

from pillar.config.logger import get_logger
from pillar.errors import FileExists, InvalidInput
from pillar.file_storage.document_store import DocumentStore
from pillar.file_storage.filenames import milestone_filename, MILESTONES_DIR
from pillar.model.tracker_model import Milestone, MilestoneMetadata, Status
from pillar.util.time_utils import utc_now

log = get_logger(__name__)

# Milestones with no target date sort after all dated ones.
_NO_DATE = "9999-12-31"


def check_date(value: str) -> str:
    """
    Validate a YYYY-MM-DD date string.
    """
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        raise InvalidInput(f"Invalid date (expected YYYY-MM-DD): `{value}`")


def milestone_template(title: str) -> str:
    return f"# {title}\n\nMilestone description and objectives.\n"


def create_milestone(
    store: DocumentStore, project_name: str, title: str, target_date: Optional[str] = None
) -> Milestone:
    project = store.find_project(project_name)

    path = project.path / MILESTONES_DIR / milestone_filename(title)
    if path.exists():
        raise FileExists(f"Milestone `{title}` already exists")

    now = utc_now()
    metadata = MilestoneMetadata(
        title=title,
        status=store.config.defaults.status,
        target_date=check_date(target_date) if target_date else None,
        project=project_name,
        created=now,
        updated=now,
    )
    milestone = Milestone(metadata=metadata, description=milestone_template(title), path=path)
    store.save_milestone(milestone)
    log.info("Created milestone %s in project %s", title, project_name)

    return milestone


def list_milestones(store: DocumentStore, project_name: Optional[str] = None) -> List[Milestone]:
    """
    Milestones of one project or of all projects, by target date and then title.
    """
    if project_name:
        milestones = store.list_milestones(store.find_project(project_name))
    else:
        milestones = store.list_all_milestones()

    milestones.sort(key=lambda m: (m.metadata.target_date or _NO_DATE, m.title))
    return milestones


def edit_milestone(
    store: DocumentStore,
    project_name: str,
    title: str,
    status: Optional[str] = None,
    target_date: Optional[str] = None,
    description: Optional[str] = None,
) -> Milestone:
    milestone = store.find_milestone(project_name, title)

    if status is None and target_date is None and description is None:
        raise InvalidInput("No changes specified. Use --status, --date, or --description")

    if status is not None:
        milestone.metadata.status = Status.parse(status)
    if target_date is not None:
        milestone.metadata.target_date = check_date(target_date) if target_date else None
    if description is not None:
        milestone.description = description
    milestone.metadata.updated = utc_now()

    store.save_milestone(milestone)
    log.info("Updated milestone %s in project %s", title, project_name)

    return milestone


## Tests


def test_milestone_lifecycle():
    import tempfile
    from pathlib import Path

    import pytest

    from pillar.commands.project_commands import create_project

    with tempfile.TemporaryDirectory() as tmp:
        store = DocumentStore(Path(tmp), author="Alice")
        project = create_project(store, "test-project")

        milestone = create_milestone(store, "test-project", "v1.0", "2025-12-31")
        assert milestone.path == project.path / MILESTONES_DIR / "v1-0.md"
        assert milestone.metadata.status == Status.backlog

        reread = store.read_milestone(milestone.path)
        assert reread.title == "v1.0"
        assert reread.metadata.target_date == "2025-12-31"
        assert reread.metadata.project == "test-project"

        with pytest.raises(FileExists):
            create_milestone(store, "test-project", "v1.0")
        with pytest.raises(InvalidInput):
            create_milestone(store, "test-project", "v2.0", "next week")

        create_milestone(store, "test-project", "Someday")
        create_milestone(store, "test-project", "Alpha", "2025-06-01")
        assert [m.title for m in list_milestones(store)] == ["Alpha", "v1.0", "Someday"]

        edit_milestone(
            store, "test-project", "v1.0", status="in-progress", target_date="2026-01-15"
        )
        reread = store.read_milestone(milestone.path)
        assert reread.metadata.status == Status.in_progress
        assert reread.metadata.target_date == "2026-01-15"

        with pytest.raises(InvalidInput):
            edit_milestone(store, "test-project", "v1.0")
