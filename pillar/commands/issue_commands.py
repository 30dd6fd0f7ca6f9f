from typing import List, Optional, Tuple

from pillar.config.logger import get_logger
from pillar.errors import InvalidInput
from pillar.file_storage.document_store import DocumentStore
from pillar.file_storage.filenames import issue_filename, ISSUES_DIR
from pillar.model.tracker_model import Issue, IssueMetadata, Priority, Status
from pillar.util.time_utils import utc_now

log = get_logger(__name__)


def parse_issue_id(issue_id: str) -> Tuple[str, str]:
    """
    Split an issue id of the form `project-name/001`.
    """
    project_name, sep, number = issue_id.partition("/")
    if not sep or not project_name or not number:
        raise InvalidInput(f"Issue ID must be in format `project-name/001`: `{issue_id}`")
    return project_name, number


def parse_tags(tags: Optional[str]) -> List[str]:
    """
    Parse comma-separated tags, dropping empty ones.
    """
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


def issue_template(title: str) -> str:
    return (
        f"# {title}\n\n## Description\n\nDetailed issue description.\n\n"
        "## Acceptance Criteria\n\n- [ ] Criterion 1\n- [ ] Criterion 2\n"
    )


def create_issue(
    store: DocumentStore,
    project_name: str,
    title: str,
    priority: Optional[str] = None,
    milestone: Optional[str] = None,
    tags: Optional[str] = None,
) -> Issue:
    project = store.find_project(project_name)
    if not title.strip():
        raise InvalidInput("Issue title cannot be empty")

    number = store.next_issue_number(project_name)
    path = project.path / ISSUES_DIR / issue_filename(number, title)

    now = utc_now()
    metadata = IssueMetadata(
        title=title,
        status=Status.todo,
        priority=Priority.parse(priority) if priority else store.config.defaults.priority,
        project=project_name,
        milestone=milestone or None,
        tags=parse_tags(tags),
        created=now,
        updated=now,
    )
    issue = Issue(metadata=metadata, description=issue_template(title), path=path)
    store.save_issue(issue)
    log.info("Created issue %s: %s", issue.id, title)

    return issue


def list_issues(
    store: DocumentStore,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    project_name: Optional[str] = None,
    milestone: Optional[str] = None,
    tag: Optional[str] = None,
) -> List[Issue]:
    """
    Issues matching all the given filters, most urgent first, then by title.
    """
    status_filter = Status.parse(status) if status else None
    priority_filter = Priority.parse(priority) if priority else None

    if project_name:
        issues = store.list_issues(store.find_project(project_name))
    else:
        issues = store.list_all_issues()

    issues = [
        i
        for i in issues
        if (not status_filter or i.metadata.status == status_filter)
        and (not priority_filter or i.metadata.priority == priority_filter)
        and (not milestone or i.metadata.milestone == milestone)
        and (not tag or tag in i.metadata.tags)
    ]
    issues.sort(key=lambda i: (-i.metadata.priority.rank, i.title))

    return issues


def show_issue(store: DocumentStore, issue_id: str) -> Issue:
    project_name, number = parse_issue_id(issue_id)
    return store.find_issue(project_name, number)


def edit_issue(
    store: DocumentStore,
    issue_id: str,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    milestone: Optional[str] = None,
    tags: Optional[str] = None,
    description: Optional[str] = None,
) -> Issue:
    """
    Update an issue. An empty `milestone` clears the milestone.
    """
    issue = show_issue(store, issue_id)

    if all(v is None for v in (status, priority, milestone, tags, description)):
        raise InvalidInput(
            "No changes specified. Use --status, --priority, --milestone, --tags, or --description"
        )

    if status is not None:
        issue.metadata.status = Status.parse(status)
    if priority is not None:
        issue.metadata.priority = Priority.parse(priority)
    if milestone is not None:
        issue.metadata.milestone = milestone or None
    if tags is not None:
        issue.metadata.tags = parse_tags(tags)
    if description is not None:
        issue.description = description
    issue.metadata.updated = utc_now()

    store.save_issue(issue)
    log.info("Updated issue %s", issue_id)

    return issue


## Tests


def test_parse_helpers():
    import pytest

    assert parse_issue_id("web-app/001") == ("web-app", "001")
    for bad in ["001", "web-app/", "/001"]:
        with pytest.raises(InvalidInput):
            parse_issue_id(bad)

    assert parse_tags("bug, critical,,") == ["bug", "critical"]
    assert parse_tags(None) == []


def test_issue_lifecycle():
    import tempfile
    from pathlib import Path

    import pytest

    from pillar.commands.project_commands import create_project

    with tempfile.TemporaryDirectory() as tmp:
        store = DocumentStore(Path(tmp), author="Alice")
        create_project(store, "test-project")

        issue = create_issue(
            store, "test-project", "Fix critical bug", "urgent", "v1.0", "bug,critical"
        )
        assert issue.path.name == "001-fix-critical-bug.md"
        assert issue.id == "test-project/001"

        reread = show_issue(store, "test-project/1")
        assert reread.metadata.priority == Priority.urgent
        assert reread.metadata.milestone == "v1.0"
        assert reread.metadata.tags == ["bug", "critical"]
        assert reread.metadata.status == Status.todo
        assert "## Acceptance Criteria" in reread.description

        create_issue(store, "test-project", "Another issue", "low", tags="feature")
        assert [i.number for i in list_issues(store)] == ["001", "002"]
        assert [i.number for i in list_issues(store, priority="low")] == ["002"]
        assert [i.number for i in list_issues(store, tag="bug")] == ["001"]
        assert [i.number for i in list_issues(store, milestone="v1.0")] == ["001"]

        edit_issue(store, "test-project/001", status="in-progress", priority="high", milestone="")
        reread = show_issue(store, "test-project/001")
        assert reread.metadata.status == Status.in_progress
        assert reread.metadata.priority == Priority.high
        assert reread.metadata.milestone is None
        assert reread.metadata.tags == ["bug", "critical"]

        with pytest.raises(InvalidInput):
            edit_issue(store, "test-project/001")
        with pytest.raises(InvalidInput):
            show_issue(store, "001")
