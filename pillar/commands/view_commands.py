"""
Summary views over a whole workspace: the status overview and the Kanban board.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pillar.file_storage.document_store import DocumentStore
from pillar.model.tracker_model import Issue, Milestone, Project, Status

UPCOMING_MILESTONES_MAX = 5

BOARD_COLUMNS = [Status.backlog, Status.todo, Status.in_progress, Status.completed]


@dataclass
class WorkspaceStatus:
    projects: List[Project]
    active_projects: List[Tuple[Project, int]]
    """Projects in progress, each with its count of issues in progress."""
    in_progress_issues: List[Issue]
    upcoming_milestones: List[Milestone]
    issue_counts: Dict[Status, int] = field(default_factory=dict)

    @property
    def total_issues(self) -> int:
        return sum(self.issue_counts.values())


@dataclass
class Board:
    title: str
    columns: List[Tuple[Status, List[Issue]]]

    @property
    def is_empty(self) -> bool:
        return not any(issues for _status, issues in self.columns)


def workspace_status(store: DocumentStore) -> WorkspaceStatus:
    projects = store.list_projects()

    active_projects = []
    all_issues = []
    all_milestones = []
    for project in projects:
        issues = store.list_issues(project)
        all_issues.extend(issues)
        all_milestones.extend(store.list_milestones(project))
        if project.metadata.status == Status.in_progress:
            in_progress = sum(1 for i in issues if i.metadata.status == Status.in_progress)
            active_projects.append((project, in_progress))

    upcoming = [
        m
        for m in all_milestones
        if m.metadata.status not in (Status.completed, Status.cancelled) and m.metadata.target_date
    ]
    upcoming.sort(key=lambda m: m.metadata.target_date or "")

    issue_counts = {status: 0 for status in Status}
    for issue in all_issues:
        issue_counts[issue.metadata.status] += 1

    return WorkspaceStatus(
        projects=projects,
        active_projects=active_projects,
        in_progress_issues=[i for i in all_issues if i.metadata.status == Status.in_progress],
        upcoming_milestones=upcoming[:UPCOMING_MILESTONES_MAX],
        issue_counts=issue_counts,
    )


def board(store: DocumentStore, project_name: Optional[str] = None) -> Board:
    """
    Issues grouped into Backlog, Todo, In Progress, and Completed columns.
    Cancelled issues are not shown.
    """
    if project_name:
        issues = store.list_issues(store.find_project(project_name))
        title = f"Board: {project_name}"
    else:
        issues = store.list_all_issues()
        title = "Board: All Projects"

    columns = [
        (status, [i for i in issues if i.metadata.status == status]) for status in BOARD_COLUMNS
    ]
    return Board(title=title, columns=columns)


## Tests


def test_status_and_board():
    import tempfile
    from pathlib import Path

    from pillar.commands.issue_commands import create_issue, edit_issue
    from pillar.commands.milestone_commands import create_milestone, edit_milestone
    from pillar.commands.project_commands import create_project, edit_project

    with tempfile.TemporaryDirectory() as tmp:
        store = DocumentStore(Path(tmp), author="Alice")
        create_project(store, "project-a", priority="high")
        create_project(store, "project-b")
        edit_project(store, "project-a", status="in-progress")
        create_issue(store, "project-a", "Issue 1", "high")
        create_issue(store, "project-a", "Issue 2", "medium")
        create_issue(store, "project-b", "Issue 3")
        edit_issue(store, "project-a/001", status="in-progress")
        edit_issue(store, "project-b/001", status="cancelled")
        for title, day in [("m1", "2025-03-01"), ("m2", "2025-01-01"), ("done", "2024-01-01")]:
            create_milestone(store, "project-b", title, day)
        create_milestone(store, "project-b", "undated")
        edit_milestone(store, "project-b", "done", status="completed")

        status = workspace_status(store)
        assert [(p.name, n) for p, n in status.active_projects] == [("project-a", 1)]
        assert [i.id for i in status.in_progress_issues] == ["project-a/001"]
        assert [m.title for m in status.upcoming_milestones] == ["m2", "m1"]
        assert status.total_issues == 3
        assert status.issue_counts[Status.todo] == 1

        all_board = board(store)
        assert all_board.title == "Board: All Projects"
        assert [s for s, _ in all_board.columns] == BOARD_COLUMNS
        counts = {s: len(issues) for s, issues in all_board.columns}
        assert counts == {
            Status.backlog: 0,
            Status.todo: 1,
            Status.in_progress: 1,
            Status.completed: 0,
        }

        b_board = board(store, "project-b")
        assert b_board.title == "Board: project-b"
        assert b_board.is_empty
