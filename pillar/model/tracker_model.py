"""
The data model for projects, milestones, issues, and their comments.

Each entity is a Markdown document: the `*Metadata` dataclasses are the YAML
header, and the description is the document body.
"""

from dataclasses import field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional
from uuid import uuid4

from pydantic import field_validator
from pydantic.dataclasses import dataclass

from pillar.errors import InvalidInput, InvalidParam
from pillar.util.time_utils import iso_format_z, utc_now


def _parse_enum(enum_cls, value: str, aliases: dict):
    canon = value.strip().lower()
    canon = aliases.get(canon, canon)
    try:
        return enum_cls(canon)
    except ValueError:
        raise InvalidParam(enum_cls.__name__.lower(), value, [e.value for e in enum_cls])


class Status(Enum):
    """Workflow status of a project, milestone, or issue."""

    backlog = "backlog"
    todo = "todo"
    in_progress = "in-progress"
    completed = "completed"
    cancelled = "cancelled"

    @classmethod
    def parse(cls, value: str) -> "Status":
        return _parse_enum(
            cls,
            value,
            {"inprogress": "in-progress", "done": "completed", "canceled": "cancelled"},
        )

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()

    def __str__(self):
        return self.value


class Priority(Enum):
    """Priority of a project or issue. Ordered from `low` to `urgent`."""

    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"

    @classmethod
    def parse(cls, value: str) -> "Priority":
        return _parse_enum(cls, value, {})

    @property
    def rank(self) -> int:
        return list(Priority).index(self)

    def __lt__(self, other: "Priority") -> bool:
        return self.rank < other.rank

    def __str__(self):
        return self.value


class EntityType(Enum):
    project = "project"
    milestone = "milestone"
    issue = "issue"

    def __str__(self):
        return self.value


@dataclass
class ProjectMetadata:
    name: str
    status: Status = Status.backlog
    priority: Priority = Priority.medium
    project_id: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None


@dataclass
class MilestoneMetadata:
    title: str
    status: Status = Status.backlog
    target_date: Optional[str] = None
    project: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None

    # Hand-edited files may hold an unquoted date, which YAML reads as a date.
    @field_validator("target_date", mode="before")
    @classmethod
    def _date_to_str(cls, value: Any) -> Any:
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return value


@dataclass
class IssueMetadata:
    title: str
    status: Status = Status.todo
    priority: Priority = Priority.medium
    project: Optional[str] = None
    milestone: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    created: Optional[datetime] = None
    updated: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


@dataclass
class Project:
    metadata: ProjectMetadata
    description: str
    path: Path

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def dir_name(self) -> str:
        """The project's directory name, used to look it up."""
        return self.path.name

    @property
    def readme_path(self) -> Path:
        return self.path / "README.md"


@dataclass
class Milestone:
    metadata: MilestoneMetadata
    description: str
    path: Path

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def project_name(self) -> str:
        return self.path.parent.parent.name


@dataclass
class Issue:
    metadata: IssueMetadata
    description: str
    path: Path

    @property
    def number(self) -> str:
        """The numeric prefix of the filename, e.g. `001` for `001-fix-login.md`."""
        return self.path.stem.split("-", 1)[0]

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def project_name(self) -> str:
        return self.path.parent.parent.name

    @property
    def id(self) -> str:
        """Workspace-wide issue id, e.g. `my-project/001`."""
        return f"{self.project_name}/{self.number}"


UNKNOWN_AUTHOR = "Unknown"


@dataclass
class Comment:
    """
    One entry in a document's comment log. The `id` is not persisted, so it is
    regenerated each time comments are read.
    """

    author: str
    timestamp: str
    content: str
    id: str = field(default_factory=lambda: uuid4().hex)

    @classmethod
    def new(cls, author: str, content: str) -> "Comment":
        """
        A new comment stamped with the current time. The author is collapsed to a single
        line, as it is written in the comment log.
        """
        return cls(
            author=" ".join(author.split()),
            timestamp=iso_format_z(utc_now(), microseconds=False),
            content=content,
        )

    def same_entry(self, other: "Comment") -> bool:
        """Equality ignoring the generated id and surrounding blank lines of the content."""
        return (
            self.author == other.author
            and self.timestamp == other.timestamp
            and self.content.strip() == other.content.strip()
        )


## Tests


def test_status_parse():
    import pytest

    assert Status.parse("backlog") == Status.backlog
    assert Status.parse("todo") == Status.todo
    assert Status.parse("in-progress") == Status.in_progress
    assert Status.parse("InProgress") == Status.in_progress
    assert Status.parse("done") == Status.completed
    assert Status.parse("canceled") == Status.cancelled
    with pytest.raises(InvalidInput):
        Status.parse("invalid")


def test_priority_parse_and_order():
    import pytest

    assert Priority.parse("URGENT") == Priority.urgent
    with pytest.raises(InvalidInput):
        Priority.parse("invalid")

    assert Priority.low < Priority.medium < Priority.high < Priority.urgent
    assert sorted([Priority.high, Priority.low, Priority.urgent]) == [
        Priority.low,
        Priority.high,
        Priority.urgent,
    ]


def test_display():
    assert str(Status.in_progress) == "in-progress"
    assert Status.in_progress.label == "In Progress"
    assert str(Priority.low) == "low"


def test_metadata_validation():
    meta = MilestoneMetadata(title="v1.0", target_date=date(2025, 12, 31))  # type: ignore
    assert meta.target_date == "2025-12-31"

    issue = IssueMetadata(title="Bug", status="in-progress", tags=None)  # type: ignore
    assert issue.status == Status.in_progress
    assert issue.tags == []


def test_issue_number():
    issue = Issue(IssueMetadata(title="x"), "", Path("proj/issues/007-fix-it.md"))
    assert issue.number == "007"
    assert issue.id == "proj/007"


def test_new_comment():
    c1 = Comment.new("Alice", "Hello")
    c2 = Comment.new("Alice", "Hello")
    assert c1.id != c2.id
    assert c1.timestamp.endswith("Z")
    assert c1.author == "Alice"
    assert Comment.new(" Bob \n Smith ", "Hi").author == "Bob Smith"
