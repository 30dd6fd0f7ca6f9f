"""
The document store: reads and writes the project, milestone, and issue documents
under a workspace's base directory.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from strif import atomic_output_file

from pillar.config.logger import get_logger
from pillar.errors import FileNotFound, InvalidInput, MissingInput, SkippableError
from pillar.file_formats.comment_log import decode_comments, encode_comments
from pillar.file_formats.frontmatter_codec import decode_frontmatter, encode_frontmatter
from pillar.file_storage.filenames import (
    DOC_EXT,
    ISSUES_DIR,
    milestone_filename,
    MILESTONES_DIR,
    next_issue_number,
    normalize_issue_number,
    parse_issue_number,
    README_FILE,
)
from pillar.model.config_model import Config
from pillar.model.tracker_model import (
    Comment,
    EntityType,
    Issue,
    IssueMetadata,
    Milestone,
    MilestoneMetadata,
    Project,
    ProjectMetadata,
)

log = get_logger(__name__)

M = TypeVar("M")

_metadata_types: Dict[EntityType, Type[Any]] = {
    EntityType.project: ProjectMetadata,
    EntityType.milestone: MilestoneMetadata,
    EntityType.issue: IssueMetadata,
}


def _doc_files(dir: Path) -> List[Path]:
    if not dir.is_dir():
        return []
    return sorted(p for p in dir.iterdir() if p.is_file() and p.suffix == DOC_EXT)


class DocumentStore:
    """
    Access to the documents of one workspace. The base directory and comment author
    are fixed when the store is created.
    """

    def __init__(self, base_dir: Path, author: str, config: Optional[Config] = None):
        self.base_dir = base_dir
        self.author = author
        self.config = config or Config()

    def __repr__(self):
        return f"DocumentStore({str(self.base_dir)!r}, author={self.author!r})"

    ## Reading and writing

    def read_document(self, path: Path, metadata_type: Type[M]) -> Tuple[M, str]:
        if not path.is_file():
            raise FileNotFound(f"Document not found: {path}")
        return decode_frontmatter(path.read_text(encoding="utf-8"), metadata_type)

    def write_document(self, path: Path, metadata: Any, body: str) -> None:
        text = encode_frontmatter(metadata, body)
        with atomic_output_file(path, make_parents=True) as temp_output:
            with open(temp_output, "w", encoding="utf-8") as f:
                f.write(text)
        log.info("Wrote document: %s", path)

    def project_dir(self, name: str) -> Path:
        if not name or "/" in name or name.startswith("."):
            raise InvalidInput(f"Invalid project name: `{name}`")
        return self.base_dir / name

    def read_project(self, name: str) -> Project:
        path = self.project_dir(name)
        metadata, description = self.read_document(path / README_FILE, ProjectMetadata)
        return Project(metadata=metadata, description=description, path=path)

    def read_milestone(self, path: Path) -> Milestone:
        metadata, description = self.read_document(path, MilestoneMetadata)
        return Milestone(metadata=metadata, description=description, path=path)

    def read_issue(self, path: Path) -> Issue:
        metadata, description = self.read_document(path, IssueMetadata)
        return Issue(metadata=metadata, description=description, path=path)

    def save_project(self, project: Project) -> None:
        self.write_document(project.readme_path, project.metadata, project.description)

    def save_milestone(self, milestone: Milestone) -> None:
        self.write_document(milestone.path, milestone.metadata, milestone.description)

    def save_issue(self, issue: Issue) -> None:
        self.write_document(issue.path, issue.metadata, issue.description)

    ## Listing

    def list_projects(self) -> List[Project]:
        projects = []
        if not self.base_dir.is_dir():
            return projects
        for path in sorted(self.base_dir.iterdir()):
            if not path.is_dir() or path.name.startswith("."):
                continue
            if not (path / README_FILE).is_file():
                continue
            try:
                projects.append(self.read_project(path.name))
            except (SkippableError, UnicodeDecodeError) as e:
                log.warning("Failed to read project at %s: %s", path, e)
        return projects

    def list_milestones(self, project: Project) -> List[Milestone]:
        milestones = []
        for path in _doc_files(project.path / MILESTONES_DIR):
            try:
                milestones.append(self.read_milestone(path))
            except (SkippableError, UnicodeDecodeError) as e:
                log.warning("Failed to read milestone at %s: %s", path, e)
        return milestones

    def list_issues(self, project: Project) -> List[Issue]:
        issues = []
        for path in _doc_files(project.path / ISSUES_DIR):
            try:
                issues.append(self.read_issue(path))
            except (SkippableError, UnicodeDecodeError) as e:
                log.warning("Failed to read issue at %s: %s", path, e)
        return issues

    def list_all_milestones(self) -> List[Milestone]:
        return [m for project in self.list_projects() for m in self.list_milestones(project)]

    def list_all_issues(self) -> List[Issue]:
        return [i for project in self.list_projects() for i in self.list_issues(project)]

    ## Lookup

    def find_project(self, name: str) -> Project:
        path = self.project_dir(name)
        if not (path / README_FILE).is_file():
            raise FileNotFound(f"Project `{name}` does not exist")
        return self.read_project(name)

    def find_milestone(self, project_name: str, title: str) -> Milestone:
        """
        Find a milestone by its title, or else by its filename slug.
        """
        project = self.find_project(project_name)
        milestones = self.list_milestones(project)
        for milestone in milestones:
            if milestone.title == title:
                return milestone

        candidates = {title + DOC_EXT, milestone_filename(title)}
        for milestone in milestones:
            if milestone.path.name in candidates:
                return milestone

        raise FileNotFound(f"Milestone `{title}` not found in project `{project_name}`")

    def issue_path(self, project_name: str, number: str | int) -> Path:
        project = self.find_project(project_name)
        target = int(normalize_issue_number(number))
        for path in _doc_files(project.path / ISSUES_DIR):
            if parse_issue_number(path) == target:
                return path
        raise FileNotFound(f"Issue `{project_name}/{number}` not found")

    def find_issue(self, project_name: str, number: str | int) -> Issue:
        """
        Find an issue by number. Accepts `1`, `01`, or `001`.
        """
        return self.read_issue(self.issue_path(project_name, number))

    def next_issue_number(self, project_name: str) -> str:
        project = self.find_project(project_name)
        issues_dir = project.path / ISSUES_DIR
        filenames = [p.name for p in issues_dir.iterdir()] if issues_dir.is_dir() else []
        return next_issue_number(filenames)

    def entity_path(
        self, entity_type: EntityType, project_name: str, identifier: Optional[str] = None
    ) -> Path:
        """
        Path of the document for a project, a milestone (identified by title), or an
        issue (identified by number).
        """
        if entity_type == EntityType.project:
            return self.find_project(project_name).readme_path
        if not identifier:
            label = "Milestone title" if entity_type == EntityType.milestone else "Issue number"
            raise MissingInput(f"{label} required to find a {entity_type}")
        if entity_type == EntityType.milestone:
            return self.find_milestone(project_name, identifier).path
        return self.issue_path(project_name, identifier)

    ## Comments

    def list_comments(
        self, entity_type: EntityType, project_name: str, identifier: Optional[str] = None
    ) -> List[Comment]:
        path = self.entity_path(entity_type, project_name, identifier)
        _header, body = self.read_document(path, _metadata_types[entity_type])
        return decode_comments(body)

    def add_comment(
        self,
        entity_type: EntityType,
        project_name: str,
        identifier: Optional[str],
        content: str,
    ) -> Comment:
        """
        Append a comment by the store's author. The header is written back as it was
        read and only the comments section of the body changes.
        """
        if not content.strip():
            raise MissingInput("Comment text is empty")

        path = self.entity_path(entity_type, project_name, identifier)
        header, body = self.read_document(path, _metadata_types[entity_type])

        comments = decode_comments(body)
        comment = Comment.new(self.author, content)
        comments.append(comment)

        self.write_document(path, header, encode_comments(body, comments))
        log.info("Added comment by %s to %s", self.author, path)

        return comment


## Tests


def _make_store(tmp: str) -> DocumentStore:
    from datetime import datetime, timezone

    store = DocumentStore(Path(tmp), author="Alice")
    created = datetime(2025, 1, 1, tzinfo=timezone.utc)
    project_dir = store.project_dir("web-app")
    store.save_project(
        Project(
            ProjectMetadata(name="web-app", project_id="wa", created=created, updated=created),
            "# web-app\n\nThe web app.",
            project_dir,
        )
    )
    store.save_issue(
        Issue(
            IssueMetadata(title="Fix login", project="web-app", tags=["auth"]),
            "# Fix login\n\nBroken on Safari.",
            project_dir / ISSUES_DIR / "001-fix-login.md",
        )
    )
    store.save_milestone(
        Milestone(
            MilestoneMetadata(title="v1.0", target_date="2025-12-31", project="web-app"),
            "# v1.0",
            project_dir / MILESTONES_DIR / "v1-0.md",
        )
    )
    return store


def test_store_listing_and_lookup():
    import tempfile

    import pytest

    with tempfile.TemporaryDirectory() as tmp:
        store = _make_store(tmp)

        projects = store.list_projects()
        assert [p.name for p in projects] == ["web-app"]
        assert projects[0].metadata.project_id == "wa"

        issue = store.find_issue("web-app", "1")
        assert issue.title == "Fix login"
        assert issue.metadata.tags == ["auth"]
        assert store.find_issue("web-app", "001").path == issue.path

        assert store.find_milestone("web-app", "v1.0").metadata.target_date == "2025-12-31"
        assert store.find_milestone("web-app", "v1-0").title == "v1.0"

        assert store.next_issue_number("web-app") == "002"

        with pytest.raises(FileNotFound):
            store.find_project("nope")
        with pytest.raises(FileNotFound):
            store.find_issue("web-app", "7")
        with pytest.raises(MissingInput):
            store.entity_path(EntityType.issue, "web-app")


def test_listing_skips_bad_documents():
    import tempfile

    with tempfile.TemporaryDirectory() as tmp:
        store = _make_store(tmp)
        issues_dir = store.project_dir("web-app") / ISSUES_DIR
        (issues_dir / "002-broken.md").write_text("no frontmatter here")
        (issues_dir / "003-bad-yaml.md").write_text("---\ntitle: [unclosed\n---\n")

        issues = store.list_all_issues()
        assert [i.number for i in issues] == ["001"]

        # Unreadable files still count toward numbering.
        assert store.next_issue_number("web-app") == "004"


def test_add_comment_keeps_document():
    import tempfile

    with tempfile.TemporaryDirectory() as tmp:
        store = _make_store(tmp)
        path = store.entity_path(EntityType.project, "web-app")
        before = path.read_text()

        comment = store.add_comment(EntityType.project, "web-app", None, "First comment")
        assert comment.author == "Alice"
        store.add_comment(EntityType.project, "web-app", None, "Second comment\nwith two lines")

        after = path.read_text()
        assert after.startswith(before.rstrip("\n"))
        assert after.count("## Comments") == 1

        comments = store.list_comments(EntityType.project, "web-app")
        assert [c.content for c in comments] == ["First comment", "Second comment\nwith two lines"]

        project = store.find_project("web-app")
        assert project.metadata.project_id == "wa"
        assert project.description.startswith("# web-app\n\nThe web app.")

        store.add_comment(EntityType.issue, "web-app", "1", "On the issue")
        assert len(store.list_comments(EntityType.issue, "web-app", "001")) == 1
        assert store.list_comments(EntityType.milestone, "web-app", "v1.0") == []
