from dataclasses import dataclass, field
from typing import List

from pillar.errors import InvalidParam
from pillar.file_storage.document_store import DocumentStore
from pillar.model.tracker_model import Issue, Milestone, Project

SEARCH_TYPES = ["all", "project", "milestone", "issue"]


@dataclass
class SearchResults:
    projects: List[Project] = field(default_factory=list)
    milestones: List[Milestone] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.projects or self.milestones or self.issues)


def _contains(text: str, query: str) -> bool:
    return query in text.lower()


def search(store: DocumentStore, query: str, entity_type: str = "all") -> SearchResults:
    """
    Case-insensitive substring search over names, titles, descriptions, and issue tags.
    """
    entity_type = entity_type.lower()
    if entity_type not in SEARCH_TYPES:
        raise InvalidParam("search type", entity_type, SEARCH_TYPES)

    q = query.lower()
    results = SearchResults()
    projects = store.list_projects()

    if entity_type in ("all", "project"):
        results.projects = [
            p for p in projects if _contains(p.name, q) or _contains(p.description, q)
        ]

    for project in projects:
        if entity_type in ("all", "milestone"):
            results.milestones += [
                m
                for m in store.list_milestones(project)
                if _contains(m.title, q) or _contains(m.description, q)
            ]
        if entity_type in ("all", "issue"):
            results.issues += [
                i
                for i in store.list_issues(project)
                if _contains(i.title, q)
                or _contains(i.description, q)
                or any(_contains(t, q) for t in i.metadata.tags)
            ]

    return results


## Tests


def test_search():
    import tempfile
    from pathlib import Path

    import pytest

    from pillar.commands.issue_commands import create_issue
    from pillar.commands.milestone_commands import create_milestone
    from pillar.commands.project_commands import create_project

    with tempfile.TemporaryDirectory() as tmp:
        store = DocumentStore(Path(tmp), author="Alice")
        create_project(store, "TestProject", priority="high")
        create_issue(store, "TestProject", "Fix bug in search", "high", tags="bug,search")
        create_issue(store, "TestProject", "Unrelated", tags="SearchTag")
        create_milestone(store, "TestProject", "Search beta")

        results = search(store, "SEARCH")
        assert results.projects == []
        assert [m.title for m in results.milestones] == ["Search beta"]
        assert [i.title for i in results.issues] == ["Fix bug in search", "Unrelated"]

        assert [p.name for p in search(store, "testproj", "project").projects] == ["TestProject"]
        assert search(store, "search", "project").is_empty
        assert search(store, "nothing matches this").is_empty

        with pytest.raises(InvalidParam):
            search(store, "x", "epic")
