from typing import List, Optional

from pillar.errors import InvalidParam
from pillar.file_storage.document_store import DocumentStore
from pillar.model.tracker_model import Comment, EntityType


def parse_entity_type(value: str | EntityType) -> EntityType:
    if isinstance(value, EntityType):
        return value
    try:
        return EntityType(value.strip().lower())
    except ValueError:
        raise InvalidParam("entity type", value, [e.value for e in EntityType])


def add_comment(
    store: DocumentStore,
    entity_type: str | EntityType,
    project_name: str,
    identifier: Optional[str],
    content: str,
) -> Comment:
    return store.add_comment(parse_entity_type(entity_type), project_name, identifier, content)


def list_comments(
    store: DocumentStore,
    entity_type: str | EntityType,
    project_name: str,
    identifier: Optional[str] = None,
) -> List[Comment]:
    return store.list_comments(parse_entity_type(entity_type), project_name, identifier)


## Tests


def test_comments_on_entities():
    import tempfile
    from pathlib import Path

    import pytest

    from pillar.commands.issue_commands import create_issue
    from pillar.commands.project_commands import create_project
    from pillar.file_formats.comment_log import COMMENTS_HEADING

    with tempfile.TemporaryDirectory() as tmp:
        store = DocumentStore(Path(tmp), author="Carol")
        project = create_project(store, "TestProject")
        issue = create_issue(store, "TestProject", "Test Issue")

        assert list_comments(store, "project", "TestProject") == []

        add_comment(store, "project", "TestProject", None, "First comment")
        add_comment(store, "project", "TestProject", None, "Second comment")
        comments = list_comments(store, "project", "TestProject")
        assert [(c.author, c.content) for c in comments] == [
            ("Carol", "First comment"),
            ("Carol", "Second comment"),
        ]
        assert COMMENTS_HEADING in project.readme_path.read_text()

        add_comment(store, "issue", "TestProject", "1", "Issue comment")
        text = issue.path.read_text()
        assert COMMENTS_HEADING in text
        assert "Issue comment" in text

        with pytest.raises(InvalidParam):
            add_comment(store, "epic", "TestProject", None, "Nope")
