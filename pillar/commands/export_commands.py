"""
Export of workspace data as JSON or CSV.
"""

import csv
import json
from datetime import datetime
from enum import Enum
from io import StringIO
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic_core import to_jsonable_python
from strif import atomic_output_file

from pillar.errors import InvalidOperation, InvalidParam
from pillar.file_storage.document_store import DocumentStore
from pillar.model.tracker_model import Issue, Milestone, Project
from pillar.util.time_utils import iso_format_z


class ExportFormat(Enum):
    json = "json"
    csv = "csv"


EXPORT_TYPES = ["all", "project", "milestone", "issue"]


def _fmt_time(dt: Optional[datetime]) -> str:
    return iso_format_z(dt) if dt else ""


def _project_row(p: Project) -> List[str]:
    m = p.metadata
    return [m.name, str(m.status), str(m.priority), _fmt_time(m.created), _fmt_time(m.updated)]


def _milestone_row(ms: Milestone) -> List[str]:
    m = ms.metadata
    return [
        m.title,
        str(m.status),
        m.project or "",
        m.target_date or "",
        _fmt_time(m.created),
        _fmt_time(m.updated),
    ]


def _issue_row(i: Issue) -> List[str]:
    m = i.metadata
    return [
        m.title,
        str(m.status),
        str(m.priority),
        m.project or "",
        m.milestone or "",
        ";".join(m.tags),
        _fmt_time(m.created),
        _fmt_time(m.updated),
    ]


_csv_layouts: Dict[str, Tuple[List[str], Callable[[Any], List[str]]]] = {
    "project": (["name", "status", "priority", "created", "updated"], _project_row),
    "milestone": (
        ["title", "status", "project", "target_date", "created", "updated"],
        _milestone_row,
    ),
    "issue": (
        ["title", "status", "priority", "project", "milestone", "tags", "created", "updated"],
        _issue_row,
    ),
}


def _collect(store: DocumentStore, entity_type: str) -> List[Any]:
    if entity_type == "project":
        return store.list_projects()
    if entity_type == "milestone":
        return store.list_all_milestones()
    return store.list_all_issues()


def export_json(store: DocumentStore, entity_type: str) -> str:
    if entity_type == "all":
        data: Any = {
            "projects": store.list_projects(),
            "milestones": store.list_all_milestones(),
            "issues": store.list_all_issues(),
        }
    else:
        data = _collect(store, entity_type)
    return json.dumps(to_jsonable_python(data), indent=2, ensure_ascii=False) + "\n"


def export_csv(store: DocumentStore, entity_type: str) -> str:
    if entity_type == "all":
        raise InvalidOperation(
            "CSV export does not support `all`. Please specify: project, milestone, or issue"
        )
    columns, to_row = _csv_layouts[entity_type]

    out = StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(columns)
    for doc in _collect(store, entity_type):
        writer.writerow(to_row(doc))
    return out.getvalue()


def export_data(store: DocumentStore, format: str, entity_type: str = "all") -> str:
    entity_type = entity_type.lower()
    if entity_type not in EXPORT_TYPES:
        raise InvalidParam("entity type", entity_type, EXPORT_TYPES)
    try:
        export_format = ExportFormat(format.lower())
    except ValueError:
        raise InvalidParam("format", format, [f.value for f in ExportFormat])

    if export_format == ExportFormat.json:
        return export_json(store, entity_type)
    return export_csv(store, entity_type)


def write_export(text: str, output: Path) -> None:
    with atomic_output_file(output, make_parents=True) as temp_output:
        with open(temp_output, "w", encoding="utf-8") as f:
            f.write(text)


## Tests


def test_export():
    import tempfile

    import pytest

    from pillar.commands.issue_commands import create_issue
    from pillar.commands.milestone_commands import create_milestone
    from pillar.commands.project_commands import create_project

    with tempfile.TemporaryDirectory() as tmp:
        store = DocumentStore(Path(tmp), author="Alice")
        create_project(store, "TestProject", priority="high")
        create_milestone(store, "TestProject", "v1.0", "2025-12-31")
        create_issue(store, "TestProject", 'Say "hi", twice', tags="a,b")

        projects = json.loads(export_data(store, "json", "project"))
        assert projects[0]["metadata"]["name"] == "TestProject"
        assert projects[0]["metadata"]["priority"] == "high"

        everything = json.loads(export_data(store, "JSON"))
        assert set(everything) == {"projects", "milestones", "issues"}
        assert everything["milestones"][0]["metadata"]["target_date"] == "2025-12-31"

        rows = list(csv.reader(StringIO(export_data(store, "csv", "issue"))))
        assert rows[0][:3] == ["title", "status", "priority"]
        assert rows[1][0] == 'Say "hi", twice'
        assert rows[1][5] == "a;b"

        with pytest.raises(InvalidOperation):
            export_data(store, "csv", "all")
        with pytest.raises(InvalidParam):
            export_data(store, "xml", "project")
        with pytest.raises(InvalidParam):
            export_data(store, "json", "epic")

        output = Path(tmp) / "out" / "issues.csv"
        write_export(export_data(store, "csv", "issue"), output)
        assert output.read_text().startswith("title,status")
