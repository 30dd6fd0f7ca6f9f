"""
Workspace discovery, setup, and config. A workspace is any directory holding a
`.pillar/` marker directory.
"""

import os
import subprocess
from pathlib import Path
from typing import Optional

from frontmatter_format import read_yaml_file, write_yaml_file
from pydantic import TypeAdapter, ValidationError
from ruamel.yaml.error import YAMLError

from pillar.config.logger import get_logger, reset_logging
from pillar.config.settings import CONFIG_FILE, DOT_DIR, global_settings, TEMPLATES_DIR
from pillar.errors import FileFormatError, InvalidInput, InvalidState
from pillar.file_formats.frontmatter_codec import header_to_dict
from pillar.file_storage.document_store import DocumentStore
from pillar.model.config_model import Config, WorkspaceConfig
from pillar.model.tracker_model import UNKNOWN_AUTHOR
from pillar.util.sort_utils import custom_key_sort

log = get_logger(__name__)


PROJECT_TEMPLATE = """---
name: {{PROJECT_NAME}}
status: backlog
priority: medium
---

# {{PROJECT_NAME}}

Project description goes here.

## Goals

- Goal 1
- Goal 2

## Overview

Detailed project overview.
"""

MILESTONE_TEMPLATE = """---
title: {{MILESTONE_TITLE}}
status: backlog
target_date: {{TARGET_DATE}}
project: {{PROJECT_NAME}}
---

# {{MILESTONE_TITLE}}

Milestone description and objectives.
"""

ISSUE_TEMPLATE = """---
title: {{ISSUE_TITLE}}
status: todo
priority: medium
project: {{PROJECT_NAME}}
tags: []
---

# {{ISSUE_TITLE}}

## Description

Detailed issue description.

## Acceptance Criteria

- [ ] Criterion 1
- [ ] Criterion 2
"""

TEMPLATES = {
    "project.md": PROJECT_TEMPLATE,
    "milestone.md": MILESTONE_TEMPLATE,
    "issue.md": ISSUE_TEMPLATE,
}


def is_workspace_dir(path: Path) -> bool:
    return (path / DOT_DIR).is_dir()


def find_workspace_dir(start: Path = Path(".")) -> Optional[Path]:
    """
    The nearest directory at or above `start` that is a workspace, or None.
    """
    path = start.absolute()
    while True:
        if is_workspace_dir(path):
            return path
        if path.parent == path:
            return None
        path = path.parent


def read_config(root: Path) -> Config:
    config_path = root / CONFIG_FILE
    if not config_path.exists():
        raise InvalidState(f"Workspace config not found: {config_path}")
    try:
        data = read_yaml_file(str(config_path)) or {}
        return TypeAdapter(Config).validate_python(data)
    except (YAMLError, ValidationError) as e:
        raise FileFormatError(f"Invalid workspace config: {config_path}: {e}") from e


def write_config(root: Path, config: Config) -> None:
    data = header_to_dict(config)
    write_yaml_file(
        data, str(root / CONFIG_FILE), key_sort=custom_key_sort(["workspace", "defaults"])
    )


def _check_base_directory(base_directory: str) -> str:
    base_directory = base_directory.strip() or "."
    normalized = Path(base_directory)
    if Path(base_directory).is_absolute() or ".." in normalized.parts:
        raise InvalidInput(
            f"Base directory must be a path inside the workspace: `{base_directory}`"
        )
    if normalized.parts and normalized.parts[0] == DOT_DIR:
        raise InvalidInput(f"Base directory cannot be `{DOT_DIR}` or inside `{DOT_DIR}/`")
    return base_directory


def init_workspace(root: Path, base_directory: Optional[str] = None) -> Config:
    """
    Create a new workspace at `root`, with its config, document templates, and base
    directory.
    """
    if (root / DOT_DIR).exists():
        raise InvalidState(f"Pillar workspace already initialized in this directory: {root}")

    base_directory = _check_base_directory(base_directory or ".")

    config = Config(workspace=WorkspaceConfig(base_directory=base_directory))

    templates_dir = root / TEMPLATES_DIR
    templates_dir.mkdir(parents=True)
    write_config(root, config)
    for filename, template in TEMPLATES.items():
        (templates_dir / filename).write_text(template)

    (root / base_directory).mkdir(parents=True, exist_ok=True)

    log.info("Initialized workspace: %s (base directory %s)", root, base_directory)

    return config


def base_dir_for(root: Path, config: Config) -> Path:
    base_dir = root / config.workspace.base_directory
    base_dir.mkdir(parents=True, exist_ok=True)
    return base_dir


def git_user_name() -> Optional[str]:
    try:
        result = subprocess.run(
            ["git", "config", "user.name"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return result.stdout.strip() or None


def resolve_author() -> str:
    """
    The name used on new comments: the configured author, then git's `user.name`,
    then `$USER`, then "Unknown".
    """
    return global_settings().author or git_user_name() or os.environ.get("USER") or UNKNOWN_AUTHOR


def current_store(start: Path = Path("."), author: Optional[str] = None) -> DocumentStore:
    """
    Open the document store of the workspace containing `start`. This is where the
    workspace root and author get resolved, so code below it never looks at the current
    directory or environment.
    """
    root = find_workspace_dir(start)
    if not root:
        raise InvalidState("Not in a Pillar workspace. Run `pillar init` to initialize one.")

    reset_logging(root)

    config = read_config(root)
    return DocumentStore(base_dir_for(root, config), author or resolve_author(), config=config)


## Tests


def test_init_workspace():
    import tempfile

    import pytest

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        init_workspace(root)

        assert (root / CONFIG_FILE).is_file()
        for filename in TEMPLATES:
            assert (root / TEMPLATES_DIR / filename).is_file()

        config_text = (root / CONFIG_FILE).read_text()
        assert "workspace:" in config_text
        assert "base_directory:" in config_text
        assert "defaults:" in config_text

        config = read_config(root)
        assert config.workspace.base_directory == "."

        with pytest.raises(InvalidState):
            init_workspace(root)


def test_init_custom_base_directory():
    import tempfile

    import pytest

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        with pytest.raises(InvalidInput) as e:
            init_workspace(root, ".pillar")
        assert ".pillar" in str(e.value)
        with pytest.raises(InvalidInput):
            init_workspace(root, ".pillar/data")
        assert not (root / DOT_DIR).exists()

        init_workspace(root, "pm")
        assert (root / "pm").is_dir()
        assert read_config(root).workspace.base_directory == "pm"

        store = current_store(root / "pm", author="Tester")
        assert store.base_dir == root / "pm"
        assert store.author == "Tester"


def test_read_config_default_base_directory():
    import tempfile

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        (root / DOT_DIR).mkdir()
        (root / CONFIG_FILE).write_text(
            "workspace:\n  version: 0.1.0\ndefaults:\n  priority: medium\n  status: backlog\n"
        )
        config = read_config(root)
        assert config.workspace.version == "0.1.0"
        assert config.workspace.base_directory == "."


def test_find_workspace_dir():
    import tempfile

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp).resolve()
        nested = root / "a" / "b"
        nested.mkdir(parents=True)
        assert find_workspace_dir(nested) != root

        (root / DOT_DIR).mkdir()
        assert find_workspace_dir(nested) == root
