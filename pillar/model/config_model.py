"""
Schema of the workspace config file, `.pillar/config.yml`.
"""

from dataclasses import field

from pydantic.dataclasses import dataclass

from pillar.model.tracker_model import Priority, Status

WORKSPACE_VERSION = "0.1.0"


@dataclass
class WorkspaceConfig:
    version: str = WORKSPACE_VERSION

    base_directory: str = "."
    """Where projects live, relative to the workspace root."""


@dataclass
class DefaultConfig:
    priority: Priority = Priority.medium
    status: Status = Status.backlog


@dataclass
class Config:
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    defaults: DefaultConfig = field(default_factory=DefaultConfig)


## Tests


def test_config_defaults():
    from pydantic import TypeAdapter

    config = TypeAdapter(Config).validate_python(
        {"workspace": {"version": "0.1.0"}, "defaults": {"priority": "high", "status": "todo"}}
    )
    assert config.workspace.base_directory == "."
    assert config.defaults.priority == Priority.high
    assert config.defaults.status == Status.todo

    assert TypeAdapter(Config).validate_python({}) == Config()
