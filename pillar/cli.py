"""
The `pillar` command line. Commands resolve the workspace and author once, call into
`pillar.commands`, and print the results.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.text import Text

from pillar.commands import (
    comment_commands,
    export_commands,
    issue_commands,
    milestone_commands,
    project_commands,
    search_commands,
    view_commands,
)
from pillar.commands.prompts import agent_prompt
from pillar.config.logger import get_logger, logging_setup
from pillar.config.settings import LogLevel, update_global_settings
from pillar.config.text_styles import BOARD_RULE, COLOR_HINT, COLOR_KEY
from pillar.file_storage.workspaces import current_store, init_workspace
from pillar.model.tracker_model import Issue, Milestone, Status
from pillar.shell_tools.exception_printing import wrap_with_exception_printing
from pillar.shell_ui.shell_output import (
    cprint,
    format_name_and_value,
    format_status,
    format_tags,
    print_bullet,
    print_heading,
    print_hint,
    print_markdown,
    print_raw,
    print_success,
    rich_print,
)
from pillar.version import get_version

log = get_logger(__name__)

app = typer.Typer(
    name="pillar",
    help="File-based project, milestone, and issue tracking.",
    add_completion=False,
    no_args_is_help=True,
)
project_app = typer.Typer(help="Manage projects.", no_args_is_help=True)
milestone_app = typer.Typer(help="Manage milestones.", no_args_is_help=True)
issue_app = typer.Typer(help="Manage issues.", no_args_is_help=True)
comment_app = typer.Typer(help="Add and list comments.", no_args_is_help=True)

app.add_typer(project_app, name="project")
app.add_typer(milestone_app, name="milestone")
app.add_typer(issue_app, name="issue")
app.add_typer(comment_app, name="comment")


def _version_callback(value: bool):
    if value:
        cprint(f"pillar {get_version()}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show info log messages."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    if verbose:
        with update_global_settings() as settings:
            settings.console_log_level = LogLevel.info
        logging_setup()


def _issue_line(issue: Issue) -> Text:
    return Text.assemble(
        (issue.id, COLOR_KEY),
        f": {issue.title}",
        format_tags(issue.metadata.status, issue.metadata.priority),
    )


def _milestone_line(milestone: Milestone, with_project: bool = False) -> Text:
    text = Text(milestone.title)
    if with_project:
        text.append(f" ({milestone.project_name})", style=COLOR_HINT)
    if milestone.metadata.target_date:
        text.append(f" - {milestone.metadata.target_date}")
    text.append_text(format_tags(milestone.metadata.status))
    return text


## Workspace


@app.command()
@wrap_with_exception_printing
def init(
    path: Optional[str] = typer.Option(
        None, "--path", "-p", help="Directory for project files, relative to the workspace."
    ),
):
    """
    Initialize a Pillar workspace in the current directory.
    """
    root = Path(".").absolute()
    config = init_workspace(root, path)
    print_success(f"Initialized Pillar workspace in {root}")
    if config.workspace.base_directory != ".":
        print_hint(f"Project files will be stored in: {root / config.workspace.base_directory}")


@app.command()
@wrap_with_exception_printing
def status():
    """
    Show an overview of the workspace.
    """
    overview = view_commands.workspace_status(current_store())

    print_heading("Pillar Workspace Status")
    rich_print(format_name_and_value("Projects", str(len(overview.projects))))

    if overview.active_projects:
        print_heading("Active Projects")
        for project, count in overview.active_projects:
            print_bullet(f"{project.name} ({count} issues in progress)")

    if overview.in_progress_issues:
        print_heading("In Progress Issues")
        for issue in overview.in_progress_issues:
            print_bullet(_issue_line(issue))

    if overview.upcoming_milestones:
        print_heading("Upcoming Milestones")
        for milestone in overview.upcoming_milestones:
            print_bullet(_milestone_line(milestone, with_project=True))

    print_heading("Issue Summary")
    rich_print(format_name_and_value("Total", str(overview.total_issues)))
    for issue_status in Status:
        count = overview.issue_counts.get(issue_status, 0)
        rich_print(format_name_and_value(issue_status.label, str(count)))


@app.command()
@wrap_with_exception_printing
def board(project: Optional[str] = typer.Argument(None, help="Only show this project.")):
    """
    Show issues as a Kanban board.
    """
    result = view_commands.board(current_store(), project)

    print_heading(result.title)
    if result.is_empty:
        print_hint("No issues found.")
        return

    for column_status, issues in result.columns:
        heading = format_status(column_status, column_status.label)
        rich_print(Text.assemble(heading, f" ({len(issues)})"))
        cprint(BOARD_RULE, color=COLOR_HINT)
        for issue in issues:
            priority = f" [{issue.metadata.priority}]"
            print_bullet(Text.assemble((issue.id, COLOR_KEY), f": {issue.title}", priority))
        cprint()


@app.command()
@wrap_with_exception_printing
def search(
    query: str = typer.Argument(..., help="Text to search for."),
    type: str = typer.Option("all", "--type", help="all, project, milestone, or issue."),
):
    """
    Search names, titles, descriptions, and tags.
    """
    results = search_commands.search(current_store(), query, type)

    if results.is_empty:
        print_hint(f"No results found for: {query}")
        return

    if results.projects:
        print_heading("Projects")
        for p in results.projects:
            print_bullet(Text.assemble(p.name, format_tags(p.metadata.status, p.metadata.priority)))
    if results.milestones:
        print_heading("Milestones")
        for m in results.milestones:
            print_bullet(_milestone_line(m, with_project=True))
    if results.issues:
        print_heading("Issues")
        for i in results.issues:
            print_bullet(_issue_line(i))


@app.command()
@wrap_with_exception_printing
def export(
    format: str = typer.Option("json", "--format", "-f", help="json or csv."),
    type: str = typer.Option("all", "--type", help="all, project, milestone, or issue."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file."),
):
    """
    Export workspace data as JSON or CSV.
    """
    text = export_commands.export_data(current_store(), format, type)
    if output:
        export_commands.write_export(text, output)
        print_success(f"Exported to {output}")
    else:
        print_raw(text if text.endswith("\n") else text + "\n")


@app.command()
@wrap_with_exception_printing
def ui(port: Optional[int] = typer.Option(None, "--port", help="Port for the local server.")):
    """
    Start the local web UI.
    """
    from pillar.server.local_server import run_server

    run_server(current_store(), port)


@app.command()
@wrap_with_exception_printing
def prompts():
    """
    Show instructions for using Pillar from a coding agent.
    """
    print_markdown(agent_prompt())


## Projects


@project_app.command("create")
@wrap_with_exception_printing
def project_create(
    name: str = typer.Argument(..., help="Project directory name."),
    id: Optional[str] = typer.Option(None, "--id", help="Short project ID."),
    priority: Optional[str] = typer.Option(None, "--priority", "-p"),
):
    """
    Create a project.
    """
    project = project_commands.create_project(current_store(), name, id, priority)
    print_success(f"Created project: {project.name} (ID: {project.metadata.project_id})")


@project_app.command("list")
@wrap_with_exception_printing
def project_list(
    status: Optional[str] = typer.Option(None, "--status", "-s"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p"),
):
    """
    List projects, most urgent first.
    """
    details = project_commands.list_projects(current_store(), status, priority)
    if not details:
        print_hint("No projects found.")
        return

    for d in details:
        m = d.project.metadata
        rich_print(Text.assemble(d.project.name, format_tags(m.status, m.priority)))
        print_hint(
            f"Milestones: {len(d.milestones)}, "
            f"Issues: {len(d.issues)} ({d.completed_count} completed)",
            extra_indent="  ",
        )


@project_app.command("show")
@wrap_with_exception_printing
def project_show(name: str = typer.Argument(...)):
    """
    Show a project with its milestones and issues.
    """
    details = project_commands.show_project(current_store(), name)
    project = details.project
    m = project.metadata

    print_heading(f"Project: {project.name}")
    rich_print(format_name_and_value("ID", m.project_id or ""))
    rich_print(format_name_and_value("Status", format_status(m.status)))
    rich_print(format_name_and_value("Priority", str(m.priority)))
    cprint()
    print_markdown(project.description)

    if details.milestones:
        print_heading(f"Milestones ({len(details.milestones)})")
        for milestone in details.milestones:
            print_bullet(_milestone_line(milestone))

    if details.issues:
        print_heading(f"Issues ({len(details.issues)})")
        for issue in details.issues:
            print_bullet(_issue_line(issue))


@project_app.command("edit")
@wrap_with_exception_printing
def project_edit(
    name: str = typer.Argument(...),
    status: Optional[str] = typer.Option(None, "--status", "-s"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
):
    """
    Update a project's status, priority, or description.
    """
    project_commands.edit_project(current_store(), name, status, priority, description)
    print_success(f"Updated project: {name}")


## Milestones


@milestone_app.command("create")
@wrap_with_exception_printing
def milestone_create(
    project: str = typer.Argument(...),
    title: str = typer.Argument(...),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Target date, YYYY-MM-DD."),
):
    """
    Create a milestone in a project.
    """
    milestone = milestone_commands.create_milestone(current_store(), project, title, date)
    print_success(f"Created milestone: {milestone.title} in project {project}")


@milestone_app.command("list")
@wrap_with_exception_printing
def milestone_list(
    project: Optional[str] = typer.Argument(None, help="Only list this project's milestones."),
):
    """
    List milestones by target date.
    """
    milestones = milestone_commands.list_milestones(current_store(), project)
    if not milestones:
        print_hint("No milestones found.")
        return

    for milestone in milestones:
        rich_print(_milestone_line(milestone, with_project=not project))


@milestone_app.command("edit")
@wrap_with_exception_printing
def milestone_edit(
    project: str = typer.Argument(...),
    title: str = typer.Argument(...),
    status: Optional[str] = typer.Option(None, "--status", "-s"),
    date: Optional[str] = typer.Option(None, "--date", help="Target date, or empty to clear."),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
):
    """
    Update a milestone's status, target date, or description.
    """
    milestone_commands.edit_milestone(current_store(), project, title, status, date, description)
    print_success(f"Updated milestone: {title}")


## Issues


@issue_app.command("create")
@wrap_with_exception_printing
def issue_create(
    project: str = typer.Argument(...),
    title: str = typer.Argument(...),
    priority: Optional[str] = typer.Option(None, "--priority", "-p"),
    milestone: Optional[str] = typer.Option(None, "--milestone", "-m"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags."),
):
    """
    Create an issue in a project.
    """
    issue = issue_commands.create_issue(current_store(), project, title, priority, milestone, tags)
    print_success(f"Created issue: {issue.id} - {issue.title}")


@issue_app.command("list")
@wrap_with_exception_printing
def issue_list(
    status: Optional[str] = typer.Option(None, "--status", "-s"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p"),
    project: Optional[str] = typer.Option(None, "--project", "-P"),
    milestone: Optional[str] = typer.Option(None, "--milestone", "-m"),
    tag: Optional[str] = typer.Option(None, "--tag", "-t"),
):
    """
    List issues, most urgent first.
    """
    issues = issue_commands.list_issues(current_store(), status, priority, project, milestone, tag)
    if not issues:
        print_hint("No issues found.")
        return

    for issue in issues:
        rich_print(_issue_line(issue))
        details = []
        if issue.metadata.milestone:
            details.append(f"Milestone: {issue.metadata.milestone}")
        if issue.metadata.tags:
            details.append(f"Tags: {', '.join(issue.metadata.tags)}")
        if details:
            print_hint(" | ".join(details), extra_indent="  ")


@issue_app.command("show")
@wrap_with_exception_printing
def issue_show(issue_id: str = typer.Argument(..., help="Issue ID, e.g. my-project/001.")):
    """
    Show an issue.
    """
    issue = issue_commands.show_issue(current_store(), issue_id)
    m = issue.metadata

    print_heading(f"Issue {issue.id}: {issue.title}")
    rich_print(format_name_and_value("Status", format_status(m.status)))
    rich_print(format_name_and_value("Priority", str(m.priority)))
    if m.milestone:
        rich_print(format_name_and_value("Milestone", m.milestone))
    if m.tags:
        rich_print(format_name_and_value("Tags", ", ".join(m.tags)))
    cprint()
    print_markdown(issue.description)


@issue_app.command("edit")
@wrap_with_exception_printing
def issue_edit(
    issue_id: str = typer.Argument(..., help="Issue ID, e.g. my-project/001."),
    status: Optional[str] = typer.Option(None, "--status", "-s"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p"),
    milestone: Optional[str] = typer.Option(None, "--milestone", "-m", help="Empty to clear."),
    tags: Optional[str] = typer.Option(None, "--tags", "-t"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
):
    """
    Update an issue.
    """
    issue_commands.edit_issue(
        current_store(), issue_id, status, priority, milestone, tags, description
    )
    print_success(f"Updated issue: {issue_id}")


## Comments


@comment_app.command("add")
@wrap_with_exception_printing
def comment_add(
    entity_type: str = typer.Argument(..., help="project, milestone, or issue."),
    project: str = typer.Argument(...),
    content: str = typer.Argument(..., help="Comment text."),
    identifier: Optional[str] = typer.Argument(
        None, help="Milestone title or issue number. Not used for projects."
    ),
):
    """
    Add a comment to a project, milestone, or issue.
    """
    comment = comment_commands.add_comment(
        current_store(), entity_type, project, identifier, content
    )
    print_success(f"Added comment by {comment.author} to {entity_type}")


@comment_app.command("list")
@wrap_with_exception_printing
def comment_list(
    entity_type: str = typer.Argument(..., help="project, milestone, or issue."),
    project: str = typer.Argument(...),
    identifier: Optional[str] = typer.Argument(None),
):
    """
    List the comments on a project, milestone, or issue.
    """
    comments = comment_commands.list_comments(current_store(), entity_type, project, identifier)
    if not comments:
        print_hint("No comments.")
        return

    for comment in comments:
        cprint()
        rich_print(Text.assemble((comment.author, COLOR_KEY), " ", (comment.timestamp, COLOR_HINT)))
        cprint(comment.content, extra_indent="  ")
