"""CLI entry point for codedrafts."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, TypeVar

import httpx
import typer
import yaml
from rich import print as rprint
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from codedrafts.config import DraftsConfig, load_config
from codedrafts.config.loader import DEFAULT_CONFIG_TEMPLATE
from codedrafts.drafts import (
    CreateDraftChange,
    Draft,
    DraftError,
    DraftPendingUser,
    DraftService,
    create_draft_service,
)
from codedrafts.git import UNCOMMITTED, UNCOMMITTED_STAGED, RevisionRange
from codedrafts.identities.local import local_repository
from codedrafts.logging_config import configure_logging
from codedrafts.transport import HttpServerConnection

T = TypeVar("T")

VISIBILITIES = ("public", "private", "invite_only", "provider_access")
DRAFT_TYPES = ("patch", "stash", "suggested_pr_change")

app = typer.Typer(
    name="codedrafts",
    help="Share local code changes as cloud drafts.",
)

config_app = typer.Typer(help="Manage codedrafts configuration.")
app.add_typer(config_app, name="config")

users_app = typer.Typer(help="Manage who can see a draft.")
app.add_typer(users_app, name="users")

# Global state
_config: DraftsConfig | None = None


def _get_config() -> DraftsConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to codedrafts.yaml")
    ] = None,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    configure_logging("debug" if verbose else _config.log_level, _config.log_format)


def _run(
    fn: Callable[[DraftService], Awaitable[T]],
    repo_paths: list[str] | None = None,
) -> T:
    """Run ``fn`` against a freshly wired service, mapping failures to exit code 1."""
    cfg = _get_config()

    async def _go() -> T:
        async with HttpServerConnection(cfg.api) as connection:
            service = create_draft_service(cfg, repo_paths, connection)
            return await fn(service)

    try:
        return asyncio.run(_go())
    except DraftError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        rprint(f"[red]Network error:[/red] {e}")
        raise typer.Exit(1)


def _check_choice(value: str | None, choices: tuple[str, ...], option: str) -> None:
    if value is not None and value not in choices:
        rprint(f"[red]Error:[/red] Invalid {option} '{value}'. Choose one of: {', '.join(choices)}.")
        raise typer.Exit(1)


def _format_time(draft: Draft) -> str:
    return draft.updated_at.strftime("%Y-%m-%d %H:%M")


def _display_draft_list(drafts: list[Draft], title: str) -> None:
    table = Table(title=f"{title} ({len(drafts)})")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Type", style="green")
    table.add_column("Author")
    table.add_column("Visibility", style="yellow")
    table.add_column("Updated", justify="right")
    for d in drafts:
        table.add_row(
            d.id,
            d.title or "-",
            d.type,
            d.author.name or d.author.id,
            d.visibility,
            _format_time(d),
        )
    rprint(table)


def _display_draft(draft: Draft, web_url: str) -> None:
    panel_text = (
        f"[bold]{draft.title or '(untitled)'}[/bold]\n"
        f"{draft.description or '(no description)'}\n\n"
        f"[dim]ID:[/dim]         {draft.id}\n"
        f"[dim]Type:[/dim]       {draft.type}\n"
        f"[dim]Author:[/dim]     {draft.author.name or draft.author.id}\n"
        f"[dim]Role:[/dim]       {draft.role}\n"
        f"[dim]Visibility:[/dim] {draft.visibility}\n"
        f"[dim]Published:[/dim]  {'yes' if draft.is_published else 'no'}\n"
        f"[dim]URL:[/dim]        {web_url}"
    )
    if draft.is_archived:
        panel_text += f"\n[dim]Archived:[/dim]   {draft.archived_reason or 'yes'}"
    rprint(Panel(panel_text, title="Draft", border_style="blue"))

    tree = Tree(f"[bold]Changesets[/bold] ({len(draft.changesets or [])})")
    for cs in draft.changesets or []:
        author = cs.git_user_name or cs.user_id or "unknown"
        node = tree.add(f"[green]{cs.id}[/green] by {author}")
        for p in cs.patches:
            node.add(
                f"[magenta]{p.id}[/magenta] {p.base_branch_name} @ {p.base_ref[:7]}"
                f" [dim](repo {p.repository_id})[/dim]"
            )
    rprint(tree)


# ---------------------------------------------------------------------------
# Draft commands
# ---------------------------------------------------------------------------


@app.command()
def create(
    title: str = typer.Argument(..., help="Draft title"),
    repos: list[str] = typer.Option(
        ["."], "--repo", "-r", help="Repository path (repeat for several repos)"
    ),
    from_ref: str = typer.Option("HEAD", "--from", help="Base revision"),
    to_ref: str | None = typer.Option(
        None, "--to", help="Target revision (default: working tree)"
    ),
    staged: bool = typer.Option(False, "--staged", help="Only include staged changes"),
    draft_type: str = typer.Option("patch", "--type", "-t", help="patch, stash or suggested_pr_change"),
    description: str | None = typer.Option(None, "--description", "-d"),
    visibility: str | None = typer.Option(None, "--visibility"),
    pr_entity_id: str | None = typer.Option(
        None, "--pr", help="Pull request entity id (suggested_pr_change only)"
    ),
) -> None:
    """Create and publish a draft from local changes."""
    _check_choice(draft_type, DRAFT_TYPES, "type")
    _check_choice(visibility, VISIBILITIES, "visibility")

    target = to_ref or (UNCOMMITTED_STAGED if staged else UNCOMMITTED)
    changes = [
        CreateDraftChange(
            repository=local_repository(path),
            revision=RevisionRange(from_ref=from_ref, to_ref=target),
            pr_entity_id=pr_entity_id,
        )
        for path in repos
    ]
    rprint(f"[bold]Creating draft[/bold] from {len(changes)} repositor{'y' if len(changes) == 1 else 'ies'}...")

    async def _create(service: DraftService) -> tuple[Draft, str]:
        draft = await service.create_draft(
            draft_type,
            title,
            changes,
            description=description,
            visibility=visibility,
            pr_entity_id=pr_entity_id,
        )
        return draft, service.generate_web_url(draft)

    draft, url = _run(_create, repos)
    rprint(f"[green]Published[/green] {draft.id}")
    rprint(f"  {url}")


@app.command(name="list")
def list_drafts(
    archived: bool = typer.Option(False, "--archived", help="List archived drafts"),
) -> None:
    """List drafts visible to the current account."""
    drafts = _run(lambda s: s.get_drafts(is_archived=archived))
    if not drafts:
        rprint("[yellow]No drafts found.[/yellow]")
        raise typer.Exit(0)
    _display_draft_list(drafts, "Archived drafts" if archived else "Drafts")


@app.command()
def show(
    draft_id: str = typer.Argument(..., help="Draft id"),
) -> None:
    """Show a draft with its changesets and patches."""

    async def _show(service: DraftService) -> tuple[Draft, str]:
        draft = await service.get_draft(draft_id)
        return draft, service.generate_web_url(draft)

    draft, url = _run(_show)
    _display_draft(draft, url)


@app.command()
def patch(
    patch_id: str = typer.Argument(..., help="Patch id"),
    repos: list[str] = typer.Option(
        [], "--repo", "-r", help="Local repository to match the patch against"
    ),
    output: str | None = typer.Option(None, "--output", "-o", help="Write the diff to a file"),
) -> None:
    """Download a patch's diff."""
    p = _run(lambda s: s.get_patch(patch_id), repos)
    contents = p.contents or ""

    if output:
        Path(output).write_text(contents)
        rprint(f"[green]Wrote[/green] {output} ({len(p.files or [])} files)")
        return

    repo_name = p.repository.name if p.repository is not None else p.repository_id
    rprint(f"[dim]Repository:[/dim] {repo_name}  [dim]Base:[/dim] {p.base_branch_name} @ {p.base_ref[:7]}")
    for f in p.files or []:
        rprint(f"  [yellow]{f.status}[/yellow] {f.path}")
    rprint(Syntax(contents, "diff"))


@app.command()
def delete(
    draft_id: str = typer.Argument(..., help="Draft id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a draft."""
    if not yes:
        typer.confirm(f"Delete draft {draft_id}?", abort=True)
    _run(lambda s: s.delete_draft(draft_id))
    rprint(f"[green]Deleted[/green] {draft_id}")


@app.command()
def archive(
    draft_id: str = typer.Argument(..., help="Draft id"),
    reason: str | None = typer.Option(None, "--reason", help="accepted, rejected, ..."),
    repos: list[str] = typer.Option(
        [], "--repo", "-r", help="Local repository used to find provider credentials"
    ),
) -> None:
    """Archive a draft."""

    async def _archive(service: DraftService) -> None:
        draft = await service.get_draft(draft_id)
        await service.archive_draft(draft, archive_reason=reason)

    _run(_archive, repos)
    rprint(f"[green]Archived[/green] {draft_id}")


@app.command()
def visibility(
    draft_id: str = typer.Argument(..., help="Draft id"),
    value: str = typer.Argument(..., help="public, private, invite_only or provider_access"),
) -> None:
    """Change who can see a draft."""
    _check_choice(value, VISIBILITIES, "visibility")
    draft = _run(lambda s: s.update_draft_visibility(draft_id, value))
    rprint(f"[green]Updated[/green] {draft.id}: visibility is now {draft.visibility}")


@app.command()
def counts(
    pr_entity_ids: list[str] = typer.Argument(..., help="Pull request entity ids"),
) -> None:
    """Show how many code suggestions each pull request has."""
    result = _run(lambda s: s.get_code_suggestion_counts(pr_entity_ids))
    table = Table(title="Code suggestions")
    table.add_column("Pull request", style="cyan")
    table.add_column("Suggestions", justify="right")
    for pr in pr_entity_ids:
        table.add_row(pr, str(result.get(pr, 0)))
    rprint(table)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _parse_pending_user(spec: str) -> DraftPendingUser:
    """``user-id`` or ``user-id:role``."""
    user_id, _, role = spec.partition(":")
    if not user_id:
        raise typer.BadParameter(f"Invalid user '{spec}': expected 'id' or 'id:role'")
    return DraftPendingUser(user_id=user_id, role=role or "viewer")


@users_app.command("list")
def users_list(
    draft_id: str = typer.Argument(..., help="Draft id"),
) -> None:
    """List users of a draft."""
    users = _run(lambda s: s.get_draft_users(draft_id))
    if not users:
        rprint("[yellow]No users.[/yellow]")
        raise typer.Exit(0)
    table = Table(title=f"Users of {draft_id}")
    table.add_column("User", style="cyan")
    table.add_column("Role", style="green")
    for u in users:
        table.add_row(u.user_id, u.role)
    rprint(table)


@users_app.command("add")
def users_add(
    draft_id: str = typer.Argument(..., help="Draft id"),
    users: list[str] = typer.Argument(..., help="Users as 'id' or 'id:role'"),
) -> None:
    """Invite users to a draft."""
    pending = [_parse_pending_user(u) for u in users]
    added = _run(lambda s: s.add_draft_users(draft_id, pending))
    rprint(f"[green]Added[/green] {len(added)} user(s) to {draft_id}")


@users_app.command("remove")
def users_remove(
    draft_id: str = typer.Argument(..., help="Draft id"),
    user_id: str = typer.Argument(..., help="User id"),
) -> None:
    """Remove a user from a draft."""
    _run(lambda s: s.remove_draft_user(draft_id, user_id))
    rprint(f"[green]Removed[/green] {user_id} from {draft_id}")


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default codedrafts.yaml in current directory."""
    target = Path("codedrafts.yaml")
    if target.exists() and not force:
        rprint("[yellow]codedrafts.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
