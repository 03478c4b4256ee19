"""CLI interface for postdesk."""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from postdesk.accounts.services import (
    LocalAuthProvider,
    StaticSessionProvider,
    add_whitelisted_user,
    get_all_users,
    get_whitelisted_users,
    local_admin_session,
    remove_whitelisted_user,
    update_user_role,
)
from postdesk.accounts.store import AccountStore
from postdesk.config import PostdeskConfig, load_config, merge_cli_overrides
from postdesk.content.exporter import DocumentMeta, render_document, render_sections
from postdesk.content.importer import import_html, load_structured
from postdesk.content.models import BlogPostFormValues, dump_structured
from postdesk.content.seo import analyze_form
from postdesk.content.store import PostStore
from postdesk.errors import ConfigurationError
from postdesk.posts.services import PostService
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="postdesk",
    help="Edit, render and score structured blog articles.",
)
posts_app = typer.Typer(help="Inspect and pin stored articles.")
whitelist_app = typer.Typer(help="Manage the sign-up whitelist.")
users_app = typer.Typer(help="Manage users and their roles.")
app.add_typer(posts_app, name="posts")
app.add_typer(whitelist_app, name="whitelist")
app.add_typer(users_app, name="users")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from postdesk import __version__

        console.print(f"postdesk {__version__}")
        raise typer.Exit()


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


def _read(path: Path) -> str:
    if not path.exists():
        _fail(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def _config(ctx: typer.Context) -> PostdeskConfig:
    return ctx.obj["config"]


def _post_service(ctx: typer.Context) -> PostService:
    config = _config(ctx)
    return PostService(
        PostStore(config.store.path),
        StaticSessionProvider(local_admin_session()),
        config,
    )


def _account_store(ctx: typer.Context) -> AccountStore:
    return AccountStore(_config(ctx).store.path)


def _auth_provider(ctx: typer.Context) -> LocalAuthProvider:
    try:
        return LocalAuthProvider.from_config(_account_store(ctx), _config(ctx).auth)
    except ConfigurationError as exc:
        _fail(str(exc))


def _print_form_errors(errors: dict[str, list[str]]) -> NoReturn:
    for field, messages in errors.items():
        label = "" if field == "_form" else f"{field}: "
        for message in messages:
            console.print(f"[red]Error:[/red] {label}{message}")
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", help="Path to a .postdesk.toml file."),
    ] = None,
    store_dir: Annotated[
        Optional[Path],
        typer.Option("--store-dir", help="Directory holding the JSON stores."),
    ] = None,
) -> None:
    """postdesk - backoffice for structured blog articles."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s [%(name)s] %(message)s",
            force=True,
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s", force=True)

    config = load_config(config_path)
    config = merge_cli_overrides(
        config, store_directory=str(store_dir) if store_dir is not None else None
    )
    ctx.obj = {"config": config}


# ── Content commands ─────────────────────────────────────────────


@app.command(name="import-html")
def import_html_cmd(
    file: Annotated[Path, typer.Argument(help="HTML file to import.")],
    pretty: Annotated[bool, typer.Option("--pretty", help="Indent the JSON output.")] = False,
) -> None:
    """Import a legacy HTML body and print its structured JSON."""
    sections = import_html(_read(file))
    output = dump_structured(sections)
    if pretty:
        output = json.dumps(json.loads(output), indent=2, ensure_ascii=False)
    typer.echo(output)


@app.command(name="render")
def render_cmd(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Structured JSON (or legacy HTML) file.")],
    document: Annotated[
        bool, typer.Option("--document", help="Render a full standalone HTML document.")
    ] = False,
    title: Annotated[
        Optional[str], typer.Option("--title", help="Document title.")
    ] = None,
) -> None:
    """Render structured content to an HTML fragment or document."""
    sections = load_structured(_read(file))
    if not document:
        typer.echo(render_sections(sections))
        return
    meta = DocumentMeta(title=title or "", lang=_config(ctx).site.lang)
    typer.echo(render_document(sections, meta))


@app.command(name="score")
def score_cmd(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="JSON file of article form values.")],
) -> None:
    """Score an article form and list what would improve it."""
    try:
        form = BlogPostFormValues.model_validate_json(_read(file))
    except ValidationError as exc:
        _fail(f"Invalid form values: {exc.error_count()} error(s)")
    if not form.content and form.structured_content:
        form.content = render_sections(form.structured_content)

    seo = _config(ctx).seo
    report = analyze_form(
        form,
        min_content_length=seo.min_content_length,
        excerpt_max_length=seo.excerpt_max_length,
    )
    colour = "green" if report.score >= 80 else "yellow" if report.score >= 50 else "red"
    console.print(f"SEO score: [{colour}]{report.score}/100[/{colour}]")
    if report.recommendations:
        console.print()
        console.print("[bold]Recommendations:[/bold]")
        for tip in report.recommendations:
            console.print(f"  - {tip}")


# ── Posts ────────────────────────────────────────────────────────


@posts_app.command(name="list")
def posts_list_cmd(ctx: typer.Context) -> None:
    """List stored articles, newest first."""
    result = _post_service(ctx).list_posts()
    if result.error:
        _fail(result.error)
    if not result.posts:
        console.print("[yellow]No articles yet.[/yellow]")
        return
    table = Table("ID", "Title", "Slug", "Status", "Pinned")
    for post in result.posts:
        table.add_row(
            str(post.id), post.title, post.slug, post.status.value, "yes" if post.pinned else ""
        )
    console.print(table)


@posts_app.command(name="show")
def posts_show_cmd(
    ctx: typer.Context,
    post_id: Annotated[int, typer.Argument(help="Article id.")],
) -> None:
    """Show an article's metadata and body outline."""
    result = _post_service(ctx).get_post(post_id)
    if result.error or result.editable is None:
        _fail(result.error or "Article not found")
    editable = result.editable
    record = editable.record
    console.print(f"[bold]{record.title}[/bold] ({record.slug})")
    console.print(f"  Status: {record.status.value}")
    if editable.category:
        console.print(f"  Category: {editable.category.name}")
    if record.author:
        console.print(f"  Author: {record.author}")
    if editable.structured_content is None:
        console.print("  Body: raw HTML")
        return
    console.print(f"  Sections: {len(editable.structured_content)}")
    for index, section in enumerate(editable.structured_content, start=1):
        kinds = ", ".join(e.type for e in section.elements) or "empty"
        console.print(f"    {index}. {kinds}")


@posts_app.command(name="html")
def posts_html_cmd(
    ctx: typer.Context,
    post_id: Annotated[int, typer.Argument(help="Article id.")],
) -> None:
    """Print the stored standalone HTML document of an article."""
    result = _post_service(ctx).get_generated_html(post_id)
    if result.error:
        _fail(result.error)
    typer.echo(result.html or "")


@posts_app.command(name="pin")
def posts_pin_cmd(
    ctx: typer.Context,
    post_id: Annotated[int, typer.Argument(help="Article id.")],
    unpin: Annotated[bool, typer.Option("--unpin", help="Unpin instead.")] = False,
) -> None:
    """Pin an article (unpinning any other), or unpin it."""
    result = _post_service(ctx).toggle_pin(post_id, not unpin)
    if result.error:
        _fail(result.error)
    state = "Unpinned" if unpin else "Pinned"
    console.print(f"[green]{state} article {post_id}[/green]")


@posts_app.command(name="metrics")
def posts_metrics_cmd(ctx: typer.Context) -> None:
    """Count drafts and published articles."""
    result = _post_service(ctx).post_metrics()
    if result.error or result.metrics is None:
        _fail(result.error or "No metrics")
    console.print(f"Drafts: {result.metrics.draft_count}")
    console.print(f"Published: {result.metrics.published_count}")


# ── Accounts ─────────────────────────────────────────────────────


@whitelist_app.command(name="list")
def whitelist_list_cmd(ctx: typer.Context) -> None:
    """List whitelisted emails."""
    entries = get_whitelisted_users(_account_store(ctx))
    if not entries:
        console.print("[yellow]The whitelist is empty.[/yellow]")
        return
    table = Table("ID", "Email")
    for entry in entries:
        table.add_row(str(entry.id), entry.email)
    console.print(table)


@whitelist_app.command(name="add")
def whitelist_add_cmd(
    ctx: typer.Context,
    email: Annotated[str, typer.Argument(help="Email allowed to sign up.")],
) -> None:
    """Allow an email to sign up."""
    sessions = StaticSessionProvider(local_admin_session())
    result = add_whitelisted_user(_account_store(ctx), sessions, email)
    if result.error or result.entry is None:
        _fail(result.error or "Whitelist entry not created")
    console.print(f"[green]Whitelisted {result.entry.email} (id {result.entry.id})[/green]")


@whitelist_app.command(name="remove")
def whitelist_remove_cmd(
    ctx: typer.Context,
    entry_id: Annotated[int, typer.Argument(help="Whitelist entry id.")],
) -> None:
    """Remove a whitelist entry."""
    sessions = StaticSessionProvider(local_admin_session())
    result = remove_whitelisted_user(_account_store(ctx), sessions, entry_id)
    if result.error:
        _fail(result.error)
    console.print(f"[green]Removed whitelist entry {entry_id}[/green]")


@users_app.command(name="list")
def users_list_cmd(ctx: typer.Context) -> None:
    """List registered users."""
    users = get_all_users(_account_store(ctx))
    if not users:
        console.print("[yellow]No users yet.[/yellow]")
        return
    table = Table("ID", "Email", "Name", "Role")
    for user in users:
        table.add_row(user.id, user.email, user.name, user.role.value)
    console.print(table)


@users_app.command(name="set-role")
def users_set_role_cmd(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="User id.")],
    role: Annotated[str, typer.Argument(help="ADMIN, EDITOR or READER.")],
) -> None:
    """Change a user's role."""
    sessions = StaticSessionProvider(local_admin_session())
    result = update_user_role(_account_store(ctx), sessions, user_id, role)
    if result.error or result.user is None:
        _fail(result.error or "User not found")
    console.print(f"[green]{result.user.email} is now {result.user.role.value}[/green]")


@users_app.command(name="register")
def users_register_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Display name.")],
    email: Annotated[str, typer.Argument(help="Whitelisted email address.")],
    password: Annotated[
        str,
        typer.Option(prompt=True, hide_input=True, confirmation_prompt=True, help="Password."),
    ],
) -> None:
    """Create an account for a whitelisted email."""
    result = _auth_provider(ctx).sign_up(name, email, password)
    if not result.success or result.session is None:
        _print_form_errors(result.errors)
    user = result.session.user
    console.print(f"[green]Registered {user.email} as {user.role.value}[/green]")


@users_app.command(name="sign-in")
def users_sign_in_cmd(
    ctx: typer.Context,
    email: Annotated[str, typer.Argument(help="Account email.")],
    password: Annotated[str, typer.Option(prompt=True, hide_input=True, help="Password.")],
) -> None:
    """Check credentials and print a session token."""
    result = _auth_provider(ctx).sign_in(email, password)
    if not result.success or result.session is None:
        _print_form_errors(result.errors)
    session = result.session
    console.print(f"Signed in as {session.user.email} ({session.user.role.value})")
    console.print(f"Expires: {session.expires_at:%Y-%m-%d %H:%M} UTC")
    typer.echo(session.token)


if __name__ == "__main__":
    app()
