"""
Command-line interface for repo-digest.

Uses Typer to publish a digest of recent GitHub activity to WordPress, or
to preview it without publishing. Supports loading .env files for tokens.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from .config import Credentials, load_config, resolve_credentials, save_credentials
from .core.errors import DigestError
from .core.repo_ref import resolve_repository
from .logging_utils import log_event, redact_value, setup_logging
from .runner import PublishContext, PublishPipeline

app = typer.Typer(add_completion=False)
console = Console()

DEFAULT_CREDENTIALS_FILE = Path("repo-digest.credentials.json")


@app.command()
def publish(
    repo: str | None = typer.Option(None, "--repo", "-r", help="GitHub repository URL."),
    owner: str | None = typer.Option(None, "--owner", help="Repository owner (with --name)."),
    name: str | None = typer.Option(None, "--name", help="Repository name (with --owner)."),
    since: datetime | None = typer.Option(
        None, "--since", help="Only include activity after this date/time, in local time (ISO 8601)."
    ),
    title: str | None = typer.Option(None, "--title", "-t", help="Post title."),
    tags: list[str] = typer.Option([], "--tag", help="Extra tag; repeat for several."),
    categories: list[str] = typer.Option([], "--category", help="Category name; repeat for several."),
    status: str | None = typer.Option(None, "--status", help="Post status: publish, draft or private."),
    preview: bool = typer.Option(False, "--preview", help="Render the article without publishing."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the article HTML here."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, help="YAML config file."),
    credentials: Path | None = typer.Option(
        None, "--credentials", exists=True, help="JSON credentials file."
    ),
    github_token: str | None = typer.Option(
        None,
        "--github-token",
        envvar="GITHUB_TOKEN",
        help="GitHub token (or set GITHUB_TOKEN / .env).",
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Publish (or preview) recent activity of a GitHub repository.

    Args:
        repo: Repository URL such as https://github.com/owner/name
        owner: Repository owner, used with --name instead of --repo
        name: Repository name, used with --owner instead of --repo
        since: Explicit lower bound for collected activity
        title: Post title override
        tags: Extra tags merged with the default tags
        categories: Category names for the post
        status: WordPress post status
        preview: Skip publishing and print the article instead
        output: Optional file for the rendered HTML body
        config: Optional path to YAML config file
        credentials: Optional JSON credentials file
        github_token: Override GitHub token
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    load_dotenv()

    if credentials is None and DEFAULT_CREDENTIALS_FILE.exists():
        credentials = DEFAULT_CREDENTIALS_FILE

    try:
        cfg = load_config(str(config) if config else None)
        if log_level:
            cfg.logging.level = log_level
        logger = setup_logging(cfg.logging, Path("logs") if cfg.logging.file else None)

        creds = resolve_credentials(cfg, credentials)
        if github_token:
            creds.github_token = github_token
        log_event(
            logger,
            "Credentials resolved",
            event="credentials_resolved",
            github_token=redact_value(creds.github_token),
            wordpress_url=creds.publish_url,
            wordpress_user=creds.publish_username,
        )

        if since is not None and since.tzinfo is None:
            # Typer parses offset-free values; read them as local wall-clock time.
            since = since.astimezone()

        target = resolve_repository(url=repo) if repo else resolve_repository(owner=owner, name=name)
        pipeline = PublishPipeline(PublishContext.from_config(cfg, creds), cfg=cfg, logger=logger)
        result = pipeline.run(
            target,
            since=since,
            title=title,
            tags=tags,
            categories=categories or None,
            status=status,
            preview=preview,
        )
    except DigestError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.draft.body_html, encoding="utf-8")
        console.print(f"Article written: {output}")

    if result.post is None:
        console.rule(escape(result.draft.title))
        console.print(f"Tags: {', '.join(sorted(result.draft.tags))}")
        if output is None:
            console.print(result.draft.body_html, markup=False, highlight=False)
        console.print(f"Preview only; covering activity since {result.since.isoformat()}")
        return

    console.print(f"Published post {result.post.id}: {result.post.link}")


@app.command()
def setup(
    path: Path = typer.Option(DEFAULT_CREDENTIALS_FILE, "--path", "-p", help="Where to write credentials."),
):
    """Interactively create a JSON credentials file."""
    if path.exists() and not typer.confirm(f"{path} exists. Overwrite?", default=False):
        raise typer.Exit(code=1)

    creds = Credentials(
        github_token=typer.prompt("GitHub token", hide_input=True),
        publish_url=typer.prompt("WordPress site URL"),
        publish_username=typer.prompt("WordPress username"),
        publish_password=typer.prompt("WordPress application password", hide_input=True),
    )
    save_credentials(path, creds)
    console.print(f"Credentials saved to {path}")


if __name__ == "__main__":
    app()
