"""Command line interface for SpaceTraveling."""

import logging
from pathlib import Path
from typing import Annotated

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from spacetraveling.core.config import SpaceTravelingConfig
from spacetraveling.core.exceptions import GenerationFailure, SpaceTravelingError
from spacetraveling.core.logging import setup_logging
from spacetraveling.core.richtext import as_text
from spacetraveling.core.types import NotFound, PostSummary
from spacetraveling.engine.article import compute_read_time, fetch_article
from spacetraveling.engine.filters import format_date
from spacetraveling.engine.listing import ListingAggregator, initialize
from spacetraveling.engine.pages import create_page_store
from spacetraveling.infra.adapters.prismic import PrismicClient
from spacetraveling.infra.sinks.static import StaticSiteSink

logger = logging.getLogger(__name__)
console = Console()

app = typer.Typer(name="spacetraveling", help="SpaceTraveling - a blog generated from Prismic content")

SiteRoot = Annotated[
    Path | None,
    typer.Option("--site-root", help="Directory holding .spacetraveling.toml (default: current directory)"),
]


def _load(site_root: Path | None) -> SpaceTravelingConfig:
    config = SpaceTravelingConfig.load(site_root.expanduser().resolve() if site_root else None)
    setup_logging(config.site.log_level)
    return config


def _client(config: SpaceTravelingConfig) -> PrismicClient:
    return PrismicClient(
        config.cms.endpoint,
        config.cms.access_token,
        timeout=config.cms.timeout,
        ref_ttl=config.cms.ref_ttl,
    )


def _add_rows(table: Table, posts: tuple[PostSummary, ...], timezone: str, start: int = 1) -> None:
    for number, post in enumerate(posts, start=start):
        table.add_row(
            str(number),
            post.title,
            post.subtitle,
            format_date(post.first_publication_date, timezone),
            post.author,
        )


def _posts_table(title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Title", style="bold green")
    table.add_column("Subtitle")
    table.add_column("Date", style="magenta")
    table.add_column("Author")
    return table


@app.command()
def build(
    site_root: SiteRoot = None,
    out: Annotated[Path | None, typer.Option("--out", "-o", help="Output directory (default: site.output_dir)")] = None,
) -> None:
    """
    Generate the listing and the pre-rendered article pages as static HTML.
    """
    config = _load(site_root)
    output_dir = out or config.site.output_dir

    with _client(config) as client:
        store = create_page_store(client, config)
        try:
            built = store.build()
        except GenerationFailure as e:
            console.print(f"[bold red]Build failed:[/bold red] {e}")
            raise typer.Exit(code=1) from e

    written = StaticSiteSink(output_dir).publish(store.ready_pages(), not_found_html=store.not_found_html)
    for path in store.not_found_paths():
        console.print(f"[yellow]No document for {path}[/yellow]")
    console.print(f"[bold green]Built {len(built)} pages[/bold green] ({len(written)} files in {output_dir})")


@app.command()
def serve(
    site_root: SiteRoot = None,
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port to listen on")] = 3000,
) -> None:
    """
    Serve the site, regenerating stale pages in the background.
    """
    import uvicorn

    from spacetraveling.web.app import create_site_app

    config = _load(site_root)
    console.print(f"🚀 Serving {config.site.title} on http://{host}:{port}")
    uvicorn.run(create_site_app(config), host=host, port=port, log_config=None)


@app.command()
def browse(site_root: SiteRoot = None) -> None:
    """
    List posts page by page, loading more on request.
    """
    config = _load(site_root)
    timezone = config.site.timezone

    with _client(config) as client:
        try:
            state = initialize(client, config.cms)
        except (httpx.HTTPError, SpaceTravelingError) as e:
            console.print(f"[bold red]Could not load posts:[/bold red] {e}")
            raise typer.Exit(code=1) from e

        aggregator = ListingAggregator(state, client)
        table = _posts_table(f"Home | {config.site.title}")
        _add_rows(table, aggregator.state.posts, timezone)
        console.print(table)

        while aggregator.has_more and typer.confirm("Carregar mais posts?", default=True):
            shown = len(aggregator.state.posts)
            new_state = aggregator.load_more()
            new_posts = new_state.posts[shown:]
            if not new_posts:
                console.print("[yellow]Nothing new loaded, try again.[/yellow]")
                continue
            table = _posts_table(f"Posts {shown + 1}-{len(new_state.posts)}")
            _add_rows(table, new_posts, timezone, start=shown + 1)
            console.print(table)

    console.print(f"[bold]{len(aggregator.state.posts)} posts[/bold]")


@app.command()
def read(
    uid: Annotated[str, typer.Argument(help="Post uid, as in /post/<uid>")],
    site_root: SiteRoot = None,
) -> None:
    """
    Print a post as plain text, with its reading time.
    """
    config = _load(site_root)

    with _client(config) as client:
        try:
            article = fetch_article(client, uid, config.cms.document_type)
        except (httpx.HTTPError, ValueError, SpaceTravelingError) as e:
            console.print(f"[bold red]Could not load post:[/bold red] {e}")
            raise typer.Exit(code=1) from e

    if isinstance(article, NotFound):
        console.print(f"[bold red]Post not found:[/bold red] {article.uid}")
        raise typer.Exit(code=1)

    read_time = compute_read_time(article, config.site.words_per_minute)
    date = format_date(article.first_publication_date, config.site.timezone)
    console.print(Panel(f"{date} · {article.author} · {read_time} min", title=article.title))
    for block in article.content:
        console.print(f"\n[bold]{block.heading}[/bold]")
        console.print(as_text(block.body, separator="\n\n"), markup=False)


if __name__ == "__main__":
    app()
