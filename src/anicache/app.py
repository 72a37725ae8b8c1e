"""Typer application and CLI entry point for anicache.

This module wires the top-level Typer application: catalog commands
(``search``, ``info``, ``episodes``, ``watch``, ...) that go through the
cached :class:`~anicache.catalog.CatalogClient`, plus the ``cache`` and
``config`` management groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, List, Optional

import typer

from anicache import __version__
from anicache.exceptions import AnicacheError
from anicache.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="anicache",
    help="Browse an Anilist-backed anime catalog through a persistent response cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from anicache.commands.cache import cache_app  # noqa: E402
from anicache.commands.config import config_app  # noqa: E402

app.add_typer(cache_app, name="cache", help="Response cache management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"anicache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the meta API base URL."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output (cache hits and misses)."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~anicache.output.OutputManager` and stores
    shared options in ``ctx.obj``.
    """
    from anicache.output import OutputFormat, OutputManager, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    fmt = OutputFormat(_configured_format(cli_format))
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["force"] = force


def _configured_format(cli_format: Optional[str]) -> str:
    """Return the payload format: CLI flag, then ``output.format`` from config.

    An unreadable config falls back to ``auto`` here; the command that
    resolves the config reports the error itself.
    """
    from anicache.config import resolve_config
    from anicache.exceptions import ConfigError

    try:
        return resolve_config(cli_format=cli_format).output.format
    except ConfigError:
        return cli_format or "auto"


# ------------------------------------------------------------------ #
# Catalog plumbing
# ------------------------------------------------------------------ #


@contextmanager
def _open_catalog(ctx: typer.Context) -> Iterator[Any]:
    """Yield a :class:`~anicache.catalog.CatalogClient` for one command.

    Snapshots are loaded from the cache directory on first use of each
    category and written back on every store.
    """
    from anicache.cache import CacheRegistry
    from anicache.catalog import CatalogClient
    from anicache.config import get_cache_dir, resolve_config
    from anicache.providers import HttpProvider

    base_url = ctx.obj.get("base_url") if ctx.obj else None
    config = resolve_config(cli_base_url=base_url)
    registry = CacheRegistry.from_config(config.cache, get_cache_dir())
    try:
        with HttpProvider(config.provider) as provider:
            yield CatalogClient(
                provider,
                registry,
                default_provider=config.provider.default_provider,
            )
    finally:
        registry.close()


def _run(ctx: typer.Context, fetch: Callable[[Any], Any]) -> None:
    """Run *fetch* against the catalog and print its payload.

    :class:`~anicache.exceptions.AnicacheError` is reported on stderr and
    mapped to its exit code.
    """
    from anicache.output import error, format_response

    try:
        with _open_catalog(ctx) as catalog:
            payload = fetch(catalog)
    except AnicacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    format_response(payload)


# ------------------------------------------------------------------ #
# Catalog commands
# ------------------------------------------------------------------ #


@app.command("search")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument("", help="Search text."),
    page: int = typer.Option(1, "--page", help="Result page."),
    per_page: int = typer.Option(20, "--per-page", help="Results per page."),
    season: Optional[str] = typer.Option(None, "--season", help="WINTER, SPRING, SUMMER or FALL."),
    year: Optional[int] = typer.Option(None, "--year", help="Season year."),
    format: Optional[str] = typer.Option(None, "--format", help="TV, MOVIE, OVA, ..."),
    status: Optional[str] = typer.Option(None, "--status", help="RELEASING, FINISHED, ..."),
    genre: Optional[List[str]] = typer.Option(None, "--genre", help="Genre filter (repeatable)."),
    sort: Optional[List[str]] = typer.Option(None, "--sort", help="Sort key (repeatable)."),
) -> None:
    """Advanced catalog search."""
    _run(
        ctx,
        lambda catalog: catalog.advanced_search(
            query,
            page,
            per_page,
            season=season,
            year=year,
            format=format,
            status=status,
            genres=genre or None,
            sort=sort or None,
        ),
    )


@app.command("info")
def info_command(
    ctx: typer.Context,
    anime_id: str = typer.Argument(help="Anilist id."),
    provider: Optional[str] = typer.Option(None, "--provider", help="Streaming provider."),
) -> None:
    """Show anime info including the episode list."""
    _run(ctx, lambda catalog: catalog.anime_info(anime_id, provider))


@app.command("data")
def data_command(
    ctx: typer.Context,
    anime_id: str = typer.Argument(help="Anilist id."),
) -> None:
    """Show Anilist metadata only."""
    _run(ctx, lambda catalog: catalog.anime_data(anime_id))


@app.command("episodes")
def episodes_command(
    ctx: typer.Context,
    anime_id: str = typer.Argument(help="Anilist id."),
    provider: Optional[str] = typer.Option(None, "--provider", help="Streaming provider."),
    dub: bool = typer.Option(False, "--dub", help="List dubbed episodes."),
) -> None:
    """List episodes of an anime."""
    _run(ctx, lambda catalog: catalog.anime_episodes(anime_id, provider, dub))


@app.command("servers")
def servers_command(
    ctx: typer.Context,
    episode_id: str = typer.Argument(help="Episode id."),
) -> None:
    """List embedded streaming servers of an episode."""
    _run(ctx, lambda catalog: catalog.embedded_episodes(episode_id))


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    episode_id: str = typer.Argument(help="Episode id."),
) -> None:
    """Resolve streaming sources of an episode."""
    _run(ctx, lambda catalog: catalog.streaming_links(episode_id))


@app.command("list")
def list_command(
    ctx: typer.Context,
    list_type: str = typer.Argument(
        help="TopRated, Trending, Popular, TopAiring or Upcoming."
    ),
    page: int = typer.Option(1, "--page", help="Result page."),
    per_page: int = typer.Option(16, "--per-page", help="Results per page."),
) -> None:
    """Show a curated anime list."""
    _run(ctx, lambda catalog: catalog.fetch_list(list_type, page, per_page))


@app.command("recent")
def recent_command(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", help="Result page."),
    per_page: int = typer.Option(18, "--per-page", help="Results per page."),
    provider: Optional[str] = typer.Option(None, "--provider", help="Streaming provider."),
) -> None:
    """Show recently released episodes."""
    _run(ctx, lambda catalog: catalog.recent_episodes(page, per_page, provider))


@app.command("skip-times")
def skip_times_command(
    ctx: typer.Context,
    mal_id: str = typer.Argument(help="MyAnimeList id."),
    episode_number: str = typer.Argument(help="Episode number."),
    episode_length: str = typer.Option("0", "--episode-length", help="Episode length in seconds."),
) -> None:
    """Show opening/ending skip intervals for an episode."""
    _run(ctx, lambda catalog: catalog.skip_times(mal_id, episode_number, episode_length))


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from anicache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``anicache`` console script.

    :class:`~anicache.exceptions.AnicacheError` exits with the error's
    ``exit_code``; any other exception writes a crash log and exits with
    :data:`~anicache.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from anicache.output import error

        if isinstance(exc, AnicacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
