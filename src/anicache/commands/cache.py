"""Cache commands -- inspect and clear the persisted response caches.

``anicache cache stats`` lists every category with its size, capacity, and
number of entries past their max age. ``anicache cache clear`` empties one
category or all of them, snapshots included.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer

from anicache.output import error, info, print_table, success

if TYPE_CHECKING:
    from anicache.cache import CacheRegistry


cache_app = typer.Typer(no_args_is_help=True)


def _open_registry() -> CacheRegistry:
    from anicache.cache import CacheRegistry
    from anicache.config import get_cache_dir, resolve_config

    config = resolve_config()
    return CacheRegistry.from_config(config.cache, get_cache_dir())


@cache_app.command("stats")
def cache_stats() -> None:
    """Show per-category cache statistics.

    Example::

        anicache cache stats
        anicache --json cache stats
    """
    from anicache.catalog import ALL_CATEGORIES

    registry = _open_registry()
    try:
        for category in ALL_CATEGORIES:
            registry.get(category)
        rows = [
            [
                s["name"],
                str(s["size"]),
                str(s["capacity"]),
                str(s["expired"]),
                f"{s['max_age_seconds']:g}",
            ]
            for s in registry.stats()
        ]
    finally:
        registry.close()
    print_table(
        ["category", "size", "capacity", "expired", "max_age_seconds"],
        rows,
        title="Response caches",
    )


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    category: Optional[str] = typer.Argument(
        None, help="Category to clear (default: all)."
    ),
) -> None:
    """Remove cached entries. Asks for confirmation unless ``--force``.

    Example::

        anicache cache clear Episodes
        anicache --force cache clear
    """
    from anicache.catalog import ALL_CATEGORIES

    if category is not None and category not in ALL_CATEGORIES:
        error(f"Unknown cache category: {category}")
        info(f"Known categories: {', '.join(ALL_CATEGORIES)}")
        raise typer.Exit(code=2)

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        target = f"the '{category}' cache" if category else "all caches"
        if not typer.confirm(f"Clear {target}?"):
            info("Cancelled.")
            raise typer.Exit()

    registry = _open_registry()
    try:
        for name in [category] if category else ALL_CATEGORIES:
            registry.get(name).clear()
    finally:
        registry.close()
    success(f"Cleared {category or 'all caches'}.")
