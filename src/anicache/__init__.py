"""anicache -- Fetch-through response cache for an Anilist-backed anime catalog.

This package wraps a remote anime metadata API behind a uniform dispatch
layer. Every request is keyed, looked up in a bounded, expiring cache that
persists between sessions, and only forwarded to the data provider on a
miss.

Typical usage::

    from anicache.cache import CacheRegistry
    from anicache.catalog import CatalogClient
    from anicache.providers import HttpProvider

    with HttpProvider(settings) as provider:
        client = CatalogClient(provider, CacheRegistry.from_config(config.cache))
        client.anime_info("21")

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration management.
    dispatch: Cache-first dispatch to provider operations.
    catalog: One fetch function per remote operation.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
