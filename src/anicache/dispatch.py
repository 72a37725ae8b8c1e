"""Cache-first dispatch of provider operations.

:func:`dispatch` is the only path from a caller to a data provider:

1. Look the key up in the category's cache. A hit is returned as-is and
   the provider is never called.
2. On a miss, invoke the provider. Anything the provider raises is
   normalised to :class:`~anicache.exceptions.ProviderError`.
3. Coerce the result into :class:`~anicache.providers.base.Success` or
   :class:`~anicache.providers.base.Failure`. Any other shape is a
   :class:`~anicache.exceptions.ShapeError`; a failure is a
   :class:`~anicache.exceptions.ProviderError` carrying its message.
4. Store the payload and return it.

There are no retries, and concurrent misses for the same key are not
joined: each one calls the provider.

:func:`adispatch` is the ``async`` counterpart. The cache lookup runs
before the first ``await``. Storing a fetched payload writes the snapshot
to slot storage, which may be disk, so the store runs in a worker thread
with :func:`asyncio.to_thread` instead of blocking the event loop. A hit
still rewrites the snapshot on the loop thread.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Mapping

from anicache.cache.bounded import BoundedExpiringCache
from anicache.exceptions import DispatchError, ProviderError, ShapeError
from anicache.output import get_output
from anicache.providers.base import DataProvider, Failure, Success

UNKNOWN_SERVER_ERROR = "Server error: Unknown server error"


def dispatch(
    operation: str,
    parameters: Mapping[str, Any],
    cache: BoundedExpiringCache,
    key: str,
    *,
    provider: DataProvider,
) -> Any:
    """Return the payload for *operation*, from *cache* when possible.

    Args:
        operation: Provider operation id, e.g. ``"animeinfo"``.
        parameters: Operation parameters passed through to the provider.
        cache: Cache instance for the operation's category.
        key: Cache key derived from the operation and its parameters.
        provider: Data provider invoked on a miss.

    Returns:
        The cached or freshly fetched payload.

    Raises:
        ProviderError: The provider failed, raised, or does not know
            *operation*.
        ShapeError: The provider returned neither a success nor a failure.
    """
    cached = _lookup(cache, key)
    if cached is not None:
        return cached

    try:
        result = provider.invoke(operation, parameters)
    except DispatchError:
        raise
    except Exception as exc:
        raise _provider_error(exc) from exc

    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise ProviderError(
            f"Provider returned an awaitable for '{operation}'; use adispatch()"
        )
    return _store(cache, key, result)


async def adispatch(
    operation: str,
    parameters: Mapping[str, Any],
    cache: BoundedExpiringCache,
    key: str,
    *,
    provider: DataProvider,
) -> Any:
    """Async variant of :func:`dispatch`.

    The provider's ``invoke`` may return a result or an awaitable of one.
    The payload is stored from a worker thread.
    """
    cached = _lookup(cache, key)
    if cached is not None:
        return cached

    try:
        result = provider.invoke(operation, parameters)
        if inspect.isawaitable(result):
            result = await result
    except DispatchError:
        raise
    except Exception as exc:
        raise _provider_error(exc) from exc

    return await asyncio.to_thread(_store, cache, key, result)


def coerce_result(result: Any) -> Success | Failure:
    """Normalise a provider result into :class:`Success` or :class:`Failure`.

    Accepts the tagged variants and legacy ``{"data": ...}`` /
    ``{"error": ...}`` mappings. A mapping carrying both is a failure.

    Raises:
        ShapeError: For ``None``, empty mappings, a ``None`` payload, or any
            other shape.
    """
    if isinstance(result, Failure):
        return result
    if isinstance(result, Success):
        if result.payload is None:
            raise ShapeError(UNKNOWN_SERVER_ERROR)
        return result
    if isinstance(result, Mapping):
        error = result.get("error")
        if error:
            return Failure(message=str(error))
        data = result.get("data")
        if data is not None:
            return Success(payload=data)
    raise ShapeError(UNKNOWN_SERVER_ERROR)


def _lookup(cache: BoundedExpiringCache, key: str) -> Any:
    cached = cache.get(key)
    if cached is not None:
        get_output().debug(f"Cache hit: {cache.name} {key}")
    else:
        get_output().debug(f"Cache miss: {cache.name} {key}")
    return cached


def _store(cache: BoundedExpiringCache, key: str, result: Any) -> Any:
    outcome = coerce_result(result)
    if isinstance(outcome, Failure):
        raise ProviderError(outcome.message)
    cache.set(key, outcome.payload)
    return outcome.payload


def _provider_error(exc: Exception) -> ProviderError:
    message = str(exc) or type(exc).__name__
    return ProviderError(message)
