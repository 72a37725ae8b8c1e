"""Data providers for anicache.

A provider performs one remote operation per call and answers with a tagged
:class:`Success` or :class:`Failure`.

Classes:
    :class:`FunctionProvider` -- routes operations to registered callables.
    :class:`HttpProvider` -- talks to a consumet-style Anilist meta API
    over :mod:`httpx`.
"""

from anicache.providers.base import (
    DataProvider,
    Failure,
    FunctionProvider,
    OperationId,
    ProviderResult,
    Success,
)
from anicache.providers.http import HttpProvider

__all__ = [
    "DataProvider",
    "Failure",
    "FunctionProvider",
    "HttpProvider",
    "OperationId",
    "ProviderResult",
    "Success",
]
