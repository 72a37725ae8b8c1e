"""Provider result types and the data provider interface.

A provider answers one :class:`OperationId` at a time with a tagged result:
:class:`Success` carrying a payload or :class:`Failure` carrying a message.
The dispatch layer never looks past this envelope.

:class:`FunctionProvider` is the simplest provider: a table of plain
callables keyed by operation id. It is what tests and embedding
applications use to plug their own backends in.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Awaitable, Callable, Literal, Mapping, Protocol, Union

from pydantic import BaseModel, Field

from anicache.exceptions import UnknownOperationError


class OperationId(str, enum.Enum):
    """Remote operations a provider can be asked to perform."""

    ADVANCED_SEARCH = "AdvancedSearch"
    ANIME_DATA = "animedata"
    ANIME_INFO = "animeinfo"
    TRENDING = "animetrending"
    EPISODES = "animeepisodes"
    SERVERS = "animeservers"
    WATCH = "animewatch"
    RECENT_EPISODES = "animerecentepisodes"
    SKIP_TIMES = "skiptimes"


class Success(BaseModel):
    """A provider call that produced a payload."""

    kind: Literal["success"] = "success"
    payload: Any


class Failure(BaseModel):
    """A provider call that failed with an explanatory message."""

    kind: Literal["failure"] = "failure"
    message: str


ProviderResult = Annotated[Union[Success, Failure], Field(discriminator="kind")]
"""Tagged union of :class:`Success` and :class:`Failure`."""


class DataProvider(Protocol):
    """Anything that can perform an :class:`OperationId`.

    ``invoke`` may return the result directly or an awaitable of it; the
    latter is only supported by :func:`~anicache.dispatch.adispatch`.
    Legacy ``{"data": ...}`` / ``{"error": ...}`` mappings are accepted and
    coerced by the dispatch layer.
    """

    def invoke(
        self, operation: str, parameters: Mapping[str, Any]
    ) -> Success | Failure | Mapping[str, Any] | Awaitable[Any]:
        ...


ProviderFunction = Callable[[Mapping[str, Any]], Any]


class FunctionProvider:
    """Provider that routes each operation to a registered callable.

    Example::

        provider = FunctionProvider()

        @provider.operation(OperationId.ANIME_INFO)
        def anime_info(params):
            return Success(payload=lookup(params["id"]))
    """

    def __init__(self, functions: Mapping[str, ProviderFunction] | None = None) -> None:
        self._functions: dict[str, ProviderFunction] = {}
        for operation, function in (functions or {}).items():
            self.register(operation, function)

    def register(self, operation: str, function: ProviderFunction) -> None:
        self._functions[_operation_name(operation)] = function

    def operation(self, operation: str) -> Callable[[ProviderFunction], ProviderFunction]:
        """Decorator form of :meth:`register`."""

        def decorator(function: ProviderFunction) -> ProviderFunction:
            self.register(operation, function)
            return function

        return decorator

    def supports(self, operation: str) -> bool:
        return _operation_name(operation) in self._functions

    def invoke(self, operation: str, parameters: Mapping[str, Any]) -> Any:
        """Call the function registered for *operation*.

        Raises:
            UnknownOperationError: If nothing is registered for *operation*.
        """
        function = self._functions.get(_operation_name(operation))
        if function is None:
            raise UnknownOperationError(_operation_name(operation))
        return function(parameters)


def _operation_name(operation: str) -> str:
    return operation.value if isinstance(operation, OperationId) else str(operation)
