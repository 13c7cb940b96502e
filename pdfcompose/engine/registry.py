"""Registry mapping operation descriptor types to engine handlers."""

from __future__ import annotations

from typing import Any, Callable, Dict

from ..exceptions import UnsupportedOperationError

Handler = Callable[..., Any]


class OperationRegistry:
    """Registry storing the handler for every operation descriptor type."""

    def __init__(self) -> None:
        self._handlers: Dict[type, Handler] = {}

    def register(self, operation_type: type, handler: Handler) -> None:
        if operation_type in self._handlers:
            raise ValueError(f"Operation '{operation_type.__name__}' is already registered")
        self._handlers[operation_type] = handler

    def resolve(self, operation_type: type) -> Handler:
        try:
            return self._handlers[operation_type]
        except KeyError as exc:
            raise UnsupportedOperationError(
                f"Operation '{operation_type.__name__}' is not supported"
            ) from exc

    def __contains__(self, operation_type: object) -> bool:
        return operation_type in self._handlers


registry = OperationRegistry()


def register_operation(operation_type: type):
    def decorator(handler: Handler) -> Handler:
        registry.register(operation_type, handler)
        return handler

    return decorator


__all__ = ["OperationRegistry", "registry", "register_operation", "Handler"]
