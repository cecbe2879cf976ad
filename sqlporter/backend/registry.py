"""Backend registry (Open/Closed Principle).

``BackendFactory`` maps raw connection types to the
:class:`~sqlporter.backend.base.ExecutionBackend` that drives them, so the
public operations accept a plain ``sqlite3.Connection`` as readily as a
ready-made backend.  Register a new driver once; every operation picks it
up.

Usage::

    from sqlporter.backend.registry import BackendFactory

    @BackendFactory.register(apsw.Connection)
    class APSWBackend(ExecutionBackend):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from sqlporter.backend.base import ExecutionBackend
from sqlporter.errors import InvalidBackendError


class BackendFactory:
    """Registry mapping connection handle types to backend classes.

    Example::

        BackendFactory.register_class(sqlite3.Connection, SQLiteBackend)

        backend = BackendFactory.adapt(sqlite3.connect(":memory:"))
    """

    _backends: ClassVar[dict[type, type[ExecutionBackend]]] = {}

    @classmethod
    def register(
        cls, handle_type: type
    ) -> Callable[[type[ExecutionBackend]], type[ExecutionBackend]]:
        """Decorator that registers a backend class for ``handle_type``.

        Args:
            handle_type: The raw connection class the backend wraps.

        Returns:
            A decorator that registers and returns the backend class.
        """

        def decorator(backend_cls: type[ExecutionBackend]) -> type[ExecutionBackend]:
            cls._backends[handle_type] = backend_cls
            return backend_cls

        return decorator

    @classmethod
    def register_class(
        cls, handle_type: type, backend_cls: type[ExecutionBackend]
    ) -> None:
        """Register a backend class without using the decorator form."""
        cls._backends[handle_type] = backend_cls

    @classmethod
    def adapt(cls, handle: Any) -> ExecutionBackend:
        """Return an :class:`ExecutionBackend` for ``handle``.

        Args:
            handle: A backend, or a connection of a registered type.

        Returns:
            ``handle`` itself if it is already a backend, otherwise a fresh
            backend wrapping it.

        Raises:
            InvalidBackendError: If ``handle`` is ``None`` or of an
                unregistered type.
        """
        if isinstance(handle, ExecutionBackend):
            return handle
        if handle is not None:
            for handle_type, backend_cls in cls._backends.items():
                if isinstance(handle, handle_type):
                    return backend_cls(handle)
        raise InvalidBackendError(handle, cls.registered_types())

    @classmethod
    def registered_types(cls) -> list[str]:
        """Return the sorted qualified names of registered handle types."""
        return sorted(f"{t.__module__}.{t.__qualname__}" for t in cls._backends)
