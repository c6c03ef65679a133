"""Client factory — selects the operation client implementation by name.

The factory maintains a registry of known clients. New clients are
registered with ``register_client``; test suites use this to plug in
in-memory fakes without patching the step.

Usage::

    from aakaas_publish.clients.factory import get_client

    client = get_client("aakaas", endpoint=url, credentials=creds)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aakaas_publish.clients.base import ClientValidationError, OperationClient

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

AAKAAS = "aakaas"

# Each entry maps a client name to a zero-argument callable returning the
# client *class*, so ``httpx`` is only imported when the client is used.
_CLIENT_REGISTRY: dict[str, Callable[[], type[OperationClient]]] = {}


def _register_builtin_clients() -> None:
    def _aakaas() -> type[OperationClient]:
        from aakaas_publish.clients.aakaas import AakaasClient

        return AakaasClient

    _CLIENT_REGISTRY[AAKAAS] = _aakaas


def _ensure_registry() -> None:
    if not _CLIENT_REGISTRY:
        _register_builtin_clients()


def register_client(name: str, loader: Callable[[], type[OperationClient]]) -> None:
    """Register a client implementation under *name*.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Client name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _CLIENT_REGISTRY[name] = loader
    logger.debug("Registered operation client: %s", name)


def unregister_client(name: str) -> None:
    """Remove a registered client; unknown names are ignored."""
    _CLIENT_REGISTRY.pop(name, None)


def get_client(name: str, **kwargs: Any) -> OperationClient:
    """Create and return an operation client instance.

    Keyword arguments are passed to the client constructor.

    Raises:
        ClientValidationError: If the named client is not registered.
    """
    _ensure_registry()

    loader = _CLIENT_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_CLIENT_REGISTRY))
        msg = f"Unknown operation client: {name!r}. Available: {available}"
        raise ClientValidationError(name, msg)

    logger.debug("Creating operation client: %s", name)
    return loader()(**kwargs)


def list_clients() -> list[str]:
    """Return the names of all registered clients."""
    _ensure_registry()
    return sorted(_CLIENT_REGISTRY)
