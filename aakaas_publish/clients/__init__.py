"""Remote operation clients.

Implements the client adapter pattern:
- OperationClient: Abstract base class defining submit / check_status
- AakaasClient: Addon Assembly Kit as a Service (OData, httpx)

The active client is selected by name through the factory.
"""

from aakaas_publish.clients.base import (
    ClientAuthError,
    ClientTransportError,
    ClientValidationError,
    OperationClient,
)
from aakaas_publish.clients.factory import (
    AAKAAS,
    get_client,
    list_clients,
    register_client,
    unregister_client,
)

__all__ = [
    "AAKAAS",
    "ClientAuthError",
    "ClientTransportError",
    "ClientValidationError",
    "OperationClient",
    "get_client",
    "list_clients",
    "register_client",
    "unregister_client",
]
