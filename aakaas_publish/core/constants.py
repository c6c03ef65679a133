"""Shared step constants — single source of truth.

Option names, environment variable names, and defaults used by the
configuration layer, the CLI, and the AAKaaS client.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Step identity
# ---------------------------------------------------------------------------

STEP_NAME: str = "abapAddonAssemblyKitPublishTargetVector"
"""Step name as used in the pipeline configuration file."""

STEP_DESCRIPTION: str = (
    "This step triggers the publication of the Target Vector according to the specified scope."
)

# ---------------------------------------------------------------------------
# Option names (pipeline configuration keys)
# ---------------------------------------------------------------------------

OPT_ENDPOINT = "abapAddonAssemblyKitEndpoint"
OPT_USERNAME = "username"
OPT_PASSWORD = "password"
OPT_SCOPE = "targetVectorScope"
OPT_MAX_RUNTIME = "maxRuntimeInMinutes"
OPT_POLL_INTERVAL = "pollingIntervalInSeconds"
OPT_ADDON_DESCRIPTOR = "addonDescriptor"

#: Environment variables provide option defaults as ``PIPER_<option>``.
ENV_PREFIX = "PIPER_"

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_ENDPOINT = "https://apps.support.sap.com"
DEFAULT_SCOPE = "T"
DEFAULT_MAX_RUNTIME_MINUTES = 5
DEFAULT_POLL_INTERVAL_SECONDS = 30

#: Timeout for a single HTTP request against AAKaaS (seconds).
DEFAULT_HTTP_TIMEOUT_SECONDS = 60.0

# ---------------------------------------------------------------------------
# AAKaaS OData package service
# ---------------------------------------------------------------------------

AAKAAS_PACKAGE_SERVICE = "/odata/aas_ocs_package"
CSRF_TOKEN_HEADER = "x-csrf-token"


def env_name(option: str) -> str:
    """Return the environment variable that supplies a default for *option*."""
    return f"{ENV_PREFIX}{option}"
