"""Step configuration loaded from defaults, environment, config file, and flags.

Precedence (lowest to highest):

1. Built-in defaults (``core.constants``).
2. ``PIPER_<option>`` environment variables.
3. The pipeline configuration file (YAML): the ``general`` section, then
   ``steps.abapAddonAssemblyKitPublishTargetVector``.
   Only the endpoint and the timing options are read from ``general``;
   the password is never read from the file.
4. Options passed explicitly on the command line.

Fail-fast validation:
    ``_validate()`` raises ``ConfigValidationError`` for any missing
    required option or out-of-range value, so a bad configuration is
    rejected before any network call.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import yaml

from aakaas_publish.core import constants as C
from aakaas_publish.core.exceptions import ConfigurationError

logger = logging.getLogger("aakaas_publish.core.config")

#: Valid values for ``targetVectorScope``.
VALID_SCOPES: tuple[str, ...] = ("T", "P")


def _to_int(value: Any) -> int:
    """Convert an env string or YAML scalar to ``int`` without truncating."""
    if isinstance(value, bool):
        msg = f"boolean {value!r} is not an integer"
        raise TypeError(msg)
    if isinstance(value, float) and not value.is_integer():
        msg = f"{value!r} is not a whole number"
        raise ValueError(msg)
    return int(value)


def _to_descriptor(value: Any) -> str:
    """Keep JSON text as is; serialise a structured YAML descriptor to JSON."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


# Option name → (dataclass field, converter)
_OPTION_FIELDS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    C.OPT_ENDPOINT: ("endpoint", str),
    C.OPT_USERNAME: ("username", str),
    C.OPT_PASSWORD: ("password", str),
    C.OPT_SCOPE: ("target_vector_scope", str),
    C.OPT_MAX_RUNTIME: ("max_runtime_minutes", _to_int),
    C.OPT_POLL_INTERVAL: ("polling_interval_seconds", _to_int),
    C.OPT_ADDON_DESCRIPTOR: ("addon_descriptor", _to_descriptor),
}

#: Options accepted from the shared ``general`` section of the config file.
_GENERAL_OPTIONS = frozenset({C.OPT_ENDPOINT, C.OPT_MAX_RUNTIME, C.OPT_POLL_INTERVAL})

#: Options only accepted as parameters (environment or flags), never from the file.
_PARAMETER_ONLY_OPTIONS = frozenset({C.OPT_PASSWORD})


class ConfigValidationError(ConfigurationError):
    """Raised when a configuration value is missing or out of valid range.

    Attributes:
        key: The option that failed validation.
        value: The invalid value (masked for secret options).
        message: Human-readable description of the valid range.
    """

    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class StepConfig:
    """Immutable step configuration.

    Attributes:
        endpoint: Base URL of the AAKaaS system.
        username: AAKaaS user (secret).
        password: AAKaaS password (secret).
        target_vector_scope: ``"T"`` (test) or ``"P"`` (productive).
        max_runtime_minutes: Maximum runtime for status polling.
        polling_interval_seconds: Wait time between polling calls.
        addon_descriptor: JSON structure describing the add-on product
            version, carrying the Target Vector ID.
        correlation_id: Pipeline run identifier attached to errors.
    """

    endpoint: str = C.DEFAULT_ENDPOINT
    username: str = ""
    password: str = dataclasses.field(default="", repr=False)
    target_vector_scope: str = C.DEFAULT_SCOPE
    max_runtime_minutes: int = C.DEFAULT_MAX_RUNTIME_MINUTES
    polling_interval_seconds: int = C.DEFAULT_POLL_INTERVAL_SECONDS
    addon_descriptor: str = ""
    correlation_id: str = ""

    @property
    def max_runtime_seconds(self) -> float:
        """Return the polling budget in seconds."""
        return float(self.max_runtime_minutes * 60)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StepConfig:
        """Load configuration defaults from ``PIPER_<option>`` variables.

        Does not validate; call ``validate()`` once all sources are merged.

        Raises:
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``PIPER_maxRuntimeInMinutes=abc``).
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for option, (field_name, convert) in _OPTION_FIELDS.items():
            raw = env.get(C.env_name(option))
            if raw is not None and raw != "":
                values[field_name] = convert(raw)
        values["correlation_id"] = env.get("PIPER_correlationID", "")
        return cls(**values)

    def merge_options(self, options: Mapping[str, Any]) -> StepConfig:
        """Return a copy with camelCase *options* applied on top.

        Unknown keys are ignored; ``None`` values leave the field unchanged.

        Raises:
            ConfigValidationError: If a numeric option cannot be converted.
        """
        updates: dict[str, Any] = {}
        for option, value in options.items():
            mapping = _OPTION_FIELDS.get(option)
            if mapping is None or value is None:
                continue
            field_name, convert = mapping
            try:
                updates[field_name] = convert(value)
            except (TypeError, ValueError) as exc:
                shown = "****" if option == C.OPT_PASSWORD else value
                raise ConfigValidationError(option, shown, f"must be an integer ({exc})") from exc
        return dataclasses.replace(self, **updates)

    def merge_file(self, path: str | Path, *, step_name: str = C.STEP_NAME) -> StepConfig:
        """Return a copy with values from a pipeline YAML config file applied.

        The ``general`` section is applied first, then ``steps.<step_name>``.

        Raises:
            ConfigValidationError: If the file is missing or not a mapping.
        """
        file_path = Path(path)
        try:
            document = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        except OSError as exc:
            raise ConfigValidationError("config", str(file_path), "file cannot be read") from exc
        except yaml.YAMLError as exc:
            raise ConfigValidationError("config", str(file_path), "is not valid YAML") from exc

        if not isinstance(document, dict):
            raise ConfigValidationError("config", str(file_path), "must be a YAML mapping")

        general = _as_mapping(document.get("general"))
        step_section = _as_mapping(_as_mapping(document.get("steps")).get(step_name))

        general_options = {k: v for k, v in general.items() if k in _GENERAL_OPTIONS}
        step_options = {k: v for k, v in step_section.items() if k not in _PARAMETER_ONLY_OPTIONS}
        merged = self.merge_options(general_options).merge_options(step_options)
        logger.debug("Loaded pipeline configuration | path=%s | step=%s", file_path, step_name)
        return merged

    def validate(self) -> StepConfig:
        """Validate and return ``self``. Raises ``ConfigValidationError``."""
        _validate(self)
        return self


def _as_mapping(section: object) -> dict[str, Any]:
    return dict(section) if isinstance(section, dict) else {}


def _validate(config: StepConfig) -> None:
    """Validate required options and ranges.  Raises ``ConfigValidationError``."""
    if not config.endpoint:
        raise ConfigValidationError(C.OPT_ENDPOINT, config.endpoint, "must not be empty")

    if not config.endpoint.startswith(("http://", "https://")):
        raise ConfigValidationError(C.OPT_ENDPOINT, config.endpoint, "must be an http(s) URL")

    try:
        url = httpx.URL(config.endpoint)
        host, _ = url.host, url.port
    except (httpx.InvalidURL, ValueError) as exc:
        msg = f"is not a valid URL ({exc})"
        raise ConfigValidationError(C.OPT_ENDPOINT, config.endpoint, msg) from exc
    if not host:
        raise ConfigValidationError(C.OPT_ENDPOINT, config.endpoint, "must include a host")

    if not config.username:
        raise ConfigValidationError(C.OPT_USERNAME, config.username, "must not be empty")

    if not config.password:
        raise ConfigValidationError(C.OPT_PASSWORD, "", "must not be empty")

    if config.target_vector_scope not in VALID_SCOPES:
        raise ConfigValidationError(
            C.OPT_SCOPE,
            config.target_vector_scope,
            f"must be one of {', '.join(VALID_SCOPES)}",
        )

    if config.max_runtime_minutes <= 0:
        raise ConfigValidationError(
            C.OPT_MAX_RUNTIME,
            config.max_runtime_minutes,
            "must be > 0 (minutes)",
        )

    if config.polling_interval_seconds <= 0:
        raise ConfigValidationError(
            C.OPT_POLL_INTERVAL,
            config.polling_interval_seconds,
            "must be > 0 (seconds)",
        )

    if not config.addon_descriptor:
        raise ConfigValidationError(C.OPT_ADDON_DESCRIPTOR, config.addon_descriptor, "must not be empty")
