"""Command-line entry point — ``aakaas-publish-target-vector``.

This module is purely the wiring layer between the command line and the
step: it merges configuration sources, sets up logging with secret
masking, runs the step, and maps the outcome to an exit code.

Exit codes:
    0  Publication finished successfully.
    1  Any classified failure (configuration, auth, validation,
       transport, remote failure, timeout) or an unexpected error.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from aakaas_publish import __version__
from aakaas_publish.core import constants as C
from aakaas_publish.core.config import StepConfig
from aakaas_publish.core.exceptions import UNDEFINED_CATEGORY, ConfigurationError, PipelineError
from aakaas_publish.core.secrets import SecretMaskingFilter, register_secret
from aakaas_publish.steps.publish_target_vector import publish_target_vector

if TYPE_CHECKING:
    from collections.abc import Sequence

    from aakaas_publish.core.clock import Clock

logger = logging.getLogger("aakaas_publish.cli")

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"

_OPTION_HELP: dict[str, str] = {
    C.OPT_ENDPOINT: "Base URL to the Addon Assembly Kit as a Service (AAKaaS) system",
    C.OPT_USERNAME: "User for the Addon Assembly Kit as a Service (AAKaaS) system",
    C.OPT_PASSWORD: "Password for the Addon Assembly Kit as a Service (AAKaaS) system",
    C.OPT_SCOPE: (
        "Determines whether the Target Vector is published to the productive ('P') "
        "or test ('T') environment"
    ),
    C.OPT_MAX_RUNTIME: "Maximum runtime for status polling in minutes",
    C.OPT_POLL_INTERVAL: "Wait time in seconds between polling calls",
    C.OPT_ADDON_DESCRIPTOR: (
        "Structure in the commonPipelineEnvironment containing information about the "
        "Product Version and corresponding Software Component Versions"
    ),
}

_INT_OPTIONS = frozenset({C.OPT_MAX_RUNTIME, C.OPT_POLL_INTERVAL})


@dataclass(slots=True)
class StepTelemetry:
    """Run data logged when the step ends.

    ``error_code`` starts at ``"1"`` and is set to ``"0"`` only once the
    step has finished successfully.
    """

    duration_ms: int = 0
    error_code: str = "1"
    error_category: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "duration_ms": self.duration_ms,
            "error_code": self.error_code,
            "error_category": self.error_category,
        }


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the step.

    Step options default to ``None`` so only flags given explicitly
    override the environment and the configuration file.
    """
    parser = argparse.ArgumentParser(
        prog="aakaas-publish-target-vector",
        description=C.STEP_DESCRIPTION,
        epilog=(
            "With targetVectorScope 'T' the Target Vector is published to the test "
            "environment and with 'P' to the productive environment. Options default "
            f"to the {C.ENV_PREFIX}<option> environment variables."
        ),
    )
    for option, help_text in _OPTION_HELP.items():
        parser.add_argument(
            f"--{option}",
            dest=option,
            type=int if option in _INT_OPTIONS else str,
            default=None,
            help=help_text,
        )
    parser.add_argument(
        "--config",
        default=None,
        help="Pipeline configuration file (YAML) with general and steps sections",
    )
    parser.add_argument(
        "--correlation-id",
        dest="correlation_id",
        default=None,
        help="Pipeline run identifier attached to reported errors",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(*, verbose: bool = False) -> None:
    """Configure root logging once and attach the secret masking filter."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=_LOG_FORMAT,
        stream=sys.stderr,
    )
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in root.handlers:
        if not any(isinstance(f, SecretMaskingFilter) for f in handler.filters):
            handler.addFilter(SecretMaskingFilter())
    # httpx logs every request URL at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def load_config(args: argparse.Namespace) -> StepConfig:
    """Merge env, config file, and explicit flags into a validated ``StepConfig``.

    Secrets are registered for masking before validation, so no later
    log line can reveal them.

    Raises:
        ConfigurationError: If any source is invalid.
    """
    try:
        config = StepConfig.from_env()
    except ValueError as exc:
        msg = f"Invalid {C.ENV_PREFIX}* environment value: {exc}"
        raise ConfigurationError(msg) from exc

    if args.config:
        config = config.merge_file(args.config)

    flags = {option: getattr(args, option) for option in _OPTION_HELP}
    config = config.merge_options(flags)
    if args.correlation_id:
        config = replace(config, correlation_id=args.correlation_id)

    register_secret(config.username)
    register_secret(config.password)
    return config.validate()


def main(argv: Sequence[str] | None = None, *, clock: Clock | None = None) -> int:
    """Run the step and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)

    started = time.monotonic()
    telemetry = StepTelemetry()
    try:
        config = load_config(args)
        publish_target_vector(config, clock=clock)
    except PipelineError as exc:
        telemetry.error_category = exc.category
        logger.error("%s failed | error=%s", C.STEP_NAME, exc.to_error_dict())
        return EXIT_FAILURE
    except Exception:
        telemetry.error_category = UNDEFINED_CATEGORY
        logger.exception("%s failed with an unexpected error", C.STEP_NAME)
        return EXIT_FAILURE
    else:
        telemetry.error_code = "0"
        logger.info("SUCCESS")
        return EXIT_SUCCESS
    finally:
        telemetry.duration_ms = int((time.monotonic() - started) * 1000)
        logger.info("Step telemetry | step=%s | data=%s", C.STEP_NAME, telemetry.to_dict())


if __name__ == "__main__":
    sys.exit(main())
