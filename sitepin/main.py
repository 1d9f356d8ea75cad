"""Command-line entrypoint: ``sitepin`` takes no arguments; configure via env."""

import asyncio
import logging
import sys

from pydantic import ValidationError

from sitepin.config import get_settings
from sitepin.errors import ConfigurationError
from sitepin.logging_config import setup_logging
from sitepin.pipeline import RunStatus, run_pipeline

logger = logging.getLogger(__name__)


def _config_error(exc: ValidationError) -> ConfigurationError:
    fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
    return ConfigurationError(f"invalid configuration: {', '.join(fields)}", fields=fields)


def main() -> None:
    try:
        settings = get_settings()
    except ValidationError as exc:
        setup_logging()
        error = _config_error(exc)
        logger.error("%s", error, extra={"kind": error.kind.value, **error.context})
        sys.exit(RunStatus.CONFIG_FAILED.exit_code)

    # Initialize logging FIRST so every stage logs with the configured format
    setup_logging(settings.log_level, settings.log_format)

    try:
        result = asyncio.run(run_pipeline(settings))
    except Exception:
        logger.exception("pipeline crashed")
        sys.exit(RunStatus.CRASHED.exit_code)

    sys.exit(result.status.exit_code)


if __name__ == "__main__":
    main()
