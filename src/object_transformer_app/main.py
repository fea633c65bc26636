"""Command-line interface and main entry point.

Runs the object transformer outside Lambda: ``run`` processes a storage
event notification read from a JSON file through the same handler the
Lambda uses, ``health`` serves the health endpoints.
"""
# ruff: noqa: T201

import asyncio
import json
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast
from wsgiref.simple_server import make_server

import structlog

from object_transformer_app.app_config import create_health_config, create_run_config
from object_transformer_app.health import create_health_app
from object_transformer_core.config import build_handler
from object_transformer_core.exceptions import (
    ConfigurationError,
    MalformedEventError,
    ProcessingError,
)
from object_transformer_core.lambda_handler import TransformerLambdaHandler
from object_transformer_core.logging import (
    ConsoleMode,
    LoggingHandler,
    LoggingLevel,
    configure_logging,
)
from object_transformer_core.observability import log_bind, observe_around

if TYPE_CHECKING:
    from collections.abc import Callable
    from wsgiref.types import StartResponse

VERSION = "0.1.0"

EXIT_ERROR = 1
EXIT_MALFORMED_EVENT = 2
EXIT_INTERRUPTED = 130

logger = structlog.get_logger(__name__)


def generate_run_id() -> str:
    """Generate a run ID of the form ``transform_{timestamp}`` for local runs."""
    timestamp = datetime.now(tz=UTC).strftime("%Y%m%d%H%M%S")
    return f"transform_{timestamp}"


def _configure_cli_logging(log_level: str, dev_mode: bool) -> None:
    configure_logging(
        logging_level=LoggingLevel(log_level.upper()),
        package_log_levels={
            "botocore": LoggingLevel.WARNING,
            "boto3": LoggingLevel.WARNING,
            "urllib3": LoggingLevel.WARNING,
        },
        logging_handler=LoggingHandler.TEXT,
        console_mode=ConsoleMode.FORCE if dev_mode else ConsoleMode.AUTO,
    )


def load_event_file(path: str) -> Any:
    """Read a storage event notification from a JSON file."""
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read event file {path}: {e}", component="cli") from e
    except json.JSONDecodeError as e:
        raise MalformedEventError(f"Event file {path} is not valid JSON: {e}") from e


async def main_async(event: Any, handler: TransformerLambdaHandler) -> dict[str, Any]:
    """Process one notification with an already initialised handler."""
    with log_bind(run_id=generate_run_id()):
        with observe_around(logger, "LOCAL_RUN"):
            return await handler.handle_event(event, None)


def run_command(args: list[str] | None = None) -> None:
    """Process a storage event notification stored in a JSON file.

    Args:
        args: Command line arguments. If None, uses the environment only.
    """
    try:
        config = create_run_config(args)
        _configure_cli_logging(config.log_level, config.dev_mode)

        if not config.event_file:
            print("Error: --event-file is required")
            sys.exit(EXIT_ERROR)

        handler_config = config.to_handler_config()
        handler = TransformerLambdaHandler(
            config=handler_config,
            handler=build_handler(
                destination_container=handler_config.destination_container,
                transform=handler_config.transform,
                storage=handler_config.storage,
            ),
            configure_logging=False,
        )
        event = load_event_file(config.event_file)
    except MalformedEventError as e:
        print(f"Error: {e.message}")
        sys.exit(EXIT_MALFORMED_EVENT)
    except Exception as e:
        print(f"Error: {e!s}")
        logger.exception("RUN_STARTUP_ERROR", error=str(e))
        sys.exit(EXIT_ERROR)

    try:
        outcome = asyncio.run(main_async(event, handler))
    except KeyboardInterrupt:
        logger.info("RUN_CANCELLED_BY_USER")
        sys.exit(EXIT_INTERRUPTED)
    except MalformedEventError as e:
        print(f"Error: {e.message}")
        sys.exit(EXIT_MALFORMED_EVENT)
    except ProcessingError as e:
        print(f"Error: {e.message}")
        sys.exit(EXIT_ERROR)
    except Exception as e:
        logger.exception("RUN_COMMAND_ERROR", error=str(e))
        sys.exit(EXIT_ERROR)

    print(json.dumps(outcome))


def health_command(args: list[str] | None = None) -> None:
    """Start a health check server.

    Args:
        args: Command line arguments. If None, uses the environment only.
    """
    try:
        config = create_health_config(args)
        _configure_cli_logging(config.log_level, config.dev_mode)

        app = create_health_app(
            store=config.storage.build(),
            destination_container=config.destination_container,
        )

        logger.info("HEALTH_CHECK_SERVER_STARTING", host=config.host, port=config.port)

        with make_server(
            config.host,
            config.port,
            cast("Callable[[dict[str, Any], StartResponse], Any]", app),
        ) as httpd:
            logger.info(
                "HEALTH_CHECK_SERVER_STARTED",
                host=config.host,
                port=config.port,
                endpoints=["/health", "/status", "/heartbeat"],
            )
            httpd.serve_forever()

    except KeyboardInterrupt:
        logger.info("HEALTH_CHECK_SERVER_STOPPED_BY_USER")
    except Exception as e:
        print(f"Error: {e!s}")
        logger.exception("HEALTH_CHECK_SERVER_START_ERROR", error=str(e))
        sys.exit(EXIT_ERROR)


def show_help() -> None:
    """Show help information for the CLI."""
    help_text = """
Object Transformer

Usage:
    object-transformer <command> [options]

Commands:
    run                     Transform the objects named in a storage event file
    health                  Start a health check server
    --help, -h              Show this help message
    --version, -v           Show version information

Options for run command:
    --event-file <path>             JSON storage event notification (required)
    --destination-container <name>  Destination container (default: processed-files)
    --transform <name>              uppercase, lowercase or identity (default: uppercase)
    --storage-type <type>           Storage type (s3, file)
    --storage-file-path <path>      Base directory for file storage
    --storage-s3-region <region>    S3 region
    --storage-s3-endpoint-url <url> S3 endpoint URL (e.g., LocalStack)
    --storage-aws-profile <name>    AWS profile for the S3 client
    --log-level <level>             Log level (DEBUG, INFO, WARNING, ERROR)
    --dev-mode                      Enable development mode

Every option can also be set as OBJECT_TRANSFORMER_<OPTION> in the environment,
e.g. OBJECT_TRANSFORMER_STORAGE_TYPE=file.

Examples:
    object-transformer run --event-file ./mocks/events/notes_created.json \\
        --storage-type file --storage-file-path ./mocks/buckets
    object-transformer health --port 8080
"""
    print(help_text)


def main() -> None:
    """Main entry point for the CLI."""
    min_args = 2
    if len(sys.argv) < min_args:
        show_help()
        sys.exit(EXIT_ERROR)

    command = sys.argv[1]
    args = sys.argv[2:]

    version = f"object-transformer, version {VERSION}"
    dispatch = {
        "run": lambda: run_command(args),
        "health": lambda: health_command(args),
        "--help": show_help,
        "-h": show_help,
        "help": show_help,
        "--version": lambda: print(version),
        "-v": lambda: print(version),
        "version": lambda: print(version),
    }
    handler = dispatch.get(command)
    if handler is None:
        show_help()
        sys.exit(EXIT_ERROR)
    handler()  # type: ignore[no-untyped-call]
    sys.exit(0)


if __name__ == "__main__":
    main()
