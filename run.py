"""
Main entrypoint for the Crypto Calculator price service.
Usage: python run.py [api]
"""

import asyncio
import logging
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from crypto_calculator.api.settings import APISettings, api_settings  # noqa: E402

USAGE = """Usage: python run.py [api]
  api            - Start the price and calculation API"""


def setup_logging(settings: APISettings = api_settings) -> None:
    """
    Configure console and optional file logging from the API settings.

    Level, format and file are read from ``LOG_LEVEL``, ``LOG_FORMAT``,
    ``LOG_FILE`` and ``LOG_TO_FILE``, or the ``.env`` file.
    """
    numeric_level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if settings.log_to_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=numeric_level,
        format=settings.log_format,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )


logger = logging.getLogger(__name__)


async def run_api() -> None:
    from crypto_calculator.api.service import main as serve

    logger.info(
        f"Starting API service on {api_settings.api_host}:{api_settings.api_port}"
    )
    await serve()


COMMANDS = {"api": run_api}


async def main(argv: list[str]) -> int:
    if len(argv) != 1:
        print(USAGE)
        return 1

    command = COMMANDS.get(argv[0].lower())
    if command is None:
        print(f"Unknown command: {argv[0]}")
        print(USAGE)
        return 1

    setup_logging()
    await command()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main(sys.argv[1:])))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(0)
    except Exception as e:
        print(f"Application failed: {e}")
        sys.exit(1)
