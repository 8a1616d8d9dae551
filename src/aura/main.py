import pydantic
import structlog

from aura.app import App
from aura.config import Config
from aura.logging import setup_logging
from aura.web.runner import run_server

logger = structlog.get_logger(__name__)


def main() -> None:
    """Console entry point: read AURA_* settings and serve the API."""
    try:
        config = Config()
    except pydantic.ValidationError as exc:
        raise SystemExit(f"Invalid configuration (see AURA_* environment variables):\n{exc}") from exc

    setup_logging(config.debug)
    logger.info("starting_server", host=config.host, port=config.port, debug=config.debug)
    run_server(App(config), config)


if __name__ == "__main__":
    main()
