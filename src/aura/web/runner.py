import copy
from typing import Any

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from aura.app import App
from aura.config import Config
from aura.web.server import create_fastapi_app


def uvicorn_log_config(debug: bool) -> dict[str, Any]:
    """Uvicorn's logging dict with terse formats; access lines only in debug."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    formatters = log_config["formatters"]
    formatters["default"]["fmt"] = "%(levelprefix)s %(message)s"
    formatters["access"]["fmt"] = '%(levelprefix)s %(client_addr)s "%(request_line)s" %(status_code)s'

    level = "DEBUG" if debug else "INFO"
    log_config["loggers"]["uvicorn"]["level"] = level
    log_config["loggers"]["uvicorn.access"]["level"] = level if debug else "WARNING"
    return log_config


def run_server(app: App, config: Config) -> None:
    uvicorn.run(
        create_fastapi_app(app, config),
        host=config.host,
        port=config.port,
        log_config=uvicorn_log_config(config.debug),
        proxy_headers=True,
        forwarded_allow_ips=config.forwarded_allow_ips,
    )
