"""Console entrypoint: `match-server` (or `python -m match_server.main`)."""

import uvicorn

from match_server.core.config import get_settings
from match_server.core.logging_config import configure_logging
from match_server.transport.app import create_app


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
