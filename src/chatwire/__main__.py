import logging

import uvicorn

from chatwire.config import Settings
from chatwire.logging_config import configure_logging
from chatwire.server import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_file)
    logger.info(f"Starting chatwire on http://{settings.host}:{settings.port}")
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
