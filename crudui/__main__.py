# crudui/__main__.py
import argparse
import logging
import os

import uvicorn

from crudui.core.config import get_settings

logger = logging.getLogger("crudui")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="crudui", description="CRUD admin UI for a relational database")
    parser.add_argument("--config", help="Path to the JSON configuration file")
    parser.add_argument("--host", help="Interface to bind")
    parser.add_argument("--port", type=int, help="Port to listen on")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)

    # Settings are read once, so the config path has to be in place first
    if args.config:
        os.environ["CRUDUI_CONFIG_FILE"] = args.config
        get_settings.cache_clear()
    settings = get_settings()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )

    host = args.host or settings.HOST
    port = args.port or settings.PORT
    logger.info(f"Starting {settings.PROJECT_NAME} {settings.VERSION} on {host}:{port}")
    logger.info(f"Configuration file: {settings.CRUDUI_CONFIG_FILE}")

    uvicorn.run(
        "crudui.main:app",
        host=host,
        port=port,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
