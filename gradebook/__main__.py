"""Runs the API with uvicorn on the configured port: ``python -m gradebook``."""

import uvicorn

from gradebook.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "gradebook.main:app",
        host="0.0.0.0",
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
