"""Run the API server with uvicorn: ``python -m vent_ai``"""

import uvicorn

from vent_ai.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "vent_ai.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
