"""Run the API server; the feed scheduler starts with the app lifespan."""

import uvicorn

from aggregator.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("aggregator.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
