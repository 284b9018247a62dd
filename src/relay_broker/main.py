"""Process entrypoint serving the ASGI app."""

import uvicorn

from relay_broker.config import Settings


def main() -> None:
    """Run the relay broker HTTP server."""
    settings = Settings()
    uvicorn.run(
        "relay_broker.api.asgi:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
