import uvicorn

from shelfscan.api.app import create_app
from shelfscan.config.settings import Settings


def main() -> None:
    """Entry point for the HTTP server."""
    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
