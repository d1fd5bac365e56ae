import uvicorn

from orderflow.config import Settings
from orderflow.logs import configure_logging
from orderflow.wire import create_app


def main() -> None:
    settings = Settings()
    configure_logging(settings)
    uvicorn.run(create_app(settings=settings), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()
