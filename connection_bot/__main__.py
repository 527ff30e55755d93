# connection_bot/__main__.py
import uvicorn

from connection_bot.config import settings


def main() -> None:
    uvicorn.run(
        "connection_bot.transport.http_app:app",
        host=settings.http_host,
        port=settings.http_port,
        log_level=settings.log_level.lower(),
        access_log=not settings.is_production,
        server_header=False,
        date_header=False,
    )


if __name__ == "__main__":
    main()
