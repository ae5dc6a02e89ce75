import uvicorn

from billbook.logging import configure_logging
from billbook.settings import settings


def main() -> None:
    configure_logging()
    uvicorn.run(
        "web.app:app",
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
        log_config=None,
    )


if __name__ == "__main__":
    main()
