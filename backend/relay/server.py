"""Process entry point: configure logging, build the app, serve it with uvicorn."""

import ssl
import sys

import uvicorn
from fastapi import FastAPI

from relay.config import Settings, settings
from relay.errors import StoreConfigError
from relay.logging_config import get_logger, setup_logging
from relay.main import create_app

logger = get_logger("relay.server")

# ECDHE key exchange with AEAD ciphers only; TLS 1.3 suites are not affected by this string
TLS_CIPHERS = "ECDHE+AESGCM:ECDHE+CHACHA20"
TLS_MIN_VERSION = ssl.TLSVersion.TLSv1_2


class RelayServerConfig(uvicorn.Config):
    """uvicorn config that also pins the minimum TLS version."""

    def load(self) -> None:
        super().load()
        if self.ssl is not None:
            self.ssl.minimum_version = TLS_MIN_VERSION


def build_server_config(app: FastAPI, app_settings: Settings) -> RelayServerConfig:
    tls_options = {}
    if app_settings.tls_enabled:
        tls_options = {
            "ssl_certfile": app_settings.tls_cert,
            "ssl_keyfile": app_settings.tls_key,
            "ssl_ciphers": TLS_CIPHERS,
        }

    return RelayServerConfig(
        app,
        host=app_settings.host,
        port=app_settings.port,
        # Access lines would contain secret ids; LoggingMiddleware covers requests
        access_log=False,
        log_config=None,
        **tls_options,
    )


def main() -> None:
    setup_logging(settings)

    try:
        app = create_app(settings)
    except StoreConfigError as e:
        logger.error("startup_failed", error=str(e))
        sys.exit(1)

    config = build_server_config(app, settings)
    logger.info(
        "relay_starting",
        host=settings.host,
        port=settings.port,
        tls=settings.tls_enabled,
    )
    uvicorn.Server(config).run()


if __name__ == "__main__":
    main()
