from typing import Any, Dict

from fastapi import FastAPI
from loguru import logger
import uvicorn

from podsec.config import WebhookConfig


class WebServer:
    """FastAPI application plus the uvicorn settings needed to serve it."""

    def __init__(self, config: WebhookConfig):
        self.config = config
        self.app = FastAPI(debug=config.debug)
        self._setup_routes()

    def _setup_routes(self):
        """Subclasses register their routes on ``self.app``."""

    def uvicorn_options(self) -> Dict[str, Any]:
        """Listener options: a Unix socket when configured, else TCP with TLS when certificates exist."""
        options: Dict[str, Any] = {"log_level": "debug" if self.config.debug else "info"}

        if self.config.uds_path:
            options["uds"] = self.config.uds_path
            return options

        options["host"] = self.config.bind_address
        options["port"] = self.config.webhook_port
        if self.config.tls_enabled:
            options["ssl_certfile"] = str(self.config.tls_cert)
            options["ssl_keyfile"] = str(self.config.tls_key)

        return options

    def run(self):
        options = self.uvicorn_options()

        if "uds" in options:
            logger.info(f"Starting admission webhook server on Unix socket {options['uds']}")
        else:
            scheme = "https" if "ssl_certfile" in options else "http"
            logger.info(f"Starting admission webhook server on {scheme}://{options['host']}:{options['port']}")

        uvicorn.run(self.app, **options)
