import json
import sys
from typing import Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from loguru import logger

from podsec.admission.admission_controller import AdmissionController
from podsec.config import ValidationConfig, WebhookConfig
from podsec.exceptions import MalformedRequestException, ResponseSerializationException
from podsec.responses import AdmissionDecision, HealthResponse
from podsec.server import WebServer


class AdmissionWebhookServer(WebServer):
    """Validating admission webhook for pod security."""

    def __init__(self, config: WebhookConfig, controller: Optional[AdmissionController] = None):
        self.controller = controller if controller is not None else AdmissionController()
        super().__init__(config)

    def _setup_routes(self):
        """Setup web routes."""
        self.app.add_api_route("/validate", self.validate, methods=["POST"])
        self.app.add_api_route("/healthz", self.health_check, methods=["GET"])

    async def health_check(self) -> HealthResponse:
        return HealthResponse()

    async def validate(self, request: Request) -> Response:
        body = await request.body()

        try:
            admission_review = json.loads(body)
        except ValueError as e:
            error = MalformedRequestException(f"invalid request - unable to decode the POST request: {e}")
            logger.error(str(error))
            review = AdmissionDecision.deny(str(error), error.status_code).to_review(None)
        else:
            try:
                _, review = self.controller.validate_request(admission_review)
            except ResponseSerializationException as e:
                return self._error_response(e)
            except Exception as e:
                # fail secure, deny admission on unexpected errors
                logger.exception(f"Unexpected error validating admission request: {e}")
                return self._error_response(e)

        try:
            content = json.dumps(review)
        except (TypeError, ValueError) as e:
            return self._error_response(
                ResponseSerializationException(f"unable to marshal the json response: {e}")
            )

        logger.debug(f"sending response: {content}")
        return Response(content=content, media_type="application/json")

    def _error_response(self, error: Exception) -> Response:
        logger.error(f"{error} - error sending response")
        return JSONResponse(status_code=500, content={"error": str(error)})


def configure_logging(debug: bool, level: str = "INFO") -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else level)


def run():
    """Main entry point."""
    try:
        # Load configuration using Pydantic
        config = WebhookConfig()
        validation_config = ValidationConfig()

        configure_logging(config.debug)
        if config.debug:
            logger.debug("Debug mode enabled")
            logger.debug(f"Configuration: {config.export_json()}")

        if not config.uds_path and not config.tls_enabled:
            logger.warning("TLS certificates not configured, running in insecure mode")

        controller = AdmissionController(validation_config)
        logger.info(f"Loaded {len(controller.catalog)} validation rules: {', '.join(controller.catalog.names)}")

        server = AdmissionWebhookServer(config, controller)
        server.run()

    except Exception as e:
        logger.exception(f"Failed to start admission webhook: {e}")
        raise


if __name__ == "__main__":
    run()
