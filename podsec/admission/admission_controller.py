import json
from typing import Any, Dict, Mapping, Optional, Tuple

from loguru import logger

from podsec.config import ValidationConfig
from podsec.exceptions import (
    AdmissionException,
    MalformedRequestException,
    PolicyViolationException,
)
from podsec.overrides import OverridePolicy
from podsec.resources import WorkloadResource, get_container_names, get_pod_spec
from podsec.responses import ADMISSION_API_VERSION, AdmissionDecision
from podsec.validators.base import ValidationFailure, ValidationPipeline
from podsec.validators.catalog import RuleCatalog, build_catalog
from podsec.validators.context import PodSpecContext


FAILED_VALIDATION = "failed validation"


class AdmissionController:
    """
    Decides admission reviews by running the pod security rule catalog.

    The catalog and override policy are built once and shared read-only
    across requests; everything else is created per request.
    """

    def __init__(self, config: Optional[ValidationConfig] = None, catalog: Optional[RuleCatalog] = None):
        self.config = config if config is not None else ValidationConfig()
        self.catalog = catalog if catalog is not None else build_catalog(self.config)
        self.overrides = OverridePolicy(self.config)

    def validate_request(self, admission_review: Any) -> Tuple[bool, Dict]:
        """Main admission validation logic"""
        uid, api_version = _review_identity(admission_review)
        decision = self.decide(admission_review)
        return decision.permitted, decision.to_review(uid, api_version)

    def decide(self, admission_review: Any) -> AdmissionDecision:
        try:
            context = self.setup(admission_review)
            pipeline = self.overrides.build_pipeline(self.catalog, context)
            self.validate(pipeline, context)
        except PolicyViolationException as e:
            logger.info(f"denied admission: {e}")
            return AdmissionDecision.deny(str(e), e.status_code)
        except AdmissionException as e:
            logger.error(str(e))
            return AdmissionDecision.deny(str(e), e.status_code)

        return AdmissionDecision.allow()

    def setup(self, admission_review: Any) -> PodSpecContext:
        """Check the review for missing values and extract the pod spec."""
        if not isinstance(admission_review, Mapping):
            raise MalformedRequestException("invalid request - unable to decode the admission review")

        request = admission_review.get("request")
        if not isinstance(request, Mapping) or not request.get("requestKind"):
            raise MalformedRequestException("invalid request - request object is nil")

        obj = _decode_object(request.get("object"))

        resource = WorkloadResource(obj)
        pod_spec = get_pod_spec(resource)

        return PodSpecContext(resource=resource, pod_spec=pod_spec)

    def validate(self, pipeline: ValidationPipeline[PodSpecContext], context: PodSpecContext) -> None:
        failure = pipeline.run()
        if failure is not None:
            raise PolicyViolationException(
                f"{FAILED_VALIDATION} - {format_failure(failure, context.resource)}"
            )


def format_failure(failure: ValidationFailure, resource: WorkloadResource) -> str:
    message = (
        f"{FAILED_VALIDATION} {failure.rule_name} for {str(resource).lower()} - "
        f"{failure.result.message}"
    )
    if failure.result.containers:
        message = f"{message} for containers {get_container_names(failure.result.containers)}"
    return message


def _decode_object(raw: Any) -> Dict[str, Any]:
    """The embedded object arrives as JSON, or as serialized JSON text."""
    if isinstance(raw, (bytes, str)):
        if not raw:
            raise MalformedRequestException("invalid request - empty object in request")
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MalformedRequestException(
                f"invalid request - unable to unmarshal request object: {e}"
            ) from e

    if not raw:
        raise MalformedRequestException("invalid request - empty object in request")

    if not isinstance(raw, Mapping):
        raise MalformedRequestException("invalid request - request object is not an object")

    return dict(raw)


def _review_identity(admission_review: Any) -> Tuple[Optional[str], str]:
    if not isinstance(admission_review, Mapping):
        return None, ADMISSION_API_VERSION

    request = admission_review.get("request")
    uid = request.get("uid") if isinstance(request, Mapping) else None
    return uid, admission_review.get("apiVersion") or ADMISSION_API_VERSION
