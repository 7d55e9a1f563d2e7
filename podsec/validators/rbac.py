from podsec.validators.base import ValidationResult
from podsec.validators.context import PodSpecContext


DEFAULT_SERVICE_ACCOUNT = "default-service-account"

DEFAULT_SERVICE_ACCOUNT_NAME = "default"


def default_service_account(context: PodSpecContext) -> ValidationResult:
    """Reject pods using the namespace default service account."""
    service_account = context.pod_spec.service_account_name

    if not service_account:
        return ValidationResult.deny("unable to permit pod attempting to use empty service account")

    if service_account == DEFAULT_SERVICE_ACCOUNT_NAME:
        return ValidationResult.deny("unable to permit pod attempting to use the default service account")

    return ValidationResult.allow()
