from podsec.models import get_security_context, has_capability
from podsec.validators.base import ValidationResult
from podsec.validators.context import PodSpecContext


ADD_CAPABILITIES = "verify-add-container-capabilities"
DROP_CAPABILITIES = "verify-drop-container-capabilities"

# one of these must be dropped by every container
REQUIRED_DROP_CAPABILITIES = ("ALL", "NET_RAW")

ADD_CAPABILITIES_MESSAGE = "unable to permit container adding escalated capabilities"
DROP_CAPABILITIES_MESSAGE = "unable to permit container missing either drop capabilities of ALL or NET_RAW"


def add_capabilities(context: PodSpecContext) -> ValidationResult:
    """Reject containers requesting any additional capability."""
    offending = []

    for container in context.pod_spec.containers:
        capabilities = get_security_context(container).capabilities
        if capabilities is not None and capabilities.add:
            offending.append(container.name)

    if not offending:
        return ValidationResult.allow()

    return ValidationResult.deny(ADD_CAPABILITIES_MESSAGE, offending)


def drop_capabilities(context: PodSpecContext) -> ValidationResult:
    """Require every container to drop ``ALL`` or ``NET_RAW``.

    A missing capabilities block or an empty drop list fails.
    """
    offending = []

    for container in context.pod_spec.containers:
        capabilities = get_security_context(container).capabilities
        if capabilities is not None and has_capability(capabilities.drop, *REQUIRED_DROP_CAPABILITIES):
            continue

        offending.append(container.name)

    if not offending:
        return ValidationResult.allow()

    return ValidationResult.deny(DROP_CAPABILITIES_MESSAGE, offending)
