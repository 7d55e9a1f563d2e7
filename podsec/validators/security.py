from podsec.models import effective_run_as_non_root, effective_run_as_user, get_security_context
from podsec.validators.base import ValidationResult
from podsec.validators.context import PodSpecContext


RUN_AS_NON_ROOT = "run-as-non-root"
PRIVILEGED = "privileged-container"
ALLOW_PRIVILEGE_ESCALATION = "privilege-escalation-container"

POD_RUN_AS_ROOT_MESSAGE = "unable to permit pod attempting to run as root"
CONTAINER_PRIVILEGED_MESSAGE = "unable to permit privileged container"
CONTAINER_ALLOW_ESCALATION_MESSAGE = "unable to permit container which allows privileged escalation"


def run_as_non_root(context: PodSpecContext) -> ValidationResult:
    """Fail containers that may run as root.

    A positive effective ``runAsUser`` is enough on its own. Otherwise the
    effective ``runAsNonRoot`` must be true and must not be paired with uid 0.
    """
    pod_spec = context.pod_spec
    containers_as_root = []

    for container in pod_spec.containers:
        run_as_user = effective_run_as_user(pod_spec.security_context, container.security_context)
        if run_as_user is not None and run_as_user > 0:
            continue

        if effective_run_as_non_root(pod_spec.security_context, container.security_context):
            if run_as_user == 0:
                containers_as_root.append(container.name)
            continue

        containers_as_root.append(container.name)

    if not containers_as_root:
        return ValidationResult.allow()

    return ValidationResult.deny(POD_RUN_AS_ROOT_MESSAGE, containers_as_root)


def privileged(context: PodSpecContext) -> ValidationResult:
    offending = [
        container.name
        for container in context.pod_spec.containers
        if get_security_context(container).privileged is True
    ]

    if not offending:
        return ValidationResult.allow()

    return ValidationResult.deny(CONTAINER_PRIVILEGED_MESSAGE, offending)


def allow_privilege_escalation(context: PodSpecContext) -> ValidationResult:
    offending = [
        container.name
        for container in context.pod_spec.containers
        if get_security_context(container).allow_privilege_escalation is True
    ]

    if not offending:
        return ValidationResult.allow()

    return ValidationResult.deny(CONTAINER_ALLOW_ESCALATION_MESSAGE, offending)
