from podsec.validators.base import ValidationResult
from podsec.validators.context import PodSpecContext


HOST_PID = "host-pid"
HOST_IPC = "host-ipc"
HOST_NETWORK = "host-network"


def host_pid(context: PodSpecContext) -> ValidationResult:
    """Reject pods sharing the host process namespace."""
    if context.pod_spec.host_pid:
        return ValidationResult.deny("unable to permit pod with hostPID")
    return ValidationResult.allow()


def host_ipc(context: PodSpecContext) -> ValidationResult:
    """Reject pods sharing the host IPC namespace."""
    if context.pod_spec.host_ipc:
        return ValidationResult.deny("unable to permit pod with hostIPC")
    return ValidationResult.allow()


def host_network(context: PodSpecContext) -> ValidationResult:
    """Reject pods binding to the host network."""
    if context.pod_spec.host_network:
        return ValidationResult.deny("unable to permit pod with hostNetwork")
    return ValidationResult.allow()
