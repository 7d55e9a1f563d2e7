"""
Typed, immutable view of the pod specification fields used by validation rules.

Only the fields the rules look at are modelled; everything else in the
Kubernetes object is ignored.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


def _null_as_default(model, v, info: ValidationInfo):
    """Explicit nulls decode to the field default, as omitted fields do."""
    if v is None:
        return model.model_fields[info.field_name].default
    return v


class Capabilities(_Frozen):
    add: Tuple[str, ...] = ()
    drop: Tuple[str, ...] = ()

    @field_validator("add", "drop", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return () if v is None else v


class SecurityContext(_Frozen):
    """Container level security context."""

    privileged: Optional[bool] = None
    allow_privilege_escalation: Optional[bool] = Field(default=None, alias="allowPrivilegeEscalation")
    run_as_user: Optional[int] = Field(default=None, alias="runAsUser")
    run_as_non_root: Optional[bool] = Field(default=None, alias="runAsNonRoot")
    capabilities: Optional[Capabilities] = None


class PodSecurityContext(_Frozen):
    """Pod level security context."""

    run_as_user: Optional[int] = Field(default=None, alias="runAsUser")
    run_as_non_root: Optional[bool] = Field(default=None, alias="runAsNonRoot")


class Container(_Frozen):
    name: str = ""
    image: str = ""
    security_context: Optional[SecurityContext] = Field(default=None, alias="securityContext")

    @field_validator("name", "image", mode="before")
    @classmethod
    def null_as_default(cls, v, info: ValidationInfo):
        return _null_as_default(cls, v, info)


class PodSpec(_Frozen):
    host_pid: bool = Field(default=False, alias="hostPID")
    host_ipc: bool = Field(default=False, alias="hostIPC")
    host_network: bool = Field(default=False, alias="hostNetwork")
    service_account_name: str = Field(default="", alias="serviceAccountName")
    security_context: Optional[PodSecurityContext] = Field(default=None, alias="securityContext")
    init_containers: Tuple[Container, ...] = Field(default=(), alias="initContainers")
    containers: Tuple[Container, ...] = ()

    @field_validator("host_pid", "host_ipc", "host_network", "service_account_name", mode="before")
    @classmethod
    def null_as_default(cls, v, info: ValidationInfo):
        return _null_as_default(cls, v, info)

    @field_validator("init_containers", "containers", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return () if v is None else v

    @property
    def all_containers(self) -> Tuple[Container, ...]:
        """Init containers followed by regular containers."""
        return self.init_containers + self.containers


def get_security_context(container: Container) -> SecurityContext:
    """Return the container security context, or an empty one when unset."""
    if container.security_context is None:
        return SecurityContext()
    return container.security_context


def effective_run_as_non_root(
    pod_context: Optional[PodSecurityContext], container_context: Optional[SecurityContext]
) -> bool:
    if container_context is not None and container_context.run_as_non_root is not None:
        return container_context.run_as_non_root

    if pod_context is not None and pod_context.run_as_non_root is not None:
        return pod_context.run_as_non_root

    return False


def effective_run_as_user(
    pod_context: Optional[PodSecurityContext], container_context: Optional[SecurityContext]
) -> Optional[int]:
    if container_context is not None and container_context.run_as_user is not None:
        return container_context.run_as_user

    if pod_context is not None:
        return pod_context.run_as_user

    return None


def has_capability(capabilities: Tuple[str, ...], *one_of: str) -> bool:
    """Case-insensitive check that any of ``one_of`` is in ``capabilities``."""
    wanted = {name.lower() for name in one_of}
    return any(capability.lower() in wanted for capability in capabilities)
