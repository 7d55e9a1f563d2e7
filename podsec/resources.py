"""
Helpers for working with the raw Kubernetes objects carried by admission reviews.
"""

from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from pydantic import ValidationError

from podsec.exceptions import ResourceConversionException, UnsupportedKindException
from podsec.models import PodSpec


class WorkloadKind(Enum):
    """Workload kinds that embed a pod specification, with the path to it."""

    POD = ("Pod", ("spec",))
    DEPLOYMENT = ("Deployment", ("spec", "template", "spec"))
    STATEFUL_SET = ("StatefulSet", ("spec", "template", "spec"))
    DAEMON_SET = ("DaemonSet", ("spec", "template", "spec"))
    CRON_JOB = ("CronJob", ("spec", "jobTemplate", "spec", "template", "spec"))
    JOB = ("Job", ("spec", "template", "spec"))

    def __init__(self, kind: str, path: Tuple[str, ...]):
        self.kind = kind
        self.path = path

    @classmethod
    def from_kind(cls, kind: str) -> "WorkloadKind":
        for member in cls:
            if member.kind == kind:
                return member
        raise UnsupportedKindException(kind)


# owners whose pod templates are validated on their own admission request
CONTROLLER_OWNER_KINDS = frozenset(
    ["ReplicaSet", "Deployment", "DaemonSet", "StatefulSet", "CronJob", "Job"]
)


class WorkloadResource:
    """
    Read-only accessor over a raw workload object.

    Wrong-shaped metadata, annotations or owner references read as empty.
    """

    def __init__(self, obj: Mapping[str, Any]):
        self._object = obj

    @property
    def raw(self) -> Mapping[str, Any]:
        return self._object

    @property
    def kind(self) -> str:
        return _string(self._object.get("kind"))

    @property
    def metadata(self) -> Mapping[str, Any]:
        metadata = self._object.get("metadata")
        return metadata if isinstance(metadata, Mapping) else {}

    @property
    def name(self) -> str:
        return _string(self.metadata.get("name"))

    @property
    def namespace(self) -> str:
        return _string(self.metadata.get("namespace"))

    @property
    def annotations(self) -> Dict[str, str]:
        annotations = self.metadata.get("annotations")
        if not isinstance(annotations, Mapping):
            return {}
        return {key: value for key, value in annotations.items() if isinstance(value, str)}

    @property
    def owner_references(self) -> List[Dict[str, Any]]:
        references = self.metadata.get("ownerReferences")
        if not isinstance(references, list):
            return []
        return [dict(reference) for reference in references if isinstance(reference, Mapping)]

    def get_annotation(self, key: str) -> str:
        """Annotation value for ``key``, empty when the object has none."""
        return self.annotations.get(key) or ""

    def __str__(self) -> str:
        return f"{self.kind}/{self.name} in namespace {self.namespace}"


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def get_pod_spec(resource: WorkloadResource) -> PodSpec:
    """
    Return the pod specification embedded in a workload object.

    Raises:
        UnsupportedKindException: the kind does not embed a pod spec.
        ResourceConversionException: the embedded spec has the wrong shape.
    """
    workload_kind = WorkloadKind.from_kind(resource.kind)

    node: Any = resource.raw
    for key in workload_kind.path:
        node = node.get(key) if isinstance(node, Mapping) else None
        if node is None:
            node = {}
            break

    try:
        return PodSpec.model_validate(node)
    except ValidationError as e:
        raise ResourceConversionException(
            f"unable to convert {workload_kind.kind.lower()} to typed object: {e}"
        ) from e


def get_container_names(containers: Sequence[str]) -> str:
    """Comma separated container names, as shown in denial messages."""
    return ",".join(containers)


def is_owned_by_controller(resource: WorkloadResource) -> bool:
    """True for pods created by a controller whose template is validated separately."""
    if resource.kind != WorkloadKind.POD.kind:
        return False

    return any(
        _string(owner.get("kind")) in CONTROLLER_OWNER_KINDS for owner in resource.owner_references
    )
