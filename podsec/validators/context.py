from dataclasses import dataclass

from podsec.models import PodSpec
from podsec.resources import WorkloadResource


@dataclass(frozen=True)
class PodSpecContext:
    """Per-request input shared, read-only, by every pod security rule."""

    resource: WorkloadResource
    pod_spec: PodSpec
