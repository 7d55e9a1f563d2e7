from typing import Callable, Sequence

from podsec.validators.base import ValidationResult
from podsec.validators.context import PodSpecContext


IMAGE_REGISTRY = "trusted-image-registry"

UNTRUSTED_REGISTRY_MESSAGE = "unable to permit pod with images from an untrusted registry"


def image_registry(trusted_registries: Sequence[str]) -> Callable[[PodSpecContext], ValidationResult]:
    """
    Build the trusted registry check for a fixed set of registry prefixes.

    With no trusted registries configured the check always passes.
    """
    registries = tuple(registry for registry in trusted_registries if registry)

    def check(context: PodSpecContext) -> ValidationResult:
        if not registries:
            return ValidationResult.allow()

        untrusted = [
            container.name
            for container in context.pod_spec.all_containers
            if not container.image.startswith(registries)
        ]

        if not untrusted:
            return ValidationResult.allow()

        return ValidationResult.deny(
            f"{UNTRUSTED_REGISTRY_MESSAGE} - container not using trusted registries "
            f"[{','.join(registries)}]",
            untrusted,
        )

    return check
