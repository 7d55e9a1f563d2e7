"""
Rules can be skipped for a request in three ways, checked in this order:

1. ``VALIDATE_<RULE_NAME>=false`` in the environment disables a rule for
   every request until the process restarts.
2. Pods owned by a workload controller are skipped, the controller's pod
   template is validated on its own admission request.
3. An ``ignore-check.kube-linter.io/<check>`` annotation with any non-empty
   value skips the rule for that object only.
"""

from typing import Optional

from loguru import logger

from podsec.config import RULE_DISABLED_VALUE, ValidationConfig, rule_override_env
from podsec.resources import WorkloadResource, is_owned_by_controller
from podsec.validators.base import Rule, ValidationPipeline
from podsec.validators.capabilities import ADD_CAPABILITIES, DROP_CAPABILITIES
from podsec.validators.catalog import RuleCatalog
from podsec.validators.context import PodSpecContext


ANNOTATION_PREFIX = "ignore-check.kube-linter.io/"

# rules sharing a single kube-linter check name
ANNOTATION_ALIASES = {
    ADD_CAPABILITIES: "verify-container-capabilities",
    DROP_CAPABILITIES: "verify-container-capabilities",
}


def annotation_override(rule_name: str) -> str:
    return f"{ANNOTATION_PREFIX}{ANNOTATION_ALIASES.get(rule_name, rule_name)}"


class OverridePolicy:
    def __init__(self, config: ValidationConfig):
        self.config = config

    def is_disabled(self, rule: Rule) -> bool:
        """Process wide switch, independent of the object under review."""
        return self.config.is_rule_disabled(rule.name)

    def skip_reason(self, rule: Rule, resource: WorkloadResource) -> Optional[str]:
        """Reason to leave ``rule`` out of the pipeline for ``resource``, or ``None``."""
        if self.is_disabled(rule):
            env_var = rule_override_env(rule.name)
            logger.info(
                f"skipping validation [{rule.name}] due to env var [{env_var}={RULE_DISABLED_VALUE}]"
            )
            return f"env var {env_var}"

        if is_owned_by_controller(resource):
            # debug only, every replica of every controller ends up here
            logger.debug(
                f"skipping validation [{rule.name}] due to owner references {resource.owner_references}"
            )
            return "owner references"

        annotation = annotation_override(rule.name)
        value = resource.get_annotation(annotation)
        if value:
            logger.info(f"skipping validation [{rule.name}] due to annotation [{annotation}={value}]")
            return f"annotation {annotation}"

        return None

    def build_pipeline(
        self, catalog: RuleCatalog, context: PodSpecContext
    ) -> ValidationPipeline[PodSpecContext]:
        """Bind every rule that survives the overrides to ``context``, in catalog order."""
        pipeline: ValidationPipeline[PodSpecContext] = ValidationPipeline()

        for rule in catalog:
            if self.skip_reason(rule, context.resource) is None:
                pipeline.add(rule, context)

        return pipeline
