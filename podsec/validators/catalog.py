"""
The static, ordered catalog of pod security rules.
"""

from typing import Dict, Iterator, List

from podsec.config import ValidationConfig
from podsec.validators.base import Rule
from podsec.validators.capabilities import (
    ADD_CAPABILITIES,
    DROP_CAPABILITIES,
    add_capabilities,
    drop_capabilities,
)
from podsec.validators.context import PodSpecContext
from podsec.validators.host import HOST_IPC, HOST_NETWORK, HOST_PID, host_ipc, host_network, host_pid
from podsec.validators.images import IMAGE_REGISTRY, image_registry
from podsec.validators.rbac import DEFAULT_SERVICE_ACCOUNT, default_service_account
from podsec.validators.security import (
    ALLOW_PRIVILEGE_ESCALATION,
    PRIVILEGED,
    RUN_AS_NON_ROOT,
    allow_privilege_escalation,
    privileged,
    run_as_non_root,
)


class RuleCatalog:
    """Rules in registration order. Registration order is execution order."""

    def __init__(self):
        self._rules: Dict[str, Rule[PodSpecContext]] = {}

    def register(self, rule: Rule[PodSpecContext]) -> None:
        if rule.name in self._rules:
            raise ValueError(f"validation rule {rule.name!r} is already registered")
        self._rules[rule.name] = rule

    def __iter__(self) -> Iterator[Rule[PodSpecContext]]:
        return iter(list(self._rules.values()))

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, name: str) -> bool:
        return name in self._rules

    @property
    def names(self) -> List[str]:
        return list(self._rules)


def build_catalog(config: ValidationConfig) -> RuleCatalog:
    catalog = RuleCatalog()

    # no root containers and no privilege escalation
    catalog.register(Rule(RUN_AS_NON_ROOT, run_as_non_root))
    catalog.register(Rule(PRIVILEGED, privileged))
    catalog.register(Rule(ALLOW_PRIVILEGE_ESCALATION, allow_privilege_escalation))

    # access to host resources
    catalog.register(Rule(HOST_PID, host_pid))
    catalog.register(Rule(HOST_IPC, host_ipc))
    catalog.register(Rule(HOST_NETWORK, host_network))

    # expanded container capabilities
    catalog.register(Rule(ADD_CAPABILITIES, add_capabilities))
    catalog.register(Rule(DROP_CAPABILITIES, drop_capabilities))

    # images
    catalog.register(Rule(IMAGE_REGISTRY, image_registry(config.trusted_registries)))

    # rbac
    catalog.register(Rule(DEFAULT_SERVICE_ACCOUNT, default_service_account))

    return catalog
