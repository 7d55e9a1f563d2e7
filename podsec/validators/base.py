"""
Generic, fail-fast validation pipeline.

A ``Rule`` is an immutable pairing of a name with a pure check function. For
each request the active rules are bound to the request context as
``RuleInvocation`` objects and executed in order by ``ValidationPipeline``,
which stops at the first failing rule.
"""

from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

from loguru import logger


ContextT = TypeVar("ContextT")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single rule check."""

    passed: bool
    message: Optional[str] = None
    containers: Tuple[str, ...] = ()

    @classmethod
    def allow(cls) -> "ValidationResult":
        return cls(passed=True)

    @classmethod
    def deny(cls, message: str, containers: Iterable[str] = ()) -> "ValidationResult":
        return cls(passed=False, message=message, containers=tuple(containers))


@dataclass(frozen=True)
class Rule(Generic[ContextT]):
    """Static rule definition; shared by every request and never mutated."""

    name: str
    check: Callable[[ContextT], ValidationResult]


@dataclass(frozen=True)
class RuleInvocation(Generic[ContextT]):
    """A rule bound to the context of one request."""

    rule: Rule[ContextT]
    context: ContextT

    @property
    def name(self) -> str:
        return self.rule.name

    def execute(self) -> ValidationResult:
        return self.rule.check(self.context)


@dataclass(frozen=True)
class ValidationFailure:
    """The first failing rule of a pipeline run."""

    rule_name: str
    result: ValidationResult


@dataclass
class ValidationPipeline(Generic[ContextT]):
    """Ordered rule invocations for a single request."""

    invocations: List[RuleInvocation[ContextT]] = field(default_factory=list)

    def add(self, rule: Rule[ContextT], context: ContextT) -> None:
        logger.debug(f"registering validation: {rule.name}")
        self.invocations.append(RuleInvocation(rule=rule, context=context))

    @property
    def rule_names(self) -> List[str]:
        return [invocation.name for invocation in self.invocations]

    def run(self) -> Optional[ValidationFailure]:
        """Execute rules in order, returning the first failure or ``None``."""
        for invocation in self.invocations:
            logger.debug(f"performing validation: {invocation.name}")

            result = invocation.execute()
            if not result.passed:
                return ValidationFailure(rule_name=invocation.name, result=result)

            logger.debug(f"successfully completed validation: {invocation.name}")

        return None
