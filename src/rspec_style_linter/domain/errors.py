"""Error taxonomy for the linter. All errors derive from RSpecStyleError."""

from rspec_style_linter.domain.entities import (
    Severity,
    SourceLocation,
    SpecNode,
    Violation,
)

SYNTAX_ERROR_ID = "syntax-error"
IO_ERROR_ID = "io-error"
INTERNAL_RULE_ERROR_ID = "internal-rule-error"


class RSpecStyleError(Exception):
    """Base class for linter errors."""


class SpecSyntaxError(RSpecStyleError):
    """Malformed spec source: unterminated block, stray 'end', missing label or block."""

    def __init__(self, location: SourceLocation, reason: str) -> None:
        super().__init__(f"{location}: {reason}")
        self.location = location
        self.reason = reason

    def to_violation(self) -> Violation:
        return Violation(
            rule_id=SYNTAX_ERROR_ID,
            severity=Severity.ERROR,
            message=self.reason,
            location=self.location,
        )


class DuplicateRuleError(RSpecStyleError):
    """A rule id was registered twice."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Rule '{rule_id}' is already registered")
        self.rule_id = rule_id


class ConfigError(RSpecStyleError):
    """Malformed or inconsistent configuration."""


class InternalRuleError(RSpecStyleError):
    """A rule's check raised. Recorded as a violation; never aborts a run."""

    def __init__(self, rule_id: str, node: SpecNode, cause: BaseException) -> None:
        super().__init__(f"Rule '{rule_id}' failed: {type(cause).__name__}: {cause}")
        self.rule_id = rule_id
        self.node = node
        self.cause = cause

    def to_violation(self) -> Violation:
        return Violation(
            rule_id=INTERNAL_RULE_ERROR_ID,
            severity=Severity.ERROR,
            message=str(self),
            location=self.node.location,
        )
