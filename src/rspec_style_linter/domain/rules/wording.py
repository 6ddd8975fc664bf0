"""Description wording rules: example and context labels, method labels."""

import re
from typing import ClassVar

from rspec_style_linter.domain.entities import LabelKind, NodeKind, Severity, SpecNode
from rspec_style_linter.domain.rules import Checkable, RuleContext, Violation


class NoShouldWordingRule(Checkable):
    """Rule no-should-wording: write 'returns true', not 'should return true'."""

    id: str = "no-should-wording"
    description: str = "Example descriptions must not start with 'should'."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.IT})
    default_severity: Severity = Severity.ERROR

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        if node.label_kind is not LabelKind.DESCRIPTION:
            return []
        if not node.label.lstrip().lower().startswith("should "):
            return []
        return [
            context.violation(
                self.id,
                f"Description '{node.label}' starts with 'should'; use the third person present tense "
                "(e.g. 'returns true' instead of 'should return true').",
                node,
            )
        ]


class ContextStartsWithWhenRule(Checkable):
    """Rule context-starts-with-when: context labels describe a condition."""

    id: str = "context-starts-with-when"
    description: str = "Context descriptions start with 'when'."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.CONTEXT})
    default_severity: Severity = Severity.WARNING

    DEFAULT_PREFIXES: ClassVar[tuple[str, ...]] = ("when ",)

    def __init__(self, prefixes: tuple[str, ...] | None = None) -> None:
        self._prefixes = tuple(p.lower() for p in (prefixes or self.DEFAULT_PREFIXES))

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        label = node.label.lstrip().lower()
        if label.startswith(self._prefixes):
            return []
        expected = "' or '".join(p.strip() for p in self._prefixes)
        return [
            context.violation(
                self.id,
                f"Context '{node.label}' does not start with '{expected}'.",
                node,
            )
        ]


class ShortDescriptionRule(Checkable):
    """Rule short-description: long example descriptions belong in a context."""

    id: str = "short-description"
    description: str = "Example descriptions stay short; move conditions into a context."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.IT})
    default_severity: Severity = Severity.WARNING

    DEFAULT_MAX_LENGTH: ClassVar[int] = 40

    def __init__(self, max_length: int | None = None) -> None:
        self._max_length = max_length if max_length is not None else self.DEFAULT_MAX_LENGTH

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        if node.label_kind is not LabelKind.DESCRIPTION:
            return []
        length = len(node.label)
        if length <= self._max_length:
            return []
        return [
            context.violation(
                self.id,
                f"Description is {length} characters long (max {self._max_length}); "
                "split the condition into a context.",
                node,
            )
        ]


class MethodLabelFormatRule(Checkable):
    """
    Rule method-label-format: a describe nested in the top-level describe
    that names a method uses '#method' (instance) or '.method' (class).

    Only labels that read as a method name are checked: a symbol, a
    `self.`-prefixed name, a snake_case identifier, a predicate/bang/setter
    name, a call with parentheses, or prose of the form "the save method".
    Plain words such as 'validations' are treated as topics, not methods.
    """

    id: str = "method-label-format"
    description: str = "Method describe blocks are labeled '#instance_method' or '.class_method'."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.DESCRIBE})
    default_severity: Severity = Severity.ERROR

    _SELF_METHOD = re.compile(r"^self\.([a-z_]\w*[?!=]?)$")
    _SNAKE_CASE = re.compile(r"^[a-z]\w*_\w*[?!=]?$")
    _PUNCTUATED = re.compile(r"^[a-z_]\w*[?!=]$")
    _CALL = re.compile(r"^([a-z_]\w*[?!=]?)\(.*\)$")
    _PROSE = re.compile(r"^(?:the\s+)?(?:(class|instance)\s+)?(?:method\s+)?([a-z_]\w*[?!=]?)\s+(?:(class|instance)\s+)?method\b", re.IGNORECASE)

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        if len(context.ancestors) != 2 or context.parent.kind is not NodeKind.DESCRIBE:
            return []
        if node.label_kind is LabelKind.SYMBOL:
            name, class_method = node.label.lstrip(":"), False
        elif node.label_kind is LabelKind.DESCRIPTION:
            parsed = self.method_name(node.label.strip())
            if parsed is None:
                return []
            name, class_method = parsed
        else:
            return []
        suggestion = f".{name}" if class_method else f"#{name}"
        return [
            context.violation(
                self.id,
                f"Describe '{node.label}' names a method; label it '{suggestion}' "
                f"('#{name}' for instance methods, '.{name}' for class methods).",
                node,
            )
        ]

    def method_name(self, label: str) -> tuple[str, bool] | None:
        """Return (method name, is class method) when the label reads as a method name."""
        match = self._SELF_METHOD.match(label)
        if match:
            return (match.group(1), True)
        match = self._CALL.match(label)
        if match:
            return (match.group(1), False)
        if self._SNAKE_CASE.match(label) or self._PUNCTUATED.match(label):
            return (label, False)
        match = self._PROSE.match(label)
        if match:
            scope = match.group(1) or match.group(3)
            return (match.group(2), scope is not None and scope.lower() == "class")
        return None
