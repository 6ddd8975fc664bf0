"""Domain entities: spec tree nodes, source locations, severities and lint results."""

from dataclasses import dataclass
from enum import Enum

from rspec_style_linter.domain.tokens import Token


class NodeKind(Enum):
    """Structural kinds of spec blocks. ROOT is the synthetic owner of top-level nodes."""
    ROOT = "root"
    DESCRIBE = "describe"
    CONTEXT = "context"
    IT = "it"
    LET = "let"
    BEFORE = "before"
    SUBJECT = "subject"
    SHARED_EXAMPLE = "shared_example"


class LabelKind(Enum):
    """Textual classification of a block label. No semantic resolution is done."""
    NONE = "none"
    DESCRIPTION = "description"
    INSTANCE_METHOD = "instance_method"  # "#name"
    CLASS_METHOD = "class_method"  # ".name"
    CONSTANT = "constant"  # User, Admin::User
    SYMBOL = "symbol"  # :name

    @classmethod
    def classify_string(cls, label: str) -> "LabelKind":
        """Classify a string label: '#foo' and '.foo' are method names, anything else is prose.

        A leading '#{' is interpolation, not a method name.
        """
        if label.startswith("#") and len(label) > 1 and not label.startswith("#{"):
            return cls.INSTANCE_METHOD
        if label.startswith(".") and len(label) > 1:
            return cls.CLASS_METHOD
        return cls.DESCRIPTION

    @property
    def is_method(self) -> bool:
        return self in (LabelKind.INSTANCE_METHOD, LabelKind.CLASS_METHOD)


class Severity(Enum):
    """Violation severity. ERROR fails a run under the default exit policy."""
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return 0 if self is Severity.WARNING else 1

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Parse 'warning'/'error' (case-insensitive). Raises ValueError otherwise."""
        return cls(str(value).strip().lower())


class OutputStyle(Enum):
    """Report styles supported by the formatter."""
    TEXT = "text"
    JSON = "json"
    JUNIT = "junit"


@dataclass(frozen=True, order=True)
class SourceLocation:
    """File position of a node or violation. Lines and columns are 1-based."""
    file: str
    line: int
    column: int
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class SpecNode:
    """
    One structural block of a spec file.

    `body` holds the tokens of this block's body that are not owned by a
    child block, so rules can pattern-match on statements without
    re-walking nested examples. `in_loop` is set when the block was written
    inside an iteration construct (`.each do`, `.times do`, `for ... in`).
    """
    kind: NodeKind
    label: str
    location: SourceLocation
    children: tuple["SpecNode", ...] = ()
    keyword: str = ""
    label_kind: LabelKind = LabelKind.NONE
    header: tuple[Token, ...] = ()
    body: tuple[Token, ...] = ()
    in_loop: bool = False

    def iter_children(self, kind: NodeKind) -> list["SpecNode"]:
        """Return direct children of the given kind, in source order."""
        return [child for child in self.children if child.kind is kind]

    def walk(self) -> list["SpecNode"]:
        """Return this node and all descendants in depth-first pre-order."""
        out: list[SpecNode] = [self]
        for child in self.children:
            out.extend(child.walk())
        return out


@dataclass(frozen=True)
class SpecTree:
    """A parsed spec file. `root` is a synthetic ROOT node owning the top-level blocks."""
    file: str
    root: SpecNode
    suppressions: "SuppressionIndex | None" = None

    def nodes(self) -> list[SpecNode]:
        """All real nodes (excluding the synthetic root) in depth-first order."""
        return self.root.walk()[1:]


@dataclass(frozen=True)
class SuppressionIndex:
    """Rule ids disabled by inline comments, per line and per file.

    `by_line` holds (line, rule ids) pairs sorted by line.
    """
    by_line: tuple[tuple[int, frozenset[str]], ...] = ()
    file_wide: frozenset[str] = frozenset()

    @classmethod
    def from_lines(cls, by_line: dict[int, frozenset[str]], file_wide: frozenset[str] = frozenset()) -> "SuppressionIndex":
        return cls(by_line=tuple(sorted(by_line.items())), file_wide=file_wide)

    def is_suppressed(self, rule_id: str, line: int) -> bool:
        if rule_id in self.file_wide or "all" in self.file_wide:
            return True
        for suppressed_line, ids in self.by_line:
            if suppressed_line == line:
                return rule_id in ids or "all" in ids
        return False


@dataclass(frozen=True)
class Violation:
    """A single detected deviation from a registered rule."""
    rule_id: str
    severity: Severity
    message: str
    location: SourceLocation

    @property
    def sort_key(self) -> tuple[str, int, int, str]:
        return (self.location.file, self.location.line, self.location.column, self.rule_id)

    @classmethod
    def at_node(cls, rule_id: str, severity: Severity, message: str, node: SpecNode) -> "Violation":
        """Build a Violation located at a spec node."""
        return cls(rule_id=rule_id, severity=severity, message=message, location=node.location)

    def to_dict(self) -> dict[str, str | int]:
        """Convert to a flat dictionary for the JSON reporter."""
        return {
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "end_line": self.location.end_line,
            "end_column": self.location.end_column,
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class FileReport:
    """Complete outcome for one file. A file contributes all of its violations or none."""
    path: str
    violations: tuple[Violation, ...] = ()
    parse_failed: bool = False


@dataclass(frozen=True)
class LintResult:
    """Aggregated outcome of a lint run across all files."""
    reports: tuple[FileReport, ...] = ()

    @property
    def violations(self) -> list[Violation]:
        """All violations in report order: (file, line, column, rule id)."""
        merged = [v for report in self.reports for v in report.violations]
        return sorted(merged, key=lambda v: v.sort_key)

    @property
    def files_checked(self) -> list[str]:
        return sorted(report.path for report in self.reports)

    @property
    def has_failures(self) -> bool:
        """True if any file could not be parsed or read."""
        return any(report.parse_failed for report in self.reports)

    def has_violations(self) -> bool:
        return any(report.violations for report in self.reports)
