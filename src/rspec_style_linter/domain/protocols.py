from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from rspec_style_linter.domain.registry_types import RuleRegistryEntry

if TYPE_CHECKING:
    from rspec_style_linter.domain.entities import OutputStyle, Violation


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def debug(self, message: str) -> None: ...
    def handshake(self) -> None: ...


class FileSystemProtocol(Protocol):
    """Protocol for filesystem operations - abstracts Path usage."""

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        ...

    def exists(self, path: str) -> bool:
        """Return True if path exists (file or directory)."""
        ...

    def discover_spec_files(
        self, path: str, include: list[str], exclude: list[str]
    ) -> list[str]:
        """Spec files under path matching include globs and no exclude fragment."""
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read text content from a file."""
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file."""
        ...


class GuidanceServiceProtocol(Protocol):
    """Protocol for the rule catalog (rule_registry.yaml)."""

    def get_entry(self, rule_id: str) -> RuleRegistryEntry | None: ...
    def get_display_name(self, rule_id: str) -> str: ...
    def get_manual_instructions(self, rule_id: str) -> str: ...
    def get_proactive_guidance(self, rule_id: str) -> str: ...


class ViolationFormatterProtocol(Protocol):
    """Protocol for rendering violations."""

    def format(
        self,
        violations: list["Violation"],
        style: "OutputStyle",
        files_checked: int,
        files: Sequence[str] | None = None,
    ) -> str: ...
