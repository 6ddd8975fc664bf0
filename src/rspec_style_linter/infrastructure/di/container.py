from typing import TYPE_CHECKING, Any, cast

from rspec_style_linter.domain.config import ConfigurationLoader
from rspec_style_linter.domain.constants import TOOL_NAME
from rspec_style_linter.domain.services.rule_registry import RuleRegistry
from rspec_style_linter.domain.services.spec_parser import SpecParser
from rspec_style_linter.infrastructure.config_file_loader import ConfigFileLoader
from rspec_style_linter.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from rspec_style_linter.infrastructure.reporters import ViolationFormatter
from rspec_style_linter.infrastructure.services.guidance_service import GuidanceService
from rspec_style_linter.interface.telemetry import ProjectTelemetry

if TYPE_CHECKING:
    from rspec_style_linter.domain.protocols import (
        FileSystemProtocol,
        GuidanceServiceProtocol,
        TelemetryPort,
    )


class RSpecStyleContainer:
    """
    Dependency Injection Container for the linter.

    Stateless collaborators are singletons. Configuration and the rule
    registry depend on --config, so they are built per command through
    load_config() and build_registry().
    """

    def __init__(self) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register default implementations for protocols."""
        self.register_singleton(
            "TelemetryPort", ProjectTelemetry(TOOL_NAME, "green", "RSpec style check online"))
        self.register_singleton("FileSystemGateway", FileSystemGateway())
        self.register_singleton("GuidanceService", GuidanceService())
        self.register_singleton("SpecParser", SpecParser())
        self.register_singleton("ViolationFormatter", ViolationFormatter())

    def register_singleton(self, key: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[key] = instance

    def get(self, key: str) -> Any:
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_telemetry_port(self) -> "TelemetryPort":
        """Return the telemetry/UI port."""
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_guidance_service(self) -> "GuidanceServiceProtocol":
        return cast("GuidanceServiceProtocol", self.get("GuidanceService"))

    def get_parser(self) -> SpecParser:
        return cast(SpecParser, self.get("SpecParser"))

    def get_formatter(self) -> ViolationFormatter:
        return cast(ViolationFormatter, self.get("ViolationFormatter"))

    @staticmethod
    def load_config(config_path: str | None = None) -> ConfigurationLoader:
        """Build configuration from --config, or discover it from the working directory."""
        if config_path:
            config_dict, source = ConfigFileLoader.load_explicit(config_path)
        else:
            config_dict, source = ConfigFileLoader.load_config_from_fs()
        return ConfigurationLoader(config_dict, source=source)

    @staticmethod
    def build_registry(config: ConfigurationLoader | None = None) -> RuleRegistry:
        return RuleRegistry.with_builtin_rules(config)
