"""Load linter configuration from --config, pyproject.toml or .rspec-style.yml. Infrastructure I/O only."""

import json
import logging
import tomllib
from pathlib import Path

import yaml

from rspec_style_linter.domain.errors import ConfigError

logger = logging.getLogger(__name__)

TOOL_SECTION = "rspec-style"
DOTFILE_NAMES = (".rspec-style.yml", ".rspec-style.yaml")


class ConfigFileLoader:
    """
    Loads the raw config dict. No top-level functions.

    Returns (config_dict, source) where source names the file the values
    came from, so ConfigurationLoader can cite it in error messages.
    """

    @staticmethod
    def load_explicit(path: str) -> tuple[dict[str, object], str]:
        """Load a YAML or JSON document named by --config. Raises ConfigError."""
        config_file = Path(path)
        try:
            text = config_file.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"{path}: cannot read config file ({exc.strerror or exc})") from exc
        try:
            if config_file.suffix == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ConfigError(f"{path}: malformed config file: {exc}") from exc
        if data is None:
            return ({}, path)
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level of a config file must be a mapping")
        return (data, path)

    @staticmethod
    def load_config_from_fs(start: Path | None = None) -> tuple[dict[str, object], str]:
        """
        Discover configuration from the working directory.

        Walks up from `start` (default: cwd) to the filesystem root looking for
        a pyproject.toml with a [tool.rspec-style] table. A .rspec-style.yml in
        `start` is used when no such table exists.
        """
        origin = (start or Path.cwd()).resolve()
        current_path = origin
        while True:
            config_file = current_path / "pyproject.toml"
            if config_file.exists():
                try:
                    with config_file.open("rb") as f:
                        data = tomllib.load(f)
                except tomllib.TOMLDecodeError as exc:
                    raise ConfigError(f"{config_file}: malformed TOML: {exc}") from exc
                except OSError:
                    logger.debug("Skipping unreadable %s", config_file)
                else:
                    tool_section = data.get("tool", {}) or {}
                    if TOOL_SECTION in tool_section:
                        section = tool_section[TOOL_SECTION]
                        if not isinstance(section, dict):
                            raise ConfigError(f"{config_file}: [tool.{TOOL_SECTION}] must be a table")
                        logger.debug("Loaded configuration from %s", config_file)
                        return (section, str(config_file))
            if current_path.parent == current_path:
                break
            current_path = current_path.parent
        for name in DOTFILE_NAMES:
            dotfile = origin / name
            if dotfile.exists():
                logger.debug("Loaded configuration from %s", dotfile)
                return ConfigFileLoader.load_explicit(str(dotfile))
        return ({}, "<defaults>")
