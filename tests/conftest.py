"""Pytest configuration and shared fixtures.

Run pytest from this project's root. pythonpath in pyproject.toml puts src/
on the import path; importlib import mode lets test modules in different
directories share a basename.
"""

import textwrap
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from rspec_style_linter.domain.entities import SpecTree, Violation
from rspec_style_linter.domain.rules import Checkable
from rspec_style_linter.domain.services.rule_engine import RuleEngine
from rspec_style_linter.domain.services.rule_registry import RuleRegistry
from rspec_style_linter.domain.services.spec_parser import SpecParser


@pytest.fixture
def parse() -> Callable[..., SpecTree]:
    """Parse dedented Ruby source into a SpecTree."""

    def _parse(source: str, file: str = "spec/example_spec.rb") -> SpecTree:
        return SpecParser().parse(textwrap.dedent(source), file)

    return _parse


@pytest.fixture
def lint(parse: Callable[..., SpecTree]) -> Callable[..., list[Violation]]:
    """Run only the given rules over dedented Ruby source."""

    def _lint(source: str, *rules: Checkable, file: str = "spec/example_spec.rb") -> list[Violation]:
        registry = RuleRegistry()
        for rule in rules:
            registry.register(rule)
        return RuleEngine(registry).evaluate(parse(source, file))

    return _lint


@pytest.fixture
def telemetry() -> MagicMock:
    return MagicMock()
