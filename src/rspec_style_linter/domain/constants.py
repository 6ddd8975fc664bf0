"""Shared constants."""

TOOL_NAME = "rspec-style"
RULE_PREFIX = "rspec-style."

# Glob patterns matched against file names during directory discovery.
DEFAULT_INCLUDE_PATTERNS = ("*_spec.rb",)

# Directories never descended into.
SKIPPED_DIRECTORIES = frozenset({".git", "node_modules", "vendor", "tmp", ".bundle"})

EXIT_CLEAN = 0
EXIT_VIOLATIONS = 1
EXIT_INTERNAL_ERROR = 2
