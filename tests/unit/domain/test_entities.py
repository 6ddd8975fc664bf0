"""Tests for domain entities."""

import pytest

from rspec_style_linter.domain.entities import (
    FileReport,
    LabelKind,
    LintResult,
    Severity,
    SourceLocation,
    SuppressionIndex,
    Violation,
)


def violation(file: str, line: int, rule_id: str = "no-should-wording",
              severity: Severity = Severity.ERROR) -> Violation:
    return Violation(rule_id, severity, "msg", SourceLocation(file, line, 3, line, 9))


class TestSeverity:
    def test_parse(self) -> None:
        assert Severity.parse(" Error ") is Severity.ERROR
        assert Severity.parse("warning") is Severity.WARNING
        with pytest.raises(ValueError):
            Severity.parse("info")

    def test_rank(self) -> None:
        assert Severity.ERROR.rank > Severity.WARNING.rank


class TestLabelKind:
    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("#save", LabelKind.INSTANCE_METHOD),
            (".find", LabelKind.CLASS_METHOD),
            ("#", LabelKind.DESCRIPTION),
            ("#{role} user", LabelKind.DESCRIPTION),
            ("when valid", LabelKind.DESCRIPTION),
        ],
    )
    def test_classify_string(self, label: str, expected: LabelKind) -> None:
        assert LabelKind.classify_string(label) is expected


class TestViolation:
    def test_location_string(self) -> None:
        assert str(violation("spec/a_spec.rb", 4).location) == "spec/a_spec.rb:4:3"

    def test_to_dict(self) -> None:
        assert violation("spec/a_spec.rb", 4).to_dict() == {
            "file": "spec/a_spec.rb",
            "line": 4,
            "column": 3,
            "end_line": 4,
            "end_column": 9,
            "rule_id": "no-should-wording",
            "severity": "error",
            "message": "msg",
        }


class TestSuppressionIndex:
    def test_line_and_file_scopes(self) -> None:
        index = SuppressionIndex.from_lines({3: frozenset({"expect-syntax"})}, frozenset({"short-description"}))
        assert index.is_suppressed("expect-syntax", 3)
        assert not index.is_suppressed("expect-syntax", 4)
        assert index.is_suppressed("short-description", 100)

    def test_all(self) -> None:
        assert SuppressionIndex.from_lines({2: frozenset({"all"})}).is_suppressed("anything", 2)
        assert SuppressionIndex(file_wide=frozenset({"all"})).is_suppressed("anything", 1)


class TestLintResult:
    def test_violations_merge_in_report_order(self) -> None:
        result = LintResult(reports=(
            FileReport("spec/b_spec.rb", (violation("spec/b_spec.rb", 1),)),
            FileReport("spec/a_spec.rb", (violation("spec/a_spec.rb", 9), violation("spec/a_spec.rb", 2))),
        ))
        assert [(v.location.file, v.location.line) for v in result.violations] == [
            ("spec/a_spec.rb", 2),
            ("spec/a_spec.rb", 9),
            ("spec/b_spec.rb", 1),
        ]
        assert result.files_checked == ["spec/a_spec.rb", "spec/b_spec.rb"]
        assert result.has_violations()
        assert not result.has_failures

    def test_parse_failure(self) -> None:
        result = LintResult(reports=(FileReport("spec/a_spec.rb", parse_failed=True),))
        assert result.has_failures
        assert not result.has_violations()
