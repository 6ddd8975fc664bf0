"""Report formatting (text, JSON, JUnit XML) and the exit-code policy."""

import json
import xml.etree.ElementTree as ET
from collections import Counter, defaultdict
from collections.abc import Sequence

from rspec_style_linter.domain.constants import EXIT_CLEAN, EXIT_VIOLATIONS, TOOL_NAME
from rspec_style_linter.domain.entities import OutputStyle, Severity, Violation
from rspec_style_linter.domain.protocols import ViolationFormatterProtocol


class ViolationFormatter(ViolationFormatterProtocol):
    """
    Renders a sorted violation list. Pure string building; the caller
    decides where the text goes (stdout or --output file).
    """

    def format(
        self,
        violations: list[Violation],
        style: OutputStyle,
        files_checked: int,
        files: Sequence[str] | None = None,
    ) -> str:
        if style is OutputStyle.JSON:
            return self.format_json(violations, files_checked)
        if style is OutputStyle.JUNIT:
            return self.format_junit(violations, files_checked, files)
        return self.format_text(violations, files_checked)

    def format_text(self, violations: list[Violation], files_checked: int) -> str:
        """One `path:line:col: SEVERITY [rule-id] message` line per violation plus a summary."""
        lines = [
            f"{v.location}: {v.severity.value.upper()} [{v.rule_id}] {v.message}"
            for v in violations
        ]
        lines.append(self._summary_line(violations, files_checked))
        return "\n".join(lines) + "\n"

    def format_json(self, violations: list[Violation], files_checked: int) -> str:
        counts = Counter(v.severity for v in violations)
        payload = {
            "summary": {
                "files_checked": files_checked,
                "violations": len(violations),
                "errors": counts[Severity.ERROR],
                "warnings": counts[Severity.WARNING],
            },
            "violations": [v.to_dict() for v in violations],
        }
        return json.dumps(payload, indent=2) + "\n"

    def format_junit(
        self,
        violations: list[Violation],
        files_checked: int,
        files: Sequence[str] | None = None,
    ) -> str:
        """
        JUnit XML: one <testsuite> per file, each holding one <testcase>
        whose <failure> children are that file's violations. Clean files
        appear as passing test cases when `files` is given.
        """
        by_file: dict[str, list[Violation]] = defaultdict(list)
        for violation in violations:
            by_file[violation.location.file].append(violation)
        names = sorted(set(files or ()) | set(by_file))
        root = ET.Element("testsuites", {
            "name": TOOL_NAME,
            "tests": str(max(files_checked, len(names))),
            "failures": str(len(violations)),
        })
        for name in names:
            found = by_file.get(name, [])
            suite = ET.SubElement(root, "testsuite", {
                "name": name,
                "tests": "1",
                "failures": str(len(found)),
                "errors": "0",
            })
            case = ET.SubElement(suite, "testcase", {"classname": TOOL_NAME, "name": name})
            for violation in found:
                failure = ET.SubElement(case, "failure", {
                    "type": violation.rule_id,
                    "message": violation.message,
                })
                failure.text = (
                    f"{violation.location}: {violation.severity.value.upper()} "
                    f"[{violation.rule_id}] {violation.message}"
                )
        ET.indent(root)
        return ET.tostring(root, encoding="unicode", xml_declaration=True) + "\n"

    @staticmethod
    def _summary_line(violations: list[Violation], files_checked: int) -> str:
        counts = Counter(v.severity for v in violations)
        files_word = "file" if files_checked == 1 else "files"
        if not violations:
            return f"{files_checked} {files_word} checked, no violations found."
        return (
            f"{files_checked} {files_word} checked, {len(violations)} violation(s) found "
            f"({counts[Severity.ERROR]} error(s), {counts[Severity.WARNING]} warning(s))."
        )


class ExitPolicy:
    """Maps a violation list to the process exit code."""

    def __init__(self, fail_on: Severity = Severity.ERROR) -> None:
        self._fail_on = fail_on

    @property
    def fail_on(self) -> Severity:
        return self._fail_on

    def exit_code(self, violations: list[Violation]) -> int:
        """1 if any violation is at or above the fail_on severity, else 0."""
        if any(v.severity.rank >= self._fail_on.rank for v in violations):
            return EXIT_VIOLATIONS
        return EXIT_CLEAN
