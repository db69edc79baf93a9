"""Tests for analyzer reply decoding."""

import json

import pytest

from conftest import analyzer_reply, wire_issue
from delta_insight.ai.schema import IssuePayload, decode_analysis, strip_code_fences
from delta_insight.exceptions import AnalyzerError
from delta_insight.issues import Complexity, IssueCode, Severity


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


class TestDecodeAnalysis:
    def test_valid_reply(self):
        text = analyzer_reply(
            "One issue.",
            [
                wire_issue(
                    "SQL_INJECTION",
                    "high",
                    "O_1",
                    functionName="query",
                    startLine=4,
                    endLine=6,
                    beforeSnippet="cur.execute(f'...')",
                    afterSnippet="cur.execute('...', args)",
                )
            ],
        )
        summary, issues = decode_analysis(text)
        assert summary == "One issue."
        assert len(issues) == 1
        issue = issues[0]
        assert issue.issue_code is IssueCode.SQL_INJECTION
        assert issue.severity is Severity.HIGH
        assert issue.complexity is Complexity.O_1
        assert issue.function_name == "query"
        assert (issue.start_line, issue.end_line) == (4, 6)

    def test_fenced_reply(self):
        summary, issues = decode_analysis("```json\n" + analyzer_reply("ok") + "\n```")
        assert summary == "ok"
        assert issues == []

    def test_emission_order_kept(self):
        text = analyzer_reply(
            issues=[
                wire_issue("MAGIC_NUMBER", "low"),
                wire_issue("DEAD_CODE", "low"),
                wire_issue("MAGIC_NUMBER", "high"),
            ]
        )
        _, issues = decode_analysis(text)
        assert [i.issue_code.value for i in issues] == ["MAGIC_NUMBER", "DEAD_CODE", "MAGIC_NUMBER"]

    @pytest.mark.parametrize("spelling,expected", [
        ("O(n)", Complexity.O_N),
        ("O(n^2)", Complexity.O_N2),
        ("O_n2", Complexity.O_N2),
    ])
    def test_complexity_spellings(self, spelling, expected):
        _, issues = decode_analysis(analyzer_reply(issues=[wire_issue("NESTED_LOOP", "low", spelling)]))
        assert issues[0].complexity is expected

    def test_severity_case_insensitive(self):
        _, issues = decode_analysis(analyzer_reply(issues=[wire_issue("DEAD_CODE", "Medium")]))
        assert issues[0].severity is Severity.MEDIUM

    def test_unknown_keys_ignored(self):
        data = {"summary": "s", "issues": [wire_issue("DEAD_CODE", "low", note="x")], "extra": 1}
        _, issues = decode_analysis(json.dumps(data))
        assert issues[0].issue_code is IssueCode.DEAD_CODE

    def test_missing_issues_means_none(self):
        assert decode_analysis('{"summary": "clean"}') == ("clean", [])

    def test_not_json(self):
        with pytest.raises(AnalyzerError) as exc_info:
            decode_analysis("I could not analyze this.")
        assert "not valid JSON" in exc_info.value.reason

    @pytest.mark.parametrize("issue", [
        wire_issue("NOT_A_CODE", "low"),
        wire_issue("DEAD_CODE", "critical"),
        wire_issue("DEAD_CODE", "low", "O(log n)"),
        wire_issue("DEAD_CODE", "low", startLine=0),
        wire_issue("DEAD_CODE", "low", startLine=9, endLine=3),
        {"severity": "low", "complexity": "O_1"},
    ])
    def test_invalid_issue_rejects_whole_reply(self, issue):
        text = analyzer_reply(issues=[wire_issue("MAGIC_NUMBER", "low"), issue])
        with pytest.raises(AnalyzerError):
            decode_analysis(text)

    def test_missing_summary(self):
        with pytest.raises(AnalyzerError):
            decode_analysis('{"issues": []}')


class TestIssuePayload:
    def test_accepts_field_names(self):
        payload = IssuePayload(issue_code="DEAD_CODE", severity="low", complexity="O_1")
        assert payload.to_issue().issue_code is IssueCode.DEAD_CODE
