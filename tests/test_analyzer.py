"""Tests for the analyzer and explainer collaborators and their prompts."""

import json

import pytest

from conftest import FakeLLMClient, analyzer_reply, wire_issue
from delta_insight.ai.analyzer import FALLBACK_SUMMARY, CodeAnalyzer
from delta_insight.ai.explainer import ComparisonExplainer
from delta_insight.ai.prompts import build_analyzer_prompt, build_explainer_prompt
from delta_insight.comparison.engine import diff_issue_sets
from delta_insight.exceptions import ExplainerError, LLMRequestError
from delta_insight.issues import Complexity, Issue, IssueCode, Severity


def _issue(code, severity):
    return Issue(issue_code=code, severity=severity, complexity=Complexity.O_1)


class TestCodeAnalyzer:
    def test_success(self):
        llm = FakeLLMClient(analyzer_reply("fine", [wire_issue("DEAD_CODE", "low")]))
        report = CodeAnalyzer(llm).analyze("x = 1")
        assert not report.failed
        assert report.summary == "fine"
        assert [i.issue_code for i in report.issues] == [IssueCode.DEAD_CODE]

    def test_request_shape(self):
        llm = FakeLLMClient(analyzer_reply())
        CodeAnalyzer(llm, model="small-model").analyze("x = 1")
        request = llm.requests[0]
        assert request.model == "small-model"
        assert [m.role for m in request.messages] == ["system", "user"]

    def test_transport_failure_degrades(self):
        llm = FakeLLMClient(LLMRequestError("refused", attempts=3))
        report = CodeAnalyzer(llm).analyze("x = 1")
        assert report.failed
        assert report.summary == FALLBACK_SUMMARY
        assert report.issues == []
        assert report.failure_reason == "refused"

    def test_bad_reply_degrades(self):
        report = CodeAnalyzer(FakeLLMClient("{not json")).analyze("x = 1")
        assert report.failed
        assert "JSON" in report.failure_reason

    def test_timeout_forwarded(self):
        seen = {}

        class Recorder(FakeLLMClient):
            def chat(self, request, timeout=60):
                seen["timeout"] = timeout
                return super().chat(request, timeout)

        CodeAnalyzer(Recorder(analyzer_reply()), timeout=5).analyze("x = 1")
        assert seen["timeout"] == 5


class TestComparisonExplainer:
    def test_returns_reply_verbatim(self):
        text = "## Overall\n\nBetter.\n"
        llm = FakeLLMClient(text)
        results = diff_issue_sets([_issue(IssueCode.DEAD_CODE, Severity.LOW)], [])
        assert ComparisonExplainer(llm).explain(results) == text

    def test_transport_failure_raises(self):
        llm = FakeLLMClient(LLMRequestError("refused"))
        with pytest.raises(ExplainerError) as exc_info:
            ComparisonExplainer(llm).explain([])
        assert exc_info.value.reason == "refused"

    def test_empty_reply_raises(self):
        with pytest.raises(ExplainerError):
            ComparisonExplainer(FakeLLMClient("")).explain([])


class TestPrompts:
    def test_analyzer_prompt_lists_every_code(self):
        prompt = build_analyzer_prompt("print(1)")
        for code in IssueCode:
            assert code.value in prompt
        assert "print(1)" in prompt

    def test_explainer_prompt_counts(self):
        before = [_issue(IssueCode.DEAD_CODE, Severity.LOW), _issue(IssueCode.MAGIC_NUMBER, Severity.LOW)]
        after = [_issue(IssueCode.MAGIC_NUMBER, Severity.LOW), _issue(IssueCode.SQL_INJECTION, Severity.HIGH)]
        prompt = build_explainer_prompt(diff_issue_sets(before, after))
        assert "Improvements: 1" in prompt
        assert "Regressions: 1" in prompt
        assert "Unchanged: 1" in prompt
        assert "SQL_INJECTION" in prompt

    def test_explainer_prompt_results_are_json(self):
        results = diff_issue_sets([_issue(IssueCode.DEAD_CODE, Severity.LOW)], [])
        prompt = build_explainer_prompt(results)
        start = prompt.index("COMPARISON RESULTS:") + len("COMPARISON RESULTS:")
        end = prompt.index("SUMMARY:")
        payload = json.loads(prompt[start:end])
        assert payload[0]["issueCode"] == "DEAD_CODE"
