"""Tests for comparison/engine.py: the pure diff of two issue sets."""

from delta_insight.comparison.engine import diff_issue_sets
from delta_insight.comparison.models import ChangeType
from delta_insight.issues import Complexity, Issue, IssueCode, Severity


def _issue(code, severity, complexity=Complexity.O_1):
    return Issue(issue_code=code, severity=severity, complexity=complexity)


def _by_code(results):
    return {r.issue_code: r for r in results}


class TestDiffIssueSets:
    def test_both_empty(self):
        assert diff_issue_sets([], []) == []

    def test_mixed_scenario(self):
        before = [
            _issue(IssueCode.NESTED_LOOP, Severity.HIGH, Complexity.O_N2),
            _issue(IssueCode.MAGIC_NUMBER, Severity.LOW),
            _issue(IssueCode.HARDCODED_SECRET, Severity.HIGH),
        ]
        after = [
            _issue(IssueCode.NESTED_LOOP, Severity.MEDIUM, Complexity.O_N),
            _issue(IssueCode.MAGIC_NUMBER, Severity.LOW),
            _issue(IssueCode.SQL_INJECTION, Severity.HIGH),
        ]
        results = _by_code(diff_issue_sets(before, after))

        assert results[IssueCode.NESTED_LOOP].change_type is ChangeType.IMPROVED
        assert results[IssueCode.MAGIC_NUMBER].change_type is ChangeType.UNCHANGED
        assert results[IssueCode.HARDCODED_SECRET].change_type is ChangeType.IMPROVED
        assert results[IssueCode.SQL_INJECTION].change_type is ChangeType.WORSENED

    def test_union_of_codes_is_complete(self):
        before = [_issue(IssueCode.DEAD_CODE, Severity.LOW), _issue(IssueCode.DEAD_CODE, Severity.HIGH)]
        after = [_issue(IssueCode.XSS_VULNERABILITY, Severity.MEDIUM)]
        results = diff_issue_sets(before, after)
        assert {r.issue_code for r in results} == {IssueCode.DEAD_CODE, IssueCode.XSS_VULNERABILITY}
        assert len(results) == 2

    def test_absent_side_left_empty(self):
        results = _by_code(
            diff_issue_sets([_issue(IssueCode.EMPTY_CATCH, Severity.MEDIUM, Complexity.O_N)], [])
        )
        r = results[IssueCode.EMPTY_CATCH]
        assert r.before_severity is Severity.MEDIUM
        assert r.before_complexity is Complexity.O_N
        assert r.after_severity is None
        assert r.after_complexity is None

    def test_reduction_applied_before_classifying(self):
        before = [
            _issue(IssueCode.LONG_FUNCTION, Severity.LOW),
            _issue(IssueCode.LONG_FUNCTION, Severity.HIGH),
        ]
        after = [_issue(IssueCode.LONG_FUNCTION, Severity.MEDIUM)]
        (result,) = diff_issue_sets(before, after)
        assert result.before_severity is Severity.HIGH
        assert result.change_type is ChangeType.IMPROVED

    def test_directional(self):
        secret = [_issue(IssueCode.HARDCODED_SECRET, Severity.HIGH)]
        (forward,) = diff_issue_sets(secret, [])
        (backward,) = diff_issue_sets([], secret)
        assert forward.change_type is ChangeType.IMPROVED
        assert backward.change_type is ChangeType.WORSENED

    def test_input_order_does_not_change_verdicts(self):
        before = [
            _issue(IssueCode.NESTED_LOOP, Severity.LOW),
            _issue(IssueCode.MEMORY_LEAK, Severity.HIGH),
            _issue(IssueCode.NESTED_LOOP, Severity.HIGH),
        ]
        after = [_issue(IssueCode.NESTED_LOOP, Severity.MEDIUM)]
        assert diff_issue_sets(before, after) == diff_issue_sets(list(reversed(before)), after)

    def test_sorted_by_code(self):
        before = [_issue(IssueCode.XSS_VULNERABILITY, Severity.LOW), _issue(IssueCode.DEAD_CODE, Severity.LOW)]
        codes = [r.issue_code.value for r in diff_issue_sets(before, [])]
        assert codes == sorted(codes)
