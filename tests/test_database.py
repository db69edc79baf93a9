"""Tests for the persistence layer: schema, writer, reader, transactions."""

import sqlite3

import pytest

from delta_insight.comparison.engine import diff_issue_sets
from delta_insight.comparison.models import ChangeType
from delta_insight.exceptions import InvalidIssueError, PersistenceError
from delta_insight.issues import Complexity, Issue, IssueCode, Severity
from delta_insight.persistence import reader, writer
from delta_insight.persistence.database import ReviewDB, retry_locked, transaction
from delta_insight.persistence.models import AnalysisStatus


def _issue(code, severity, complexity=Complexity.O_1, **kw):
    return Issue(issue_code=code, severity=severity, complexity=complexity, **kw)


def _analyzed_version(conn, project_id, issues, label=None):
    return writer.save_analyzed_version(conn, project_id, label, "summary", issues)


class TestSchema:
    def test_creates_tables(self, db):
        tables = db.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        ).fetchall()
        names = {r["name"] for r in tables}
        for expected in (
            "projects",
            "code_versions",
            "analyses",
            "issues",
            "comparisons",
            "comparison_results",
            "explanations",
            "schema_version",
        ):
            assert expected in names

    def test_schema_version_is_1(self, db):
        row = db.conn.execute("SELECT version FROM schema_version").fetchone()
        assert row["version"] == 1

    def test_no_source_column_anywhere(self, db):
        for table in ("code_versions", "analyses", "issues"):
            columns = {r["name"] for r in db.conn.execute(f"PRAGMA table_info({table})")}
            assert "source_code" not in columns

    def test_reopen_is_idempotent(self, config):
        with ReviewDB(config.database_path) as first:
            writer.save_project(first.conn, "alice", "p")
        with ReviewDB(config.database_path) as second:
            assert len(reader.list_projects(second.conn, "alice")) == 1
            rows = second.conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()
            assert rows[0] == 1

    def test_reopen_reads_while_another_writer_holds_the_lock(self, config, monkeypatch):
        monkeypatch.setattr("delta_insight.persistence.database._BUSY_TIMEOUT", 0.1)
        with ReviewDB(config.database_path) as first:
            writer.save_project(first.conn, "alice", "p")

        holder = sqlite3.connect(config.database_path, isolation_level=None)
        try:
            holder.execute("BEGIN IMMEDIATE")
            with ReviewDB(config.database_path) as second:
                assert [p.name for p in reader.list_projects(second.conn, "alice")] == ["p"]
        finally:
            holder.execute("ROLLBACK")
            holder.close()

    def test_conn_requires_connect(self, tmp_path):
        db = ReviewDB(str(tmp_path / "x.db"))
        with pytest.raises(RuntimeError):
            db.conn

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "review.db"
        with ReviewDB(str(path)):
            pass
        assert path.exists()


class TestTransaction:
    def test_rolls_back_on_error(self, db):
        with pytest.raises(ValueError):
            with transaction(db.conn):
                writer.save_project(db.conn, "alice", "doomed")
                raise ValueError("boom")
        assert reader.list_projects(db.conn, "alice") == []
        assert not db.conn.in_transaction

    def test_commits_on_success(self, db):
        with transaction(db.conn):
            writer.save_project(db.conn, "alice", "kept")
        assert len(reader.list_projects(db.conn, "alice")) == 1


class TestAnalyses:
    def test_issue_order_preserved(self, db):
        project = writer.save_project(db.conn, "alice", "p")
        issues = [
            _issue(IssueCode.MAGIC_NUMBER, Severity.MEDIUM, function_name="first"),
            _issue(IssueCode.DEAD_CODE, Severity.LOW),
            _issue(IssueCode.MAGIC_NUMBER, Severity.MEDIUM, function_name="second"),
        ]
        version = _analyzed_version(db.conn, project.id, issues)

        loaded = reader.load_analysis(db.conn, version.analysis.id)
        assert [i.function_name for i in loaded.issues] == ["first", None, "second"]
        assert loaded.issues == issues

    def test_all_issue_fields_round_trip(self, db):
        project = writer.save_project(db.conn, "alice", "p")
        issue = _issue(
            IssueCode.NESTED_LOOP,
            Severity.HIGH,
            Complexity.O_N2,
            function_name="scan",
            start_line=3,
            end_line=9,
            before_snippet="for a in x:\n  for b in x:",
            after_snippet="seen = set(x)",
        )
        version = _analyzed_version(db.conn, project.id, [issue])
        assert reader.load_analysis_for_version(db.conn, version.id).issues == [issue]

    def test_failed_analysis_stored(self, db):
        project = writer.save_project(db.conn, "alice", "p")
        version = writer.save_analyzed_version(
            db.conn,
            project.id,
            None,
            "Analysis failed",
            [],
            status=AnalysisStatus.FAILED,
            failure_reason="timeout",
        )
        loaded = reader.load_analysis(db.conn, version.analysis.id)
        assert loaded.failed
        assert loaded.failure_reason == "timeout"
        assert loaded.issues == []

    def test_one_analysis_per_version(self, db):
        project = writer.save_project(db.conn, "alice", "p")
        version = _analyzed_version(db.conn, project.id, [])
        with pytest.raises(sqlite3.IntegrityError):
            writer.save_analysis(db.conn, version.id, "again", [])
        # The failed transaction left nothing behind.
        assert db.conn.execute("SELECT COUNT(*) FROM analyses").fetchone()[0] == 1

    def test_replace_deletes_old_analysis_and_comparisons(self, db):
        project = writer.save_project(db.conn, "alice", "p")
        v1 = _analyzed_version(db.conn, project.id, [])
        v2 = _analyzed_version(db.conn, project.id, [])
        writer.save_comparison(db.conn, project.id, v1.analysis.id, v2.analysis.id, [])

        replacement = writer.save_analysis(
            db.conn, v1.id, "new", [], replaces=v1.analysis.id
        )
        assert reader.load_analysis(db.conn, v1.analysis.id) is None
        assert reader.load_analysis_for_version(db.conn, v1.id).id == replacement.id
        assert reader.list_comparisons(db.conn, project.id) == []

    def test_corrupt_stored_value_fails_loudly(self, db):
        project = writer.save_project(db.conn, "alice", "p")
        version = _analyzed_version(db.conn, project.id, [_issue(IssueCode.DEAD_CODE, Severity.LOW)])
        db.conn.execute("UPDATE issues SET issue_code = 'MYSTERY'")
        with pytest.raises(InvalidIssueError):
            reader.load_analysis(db.conn, version.analysis.id)

    def test_check_constraint_rejects_bad_severity(self, db):
        project = writer.save_project(db.conn, "alice", "p")
        version = _analyzed_version(db.conn, project.id, [])
        with pytest.raises(sqlite3.IntegrityError):
            db.conn.execute(
                "INSERT INTO issues (analysis_id, position, issue_code, severity, complexity) "
                "VALUES (?, 0, 'DEAD_CODE', 'critical', 'O_1')",
                (version.analysis.id,),
            )


class TestComparisons:
    def _pair(self, db):
        project = writer.save_project(db.conn, "alice", "p")
        v1 = _analyzed_version(db.conn, project.id, [_issue(IssueCode.HARDCODED_SECRET, Severity.HIGH)])
        v2 = _analyzed_version(db.conn, project.id, [])
        return project, v1.analysis, v2.analysis

    def test_save_and_load(self, db):
        project, a1, a2 = self._pair(db)
        results = diff_issue_sets(a1.issues, a2.issues)
        saved = writer.save_comparison(db.conn, project.id, a1.id, a2.id, results)

        loaded = reader.load_comparison(db.conn, saved.id)
        assert loaded.results == results
        assert loaded.results[0].change_type is ChangeType.IMPROVED
        assert loaded.results[0].after_severity is None
        assert loaded.explanation is None

    def test_pair_is_unique(self, db):
        project, a1, a2 = self._pair(db)
        writer.save_comparison(db.conn, project.id, a1.id, a2.id, [])
        with pytest.raises(sqlite3.IntegrityError):
            writer.save_comparison(db.conn, project.id, a1.id, a2.id, [])
        assert db.conn.execute("SELECT COUNT(*) FROM comparisons").fetchone()[0] == 1

    def test_reverse_pair_is_distinct(self, db):
        project, a1, a2 = self._pair(db)
        writer.save_comparison(db.conn, project.id, a1.id, a2.id, [])
        writer.save_comparison(db.conn, project.id, a2.id, a1.id, [])
        assert reader.find_comparison_by_pair(db.conn, a1.id, a2.id).pair == (a1.id, a2.id)
        assert reader.find_comparison_by_pair(db.conn, a2.id, a1.id).pair == (a2.id, a1.id)

    def test_failed_insert_leaves_no_result_rows(self, db):
        project, a1, a2 = self._pair(db)
        writer.save_comparison(db.conn, project.id, a1.id, a2.id, [])
        results = diff_issue_sets(a1.issues, a2.issues)
        with pytest.raises(sqlite3.IntegrityError):
            writer.save_comparison(db.conn, project.id, a1.id, a2.id, results)
        assert db.conn.execute("SELECT COUNT(*) FROM comparison_results").fetchone()[0] == 0

    def test_explanation_at_most_once(self, db):
        project, a1, a2 = self._pair(db)
        comparison = writer.save_comparison(db.conn, project.id, a1.id, a2.id, [])
        writer.save_explanation(db.conn, comparison.id, "better")
        with pytest.raises(sqlite3.IntegrityError):
            writer.save_explanation(db.conn, comparison.id, "again")
        assert reader.load_comparison(db.conn, comparison.id).explanation.text == "better"

    def test_deleting_project_cascades(self, db):
        project, a1, a2 = self._pair(db)
        writer.save_comparison(db.conn, project.id, a1.id, a2.id, [])
        assert writer.delete_project(db.conn, project.id)
        for table in ("code_versions", "analyses", "issues", "comparisons"):
            assert db.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] == 0


class TestRetryLocked:
    def test_returns_value(self):
        assert retry_locked("op", lambda: 42, retries=3) == 42

    def test_retries_operational_errors(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise sqlite3.OperationalError("database is locked")
            return "ok"

        assert retry_locked("op", flaky, retries=3, delay=0) == "ok"
        assert len(calls) == 3

    def test_gives_up_with_persistence_error(self):
        def locked():
            raise sqlite3.OperationalError("database is locked")

        with pytest.raises(PersistenceError) as exc_info:
            retry_locked("create comparison", locked, retries=2, delay=0)
        assert exc_info.value.operation == "create comparison"

    def test_integrity_error_not_retried(self):
        calls = []

        def conflict():
            calls.append(1)
            raise sqlite3.IntegrityError("UNIQUE constraint failed")

        with pytest.raises(sqlite3.IntegrityError):
            retry_locked("op", conflict, retries=5, delay=0)
        assert len(calls) == 1
