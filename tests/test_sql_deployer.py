# tests/test_sql_deployer.py

"""Tests for the SQL file deployer."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from marketplace.admin.sql_deployer import SqlDeployer, split_statements
from marketplace.services.errors import TransportError

FUNCTION_SQL = """
DROP POLICY IF EXISTS "read own" ON notifications;
CREATE POLICY "read own" ON notifications
  FOR SELECT USING (auth.uid() = user_id);
CREATE OR REPLACE FUNCTION get_rating(lid uuid) RETURNS numeric AS $$
BEGIN
  RETURN (SELECT avg(rating) FROM reviews WHERE listing_id = lid);
END;
$$ LANGUAGE plpgsql;
"""


class TestSplitStatements(unittest.TestCase):
    """Statement splitting rules."""

    def test_simple_split(self) -> None:
        """Semicolons separate statements; empties are dropped."""
        self.assertEqual(
            split_statements("SELECT 1;; SELECT 2;\n"),
            ["SELECT 1", "SELECT 2"],
        )

    def test_semicolon_inside_string(self) -> None:
        """Quoted semicolons do not split."""
        self.assertEqual(
            split_statements("SELECT 'a;b'; SELECT 'it''s'"),
            ["SELECT 'a;b'", "SELECT 'it''s'"],
        )

    def test_dollar_quoted_body_kept_whole(self) -> None:
        """Function bodies stay in one statement."""
        statements = split_statements(FUNCTION_SQL)
        self.assertEqual(len(statements), 3)
        self.assertTrue(statements[2].startswith("CREATE OR REPLACE FUNCTION"))
        self.assertIn("END;", statements[2])
        self.assertTrue(statements[2].endswith("LANGUAGE plpgsql"))

    def test_tagged_dollar_quotes(self) -> None:
        """$tag$ bodies behave like $$ bodies."""
        sql = "DO $body$ BEGIN PERFORM 1; END $body$; SELECT 2"
        self.assertEqual(len(split_statements(sql)), 2)

    def test_apostrophe_in_line_comment(self) -> None:
        """Quotes inside -- comments do not open a string."""
        sql = (
            "-- Fix the seller's listing policy\n"
            "DROP POLICY IF EXISTS p ON listings;\n"
            "CREATE POLICY p ON listings FOR SELECT USING (true);\n"
        )
        statements = split_statements(sql)
        self.assertEqual(len(statements), 2)
        self.assertTrue(statements[0].startswith("-- Fix the seller's"))
        self.assertTrue(statements[1].startswith("CREATE POLICY"))

    def test_block_comment_hides_syntax(self) -> None:
        """Semicolons and quotes in /* */ comments are not syntax."""
        sql = (
            "/* don't run twice; idempotent */\n"
            "SELECT 1;\n"
            "SELECT 2; -- trailing note; isn't a statement\n"
        )
        self.assertEqual(
            split_statements(sql),
            ["/* don't run twice; idempotent */\nSELECT 1", "SELECT 2"],
        )


class TestSqlDeployer(unittest.TestCase):
    """SqlDeployer.apply_file behaviour."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "fix_rls.sql"
        self.path.write_text(FUNCTION_SQL, encoding="utf-8")
        self.executor = MagicMock()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_verbatim_by_default(self) -> None:
        """The whole file goes through in a single call."""
        report = SqlDeployer(self.executor).apply_file(self.path)
        self.executor.execute_sql.assert_called_once_with(
            FUNCTION_SQL, "exec_sql"
        )
        self.assertTrue(report.ok)
        self.assertEqual(report.executed, 1)

    def test_split_runs_each_statement(self) -> None:
        """split=True issues one call per statement."""
        report = SqlDeployer(self.executor).apply_file(
            self.path, split=True, function="pg_execute"
        )
        self.assertEqual(self.executor.execute_sql.call_count, 3)
        self.assertEqual(
            self.executor.execute_sql.call_args[0][1], "pg_execute"
        )
        self.assertEqual(report.executed, 3)

    def test_failure_recorded_and_continues(self) -> None:
        """A failing statement does not stop the rest."""
        self.executor.execute_sql.side_effect = [
            None,
            TransportError("permission denied"),
            None,
        ]
        with self.assertLogs("marketplace.admin", level="ERROR"):
            report = SqlDeployer(self.executor).apply_file(
                self.path, split=True
            )
        self.assertEqual(report.executed, 2)
        self.assertEqual(len(report.failures), 1)
        self.assertIn("statement 2", report.failures[0])
        self.assertFalse(report.ok)

    def test_missing_file_raises(self) -> None:
        """Unreadable files raise OSError."""
        with self.assertRaises(OSError):
            SqlDeployer(self.executor).apply_file(
                Path(self._tmp.name) / "nope.sql"
            )


if __name__ == "__main__":
    unittest.main()
