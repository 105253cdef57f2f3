# marketplace/admin/sql_deployer.py

"""Applies SQL patch files (policies, functions, schema) to the backend.

The backend exposes a remote procedure that executes arbitrary SQL
text. A file is either forwarded verbatim in one call, or split into
statements that are executed one by one; a failing statement is logged
and recorded, and the remaining statements still run.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from marketplace.services.errors import BackendError

logger = logging.getLogger("marketplace.admin")

# $$ or $tag$ opening a dollar-quoted body
_DOLLAR_TAG = re.compile(r"\$[A-Za-z_]*\$")

# -- line comments and /* block comments */
_COMMENT = re.compile(r"--[^\n]*|/\*.*?\*/", re.DOTALL)


class SqlExecutor(Protocol):
    """Anything that can run SQL text remotely."""

    def execute_sql(self, sql: str, function: str = ...) -> object: ...


@dataclass
class DeployReport:
    """Outcome of applying one SQL file."""

    path: Path
    executed: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def split_statements(sql: str) -> list[str]:
    """Split SQL text on ``;`` outside quotes, comments and dollar bodies.

    Comment text is kept with the statement that follows it, but quotes
    and ``;`` inside ``--`` and ``/* */`` comments are not syntax.
    """
    statements: list[str] = []
    current: list[str] = []
    i = 0
    in_quote = False
    dollar_tag: str | None = None

    while i < len(sql):
        ch = sql[i]
        if dollar_tag is not None:
            if sql.startswith(dollar_tag, i):
                current.append(dollar_tag)
                i += len(dollar_tag)
                dollar_tag = None
                continue
        elif in_quote:
            if ch == "'":
                in_quote = False
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            end = len(sql) if end == -1 else end
            current.append(sql[i:end])
            i = end
            continue
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            end = len(sql) if end == -1 else end + 2
            current.append(sql[i:end])
            i = end
            continue
        elif ch == "'":
            in_quote = True
        elif ch == "$":
            match = _DOLLAR_TAG.match(sql, i)
            if match:
                dollar_tag = match.group(0)
                current.append(dollar_tag)
                i = match.end()
                continue
        elif ch == ";":
            statement = "".join(current).strip()
            if statement:
                statements.append(statement)
            current = []
            i += 1
            continue
        current.append(ch)
        i += 1

    tail = "".join(current).strip()
    if tail and not _is_comment_only(tail):
        statements.append(tail)
    return statements


def _is_comment_only(text: str) -> bool:
    """True when *text* holds nothing but SQL comments and whitespace."""
    stripped = _COMMENT.sub("", text)
    return not stripped.strip()


def _preview(statement: str) -> str:
    return statement[:100] + ("..." if len(statement) > 100 else "")


class SqlDeployer:
    """Forwards SQL files to the backend's execute-SQL procedure."""

    def __init__(self, executor: SqlExecutor) -> None:
        self.executor = executor

    def apply_file(
        self,
        path: Path,
        split: bool = False,
        function: str = "exec_sql",
    ) -> DeployReport:
        """Execute the SQL in *path* and report what happened.

        Raises ``OSError`` when the file cannot be read.
        """
        sql = path.read_text(encoding="utf-8")
        statements = split_statements(sql) if split else [sql]
        statements = [s for s in statements if s.strip()]
        report = DeployReport(path=path)

        logger.info(
            "Applying %s (%d statement(s) via %s)",
            path,
            len(statements),
            function,
        )
        for idx, statement in enumerate(statements, 1):
            logger.debug(
                "Executing statement %d/%d: %s",
                idx,
                len(statements),
                _preview(statement),
            )
            try:
                self.executor.execute_sql(statement, function)
            except BackendError as exc:
                logger.error(
                    "Error executing statement %d of %s: %s",
                    idx,
                    path.name,
                    exc,
                    exc_info=True,
                )
                report.failures.append(
                    f"statement {idx}: {exc}"
                )
                continue
            report.executed += 1

        logger.info(
            "Finished %s: %d executed, %d failed",
            path.name,
            report.executed,
            len(report.failures),
        )
        return report
