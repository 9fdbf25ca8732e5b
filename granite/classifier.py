"""
Statement Classification

Decides whether SQL text returns rows (routed to the query endpoint) or
mutates data (routed to the execute endpoint).

The check is textual, not a parser. Known limitation: a write statement whose
text contains the word RETURNING anywhere, including inside a string literal
or comment, is classified as a read. Callers that know better can pass the
kind explicitly to SQLClient.execute().
"""

from enum import Enum
from typing import List


class StatementKind(str, Enum):
    READ = "read"
    WRITE = "write"


READ_PREFIXES = ("SELECT", "WITH", "SHOW", "DESCRIBE", "EXPLAIN", "PRAGMA")


def classify(sql: str) -> StatementKind:
    """Classify SQL text as a row-returning read or a mutating write."""
    text = (sql or "").strip().upper()
    if text.startswith(READ_PREFIXES):
        return StatementKind.READ
    # A write with a RETURNING clause still yields rows
    if "RETURNING" in text:
        return StatementKind.READ
    return StatementKind.WRITE


def is_read_query(sql: str) -> bool:
    return classify(sql) == StatementKind.READ


def split_statements(sql: str) -> List[str]:
    """
    Split a script into individual statements on ';'.

    Semicolons inside single-quoted strings ('' escapes), double-quoted
    identifiers, -- line comments and /* */ block comments do not split.
    Returns trimmed, non-empty statements.
    """
    statements: List[str] = []
    current: List[str] = []
    i = 0
    length = len(sql)

    def flush():
        text = "".join(current).strip()
        if text:
            statements.append(text)
        current.clear()

    while i < length:
        char = sql[i]
        pair = sql[i:i + 2]

        if pair == "--":
            end = sql.find("\n", i)
            end = length if end == -1 else end + 1
            current.append(sql[i:end])
            i = end
            continue

        if pair == "/*":
            end = sql.find("*/", i + 2)
            end = length if end == -1 else end + 2
            current.append(sql[i:end])
            i = end
            continue

        if char in ("'", '"'):
            quote = char
            j = i + 1
            while j < length:
                if sql[j] == quote:
                    if sql[j + 1:j + 2] == quote:
                        j += 2
                        continue
                    j += 1
                    break
                j += 1
            current.append(sql[i:j])
            i = j
            continue

        if char == ";":
            flush()
            i += 1
            continue

        current.append(char)
        i += 1

    flush()
    return statements
