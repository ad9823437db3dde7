"""
Text helpers for SQL coming back from a model.

Models answer in a loose two-section format:

    SQL: <query>
    Explanation: <why>

often wrapped in Markdown fences. These helpers are the only place
that format is interpreted.
"""
import re
from typing import Tuple

MISSING_EXPLANATION = "LLM did not provide separate explanation."

_FENCE_OPEN = re.compile(r"```[ \t]*(?:sql|postgresql|postgres)?[ \t]*\n?", re.IGNORECASE)
_SECTIONS = re.compile(r"SQL:\s*(.+?)\s*Explanation:\s*(.+)", re.IGNORECASE | re.DOTALL)
_EXPLANATION = re.compile(r"(?:--\s*)?Explanation:", re.IGNORECASE)
_SQL_LABEL = re.compile(r"\A\s*SQL:\s*", re.IGNORECASE)


def strip_fences(text: str) -> str:
    """Remove Markdown code fences (```sql ... ```) anywhere in the text."""
    text = _FENCE_OPEN.sub("", text or "")
    return text.replace("```", "").strip()


def extract_sql_and_explanation(raw: str) -> Tuple[str, str]:
    """
    Split a model answer into (sql, explanation).

    Failure mode: when the "SQL:" / "Explanation:" sections are not both
    present, the whole (fence-stripped) response is returned as the SQL
    and the explanation is MISSING_EXPLANATION.
    """
    text = strip_fences(raw)
    match = _SECTIONS.search(text)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return text, MISSING_EXPLANATION


def sanitize_sql(sql: str) -> str:
    """
    Reduce model output to just the statement.

    Drops fences, a leading "SQL:" label and everything from the
    first "Explanation:" marker onwards.
    """
    text = strip_fences(sql)
    text = _SQL_LABEL.sub("", text)
    match = _EXPLANATION.search(text)
    if match:
        text = text[:match.start()]
    return text.strip()
