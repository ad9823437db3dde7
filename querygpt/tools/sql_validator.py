"""
Lexical SQL Validator

PURPOSE:
========
Confirm that generated SQL only touches the tables and columns the
pipeline handed to the generator (the PRUNED schemas, never the full
catalog). Any violation triggers the single repair pass.

CHECKS (all accumulated, never short-circuited):
================================================
1. Statement starts with WITH or SELECT        -> "SQL missing SELECT"
2. Every FROM/JOIN target is a pruned table    -> "Table t not allowed"
3. Every qualified table.column reference uses
   an allowed table and one of its pruned
   columns                                     -> "Column t.c not allowed"
                                                  "Table t not allowed for column c"

LIMITS:
=======
This is regex-based, not a SQL parser. It accepts any dialect and never
raises on odd input, at the cost of missing semantic mistakes (a wrong
but allowed join passes). Unqualified column names are not checked.
Double-quoted and backtick identifiers are unquoted before matching.
A comma-listed table that follows a subquery in the same FROM clause
(`FROM (SELECT ...) s, t`) is not seen.

USAGE:
======
    result = SQLValidator().validate(sql, pruned_schemas)
    if not result.valid:
        print(result.errors)
"""

import re
from typing import Dict, List, Sequence, Set, Tuple

from querygpt.models import TableSchema, ValidationResult
from querygpt.utils.sql_text import sanitize_sql

_STATEMENT_START = re.compile(r"\A\s*(?:with|select)\b", re.IGNORECASE)
_FROM_OR_JOIN = re.compile(r"\b(from|join)\b", re.IGNORECASE)
# One FROM item: optional opening parens, a (dotted) name, optional alias
_FROM_ITEM = re.compile(r"\s*\(*\s*([A-Za-z_][\w.]*)(?:\s+(?:as\s+)?([A-Za-z_]\w*))?", re.IGNORECASE)
_LIST_SEPARATOR = re.compile(r"\s*,")
_QUOTED_IDENT = re.compile(r'"([^"]*)"|`([^`]*)`')
_QUALIFIED_REF = re.compile(r"(?<![\w.])([A-Za-z_][\w]*(?:\.[A-Za-z_]\w*)*)\.([A-Za-z_]\w*)\b")
_CTE_NAME = re.compile(r"(?:\bwith\b|,)\s*(?:recursive\s+)?([A-Za-z_]\w*)\s*(?:\([^)]*\)\s*)?as\s*\(", re.IGNORECASE)
_EXTRACT_FROM = re.compile(r"\bextract\s*\(\s*\w+\s+from\b", re.IGNORECASE)
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")

# Words that can follow a table name but are never an alias
_NOT_ALIAS = {
    "where", "join", "inner", "left", "right", "full", "outer", "cross", "natural",
    "on", "using", "group", "order", "having", "limit", "offset", "union", "except",
    "intersect", "window", "fetch", "for", "lateral", "tablesample", "as",
}

# A FROM/JOIN item starting with one of these is not a table name
_SUBQUERY_START = {"select", "with", "values", "lateral"}


def _dedupe(errors: List[str]) -> List[str]:
    seen: Set[str] = set()
    unique = []
    for err in errors:
        if err not in seen:
            seen.add(err)
            unique.append(err)
    return unique


class SQLValidator:
    """Static, regex-based check of SQL against pruned schemas."""

    def validate(self, sql: str, pruned_schemas: Sequence[TableSchema]) -> ValidationResult:
        text = sanitize_sql(sql)
        # String literals can contain anything, including "a.b" or "from x"
        scan = _STRING_LITERAL.sub("''", text)
        scan = _EXTRACT_FROM.sub("extract(", scan)
        scan = _QUOTED_IDENT.sub(lambda m: m.group(1) if m.group(1) is not None else m.group(2), scan)

        errors: List[str] = []
        if not _STATEMENT_START.search(scan):
            errors.append("SQL missing SELECT")

        allowed: Dict[str, Set[str]] = {
            s.table_id.lower(): {c.name.lower() for c in s.columns} for s in pruned_schemas
        }
        cte_names = {name.lower() for name in _CTE_NAME.findall(scan)}

        referenced, aliases = self._table_references(scan)
        for table in referenced:
            if table in cte_names:
                continue
            if table not in allowed:
                errors.append(f"Table {table} not allowed")

        known_tables = set(referenced) | set(allowed)
        for qualifier, column in self._column_references(scan):
            if f"{qualifier}.{column}" in known_tables:
                # A dotted table id such as mobility.trips
                continue
            table = aliases.get(qualifier, qualifier)
            if table in cte_names:
                continue
            if table in allowed:
                if column not in allowed[table]:
                    errors.append(f"Column {table}.{column} not allowed")
            else:
                errors.append(f"Table {table} not allowed for column {column}")

        errors = _dedupe(errors)
        return ValidationResult(valid=not errors, errors=errors)

    def _table_references(self, sql: str) -> Tuple[List[str], Dict[str, str]]:
        """
        Lowercased FROM/JOIN targets (first-seen order) and alias -> table map.

        A FROM clause is read as a comma-separated list; JOIN targets are
        picked up by their own keyword. Subqueries are skipped here, their
        inner FROM clauses are matched on their own.
        """
        tables: List[str] = []
        aliases: Dict[str, str] = {}
        for keyword in _FROM_OR_JOIN.finditer(sql):
            is_from = keyword.group(1).lower() == "from"
            pos = keyword.end()
            while True:
                item = _FROM_ITEM.match(sql, pos)
                if not item:
                    break
                table = item.group(1).lower().strip(".")
                if not table or table in _SUBQUERY_START:
                    break
                if table not in tables:
                    tables.append(table)
                alias = item.group(2)
                if alias and alias.lower() not in _NOT_ALIAS:
                    aliases[alias.lower()] = table
                if not is_from:
                    break
                separator = _LIST_SEPARATOR.match(sql, item.end())
                if not separator:
                    break
                pos = separator.end()
        return tables, aliases

    def _column_references(self, sql: str) -> List[Tuple[str, str]]:
        """Lowercased (qualifier, column) pairs for every dotted identifier."""
        return [(q.lower(), c.lower()) for q, c in _QUALIFIED_REF.findall(sql)]
