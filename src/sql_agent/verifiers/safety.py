"""
Safety Verifier
===============

Decides, without trusting the generator, whether a candidate query is safe
to run. Every rule is evaluated so the generator receives the complete list
of problems on retry.
"""

import re

from sql_agent.models import SafetyVerdict

DESTRUCTIVE_KEYWORDS = (
    "DROP",
    "DELETE",
    "UPDATE",
    "INSERT",
    "TRUNCATE",
    "ALTER",
    "CREATE",
    "GRANT",
    "REVOKE",
    "EXEC",
    "EXECUTE",
)

_KEYWORD_ALTERNATION = "|".join(DESTRUCTIVE_KEYWORDS)

# (rule, pattern, issue)
DANGEROUS_PATTERNS = (
    (
        "stacked_statement",
        re.compile(rf";\s*(?:{_KEYWORD_ALTERNATION})\b", re.IGNORECASE),
        "Dangerous pattern detected: statement stacked after semicolon",
    ),
    (
        "line_comment",
        re.compile(r"--"),
        "Dangerous pattern detected: SQL line comment (--)",
    ),
    (
        "block_comment",
        re.compile(r"/\*"),
        "Dangerous pattern detected: SQL block comment (/*)",
    ),
    (
        "extended_procedure",
        re.compile(r"\bxp_", re.IGNORECASE),
        "Dangerous pattern detected: extended stored procedure prefix (xp_)",
    ),
    (
        "system_procedure",
        re.compile(r"\bsp_", re.IGNORECASE),
        "Dangerous pattern detected: system stored procedure prefix (sp_)",
    ),
)

NOT_SELECT_ISSUE = "Query must be a SELECT statement"
MULTIPLE_STATEMENTS_ISSUE = "Multiple statements detected (SQL injection risk)"
MID_QUERY_SEMICOLON_ISSUE = "Semicolon in middle of query (SQL injection risk)"

SELECT_STAR_WARNING = "Using SELECT * - consider specifying columns"
NO_LIMIT_WARNING = "No LIMIT clause - query might return many rows"

_KEYWORD_PATTERNS = tuple(
    (keyword, re.compile(rf"\b{keyword}\b", re.IGNORECASE))
    for keyword in DESTRUCTIVE_KEYWORDS
)
_SELECT_STAR = re.compile(r"\bSELECT\s+\*")
_ROW_LIMIT = re.compile(r"\b(?:LIMIT|TOP)\b|\bFETCH\s+(?:FIRST|NEXT)\b")


def keyword_issue(keyword: str) -> str:
    """Issue text reported for a destructive keyword."""
    return f"Destructive keyword detected: {keyword}"


def has_row_limit(sql: str) -> bool:
    """True when the query already carries a row-limiting clause."""
    return bool(_ROW_LIMIT.search(sql.upper()))


class SafetyVerifier:
    """Rejects anything that is not a single read-only SELECT."""

    @property
    def name(self) -> str:
        return "SafetyVerifier"

    def verify(self, sql: str) -> SafetyVerdict:
        """
        Check a candidate query against every safety rule.

        Args:
            sql: Candidate SQL text, exactly as it would be executed

        Returns:
            SafetyVerdict with blocking issues and advisory warnings
        """
        raw = (sql or "").strip()
        normalized = raw.upper()
        issues: list[str] = []
        warnings: list[str] = []

        if not normalized.startswith("SELECT"):
            issues.append(NOT_SELECT_ISSUE)

        for keyword, pattern in _KEYWORD_PATTERNS:
            if pattern.search(raw):
                issues.append(keyword_issue(keyword))

        for _rule, pattern, issue in DANGEROUS_PATTERNS:
            if pattern.search(raw):
                issues.append(issue)

        semicolons = raw.count(";")
        if semicolons > 1:
            issues.append(MULTIPLE_STATEMENTS_ISSUE)
        elif semicolons == 1 and not raw.endswith(";"):
            issues.append(MID_QUERY_SEMICOLON_ISSUE)

        if _SELECT_STAR.search(normalized):
            warnings.append(SELECT_STAR_WARNING)
        if not has_row_limit(normalized):
            warnings.append(NO_LIMIT_WARNING)

        return SafetyVerdict(safe=not issues, issues=issues, warnings=warnings)


def violated_rules(issues: list[str]) -> list[str]:
    """Map issue texts back to short rule names (metric labels)."""
    rules = []
    for issue in issues:
        if issue == NOT_SELECT_ISSUE:
            rules.append("not_select")
        elif issue.startswith("Destructive keyword detected"):
            rules.append("destructive_keyword")
        elif issue in (MULTIPLE_STATEMENTS_ISSUE, MID_QUERY_SEMICOLON_ISSUE):
            rules.append("semicolon")
        else:
            rules.extend(rule for rule, _pattern, text in DANGEROUS_PATTERNS if text == issue)
    return rules


_DEFAULT_VERIFIER = SafetyVerifier()


def check_query_safety(sql: str) -> SafetyVerdict:
    """Module-level shortcut for ``SafetyVerifier().verify``."""
    return _DEFAULT_VERIFIER.verify(sql)
