"""Closed vocabularies for analyzer output: issue codes, severities, complexities.

These are process-wide, read-only constants. Anything outside them is a
contract violation at the ingestion boundary.
"""

from __future__ import annotations

from enum import Enum


class IssueCategory(str, Enum):
    PERFORMANCE = "performance"
    QUALITY = "quality"
    SECURITY = "security"
    ERROR_HANDLING = "error_handling"
    BEST_PRACTICE = "best_practice"


class IssueCode(str, Enum):
    """Fixed set of defect categories the analyzer may report."""

    # Performance
    NESTED_LOOP = "NESTED_LOOP"
    INEFFICIENT_ALGORITHM = "INEFFICIENT_ALGORITHM"
    MEMORY_LEAK = "MEMORY_LEAK"
    N_PLUS_ONE_QUERY = "N_PLUS_ONE_QUERY"
    BLOCKING_OPERATION = "BLOCKING_OPERATION"

    # Code quality
    UNUSED_VARIABLE = "UNUSED_VARIABLE"
    MAGIC_NUMBER = "MAGIC_NUMBER"
    LONG_FUNCTION = "LONG_FUNCTION"
    DUPLICATE_CODE = "DUPLICATE_CODE"
    DEAD_CODE = "DEAD_CODE"
    COMPLEX_CONDITION = "COMPLEX_CONDITION"
    DEEP_NESTING = "DEEP_NESTING"

    # Security
    HARDCODED_SECRET = "HARDCODED_SECRET"
    SQL_INJECTION = "SQL_INJECTION"
    XSS_VULNERABILITY = "XSS_VULNERABILITY"
    INSECURE_RANDOM = "INSECURE_RANDOM"

    # Error handling
    EMPTY_CATCH = "EMPTY_CATCH"
    MISSING_ERROR_HANDLING = "MISSING_ERROR_HANDLING"
    SWALLOWED_EXCEPTION = "SWALLOWED_EXCEPTION"

    # Best practices
    MISSING_NULL_CHECK = "MISSING_NULL_CHECK"
    MISSING_TYPE_ANNOTATION = "MISSING_TYPE_ANNOTATION"
    INCONSISTENT_NAMING = "INCONSISTENT_NAMING"
    GOD_FUNCTION = "GOD_FUNCTION"
    MISSING_RETURN_TYPE = "MISSING_RETURN_TYPE"

    @property
    def category(self) -> IssueCategory:
        return CATEGORY_MAP[self]


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Complexity(str, Enum):
    """Time complexity of the offending code, stored in wire spelling."""

    O_1 = "O_1"
    O_N = "O_n"
    O_N2 = "O_n2"

    @property
    def label(self) -> str:
        return COMPLEXITY_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> "Complexity":
        """Accept either the wire spelling (``O_n2``) or the display one (``O(n²)``)."""
        key = value.strip()
        if key in _COMPLEXITY_ALIASES:
            return _COMPLEXITY_ALIASES[key]
        return cls(key)


CATEGORY_MAP: dict[IssueCode, IssueCategory] = {
    IssueCode.NESTED_LOOP: IssueCategory.PERFORMANCE,
    IssueCode.INEFFICIENT_ALGORITHM: IssueCategory.PERFORMANCE,
    IssueCode.MEMORY_LEAK: IssueCategory.PERFORMANCE,
    IssueCode.N_PLUS_ONE_QUERY: IssueCategory.PERFORMANCE,
    IssueCode.BLOCKING_OPERATION: IssueCategory.PERFORMANCE,
    IssueCode.UNUSED_VARIABLE: IssueCategory.QUALITY,
    IssueCode.MAGIC_NUMBER: IssueCategory.QUALITY,
    IssueCode.LONG_FUNCTION: IssueCategory.QUALITY,
    IssueCode.DUPLICATE_CODE: IssueCategory.QUALITY,
    IssueCode.DEAD_CODE: IssueCategory.QUALITY,
    IssueCode.COMPLEX_CONDITION: IssueCategory.QUALITY,
    IssueCode.DEEP_NESTING: IssueCategory.QUALITY,
    IssueCode.HARDCODED_SECRET: IssueCategory.SECURITY,
    IssueCode.SQL_INJECTION: IssueCategory.SECURITY,
    IssueCode.XSS_VULNERABILITY: IssueCategory.SECURITY,
    IssueCode.INSECURE_RANDOM: IssueCategory.SECURITY,
    IssueCode.EMPTY_CATCH: IssueCategory.ERROR_HANDLING,
    IssueCode.MISSING_ERROR_HANDLING: IssueCategory.ERROR_HANDLING,
    IssueCode.SWALLOWED_EXCEPTION: IssueCategory.ERROR_HANDLING,
    IssueCode.MISSING_NULL_CHECK: IssueCategory.BEST_PRACTICE,
    IssueCode.MISSING_TYPE_ANNOTATION: IssueCategory.BEST_PRACTICE,
    IssueCode.INCONSISTENT_NAMING: IssueCategory.BEST_PRACTICE,
    IssueCode.GOD_FUNCTION: IssueCategory.BEST_PRACTICE,
    IssueCode.MISSING_RETURN_TYPE: IssueCategory.BEST_PRACTICE,
}

# One-line descriptions, also fed to the analyzer prompt.
ISSUE_DESCRIPTIONS: dict[IssueCode, str] = {
    IssueCode.NESTED_LOOP: "Nested loops that may cause O(n²) complexity",
    IssueCode.INEFFICIENT_ALGORITHM: "Suboptimal algorithm choice",
    IssueCode.MEMORY_LEAK: "Potential memory leak",
    IssueCode.N_PLUS_ONE_QUERY: "Database N+1 query problem",
    IssueCode.BLOCKING_OPERATION: "Blocking operation in async context",
    IssueCode.UNUSED_VARIABLE: "Declared but never used variable",
    IssueCode.MAGIC_NUMBER: "Hardcoded number without explanation",
    IssueCode.LONG_FUNCTION: "Function exceeds reasonable length (>50 lines)",
    IssueCode.DUPLICATE_CODE: "Repeated code blocks",
    IssueCode.DEAD_CODE: "Unreachable or never executed code",
    IssueCode.COMPLEX_CONDITION: "Overly complex conditional logic",
    IssueCode.DEEP_NESTING: "Excessive nesting levels (>4)",
    IssueCode.HARDCODED_SECRET: "Hardcoded API keys, passwords, secrets",
    IssueCode.SQL_INJECTION: "Potential SQL injection vulnerability",
    IssueCode.XSS_VULNERABILITY: "Cross-site scripting risk",
    IssueCode.INSECURE_RANDOM: "Using insecure random generation",
    IssueCode.EMPTY_CATCH: "Empty catch block that swallows errors",
    IssueCode.MISSING_ERROR_HANDLING: "No error handling for risky operations",
    IssueCode.SWALLOWED_EXCEPTION: "Exception caught but not properly handled",
    IssueCode.MISSING_NULL_CHECK: "No null/undefined check before use",
    IssueCode.MISSING_TYPE_ANNOTATION: "Missing type annotations",
    IssueCode.INCONSISTENT_NAMING: "Variable/function naming inconsistent",
    IssueCode.GOD_FUNCTION: "Function doing too many things",
    IssueCode.MISSING_RETURN_TYPE: "Function missing return type annotation",
}

COMPLEXITY_LABELS: dict[Complexity, str] = {
    Complexity.O_1: "O(1)",
    Complexity.O_N: "O(n)",
    Complexity.O_N2: "O(n²)",
}

_COMPLEXITY_ALIASES: dict[str, Complexity] = {
    "O(1)": Complexity.O_1,
    "O(n)": Complexity.O_N,
    "O(n²)": Complexity.O_N2,
    "O(n^2)": Complexity.O_N2,
}
