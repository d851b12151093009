"""
Shared constants across philoscope modules.

This module is the single source of truth for:
- Rule language keywords
- Feature vector enum vocabularies
- Output formatting strings
"""

# =============================================================================
# RULE LANGUAGE KEYWORDS
# =============================================================================
# Matched case-insensitively by the tokenizer. Field names must avoid them.

KW_AND = "and"
KW_OR = "or"
KW_BETWEEN = "between"
KW_IN = "in"
KW_ABS = "abs"
KW_TRUE = "true"
KW_FALSE = "false"

RESERVED_WORDS = frozenset({
    KW_AND,
    KW_OR,
    KW_BETWEEN,
    KW_IN,
    KW_ABS,
    KW_TRUE,
    KW_FALSE,
})

# Complexity limits enforced by the parser. Longer or deeper rules fail to compile.
MAX_RULE_TOKENS = 256
MAX_NESTING_DEPTH = 32


# =============================================================================
# FEATURE ENUM VOCABULARIES
# =============================================================================

REBALANCE_FREQUENCIES = ("none", "ad_hoc", "monthly", "quarterly", "annual", "threshold")
SENSITIVITY_LEVELS = ("low", "medium", "high")
OPTIONS_OVERLAY_TYPES = ("none", "covered_call", "protective_put", "collar", "other")


# =============================================================================
# CATALOG
# =============================================================================

DEFAULT_CATALOG_FILENAME = "investment_philosophies.v1.yml"
CATALOG_SUFFIXES = {".yml": "yaml", ".yaml": "yaml", ".json": "json", ".toml": "toml"}


# =============================================================================
# SCORING OUTPUT
# =============================================================================

MAX_SCORE = 100
EXCLUSION_REASON_TEMPLATE = 'Likely violated exclusion rule: "{rule}"'
SCORE_COLUMN_PREFIX = "score__"
