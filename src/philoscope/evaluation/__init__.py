"""
Evaluation module for philoscope.

Provides:
- Catalog audits (rule syntax, field references, signal coverage)
- Labeled validation (accuracy, per-philosophy recall, confusion matrix)
"""

from .catalog_audits import (
    AuditResult,
    run_catalog_audits,
    rule_syntax_gate,
    field_reference_gate,
    signal_points_gate,
    membership_literal_gate,
)

from .validation import (
    LabeledCase,
    Mismatch,
    ValidationReport,
    load_labeled_cases,
    parse_labeled_cases,
    validate_cases,
    report_markdown,
)

__all__ = [
    # Catalog audits
    "AuditResult",
    "run_catalog_audits",
    "rule_syntax_gate",
    "field_reference_gate",
    "signal_points_gate",
    "membership_literal_gate",
    # Labeled validation
    "LabeledCase",
    "Mismatch",
    "ValidationReport",
    "load_labeled_cases",
    "parse_labeled_cases",
    "validate_cases",
    "report_markdown",
]
