"""
Catalog deterministic audits.

Scoring is fail-soft: a rule that does not parse, or that names a field the
feature vector does not have, silently evaluates to False. These gates make
such problems visible before a catalog ships.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from philoscope.catalog.schema import PhilosophyCatalog
from philoscope.core.features import FeatureVector
from philoscope.core.predicates import Membership, RuleNode, iter_nodes, parse_rule, referenced_fields
from philoscope.errors import RuleSyntaxError

MAX_DETAIL_ITEMS = 5
NUMERIC_ITEM = re.compile(r"^-?\d+(\.\d*)?$|^-?\.\d+$")


@dataclass
class AuditResult:
    gate_id: str
    passed: bool
    total: int
    succeeded: int
    threshold: float
    details: str = ""

    @property
    def success_rate(self) -> float:
        return self.succeeded / self.total if self.total else 1.0


def run_catalog_audits(
    catalog: PhilosophyCatalog,
    known_fields: Optional[Iterable[str]] = None,
) -> List[AuditResult]:
    gates = [
        rule_syntax_gate(catalog),
        field_reference_gate(catalog, known_fields),
        signal_points_gate(catalog),
        membership_literal_gate(catalog),
    ]
    return gates


def _iter_rules(catalog: PhilosophyCatalog) -> Iterator[Tuple[str, str, str]]:
    for philosophy in catalog:
        for kind, rule in philosophy.rules():
            yield philosophy.id, kind, rule


def _iter_parsed(catalog: PhilosophyCatalog) -> Iterator[Tuple[str, str, RuleNode]]:
    for philosophy_id, _kind, rule in _iter_rules(catalog):
        try:
            yield philosophy_id, rule, parse_rule(rule)
        except RuleSyntaxError:
            continue


def _summarize(problems: List[str]) -> str:
    shown = "; ".join(problems[:MAX_DETAIL_ITEMS])
    if len(problems) > MAX_DETAIL_ITEMS:
        shown += f"; ... {len(problems) - MAX_DETAIL_ITEMS} more"
    return shown


def rule_syntax_gate(catalog: PhilosophyCatalog) -> AuditResult:
    """Every exclusion and signal rule must parse."""
    total = 0
    problems: List[str] = []
    for philosophy_id, kind, rule in _iter_rules(catalog):
        total += 1
        try:
            parse_rule(rule)
        except RuleSyntaxError as exc:
            problems.append(f"{philosophy_id} {kind} {rule!r}: {exc}")
    return AuditResult(
        gate_id="catalog_rule_syntax",
        passed=not problems,
        total=total,
        succeeded=total - len(problems),
        threshold=1.0,
        details=_summarize(problems),
    )


def field_reference_gate(
    catalog: PhilosophyCatalog,
    known_fields: Optional[Iterable[str]] = None,
) -> AuditResult:
    """Every field a rule reads must exist on the feature vector."""
    known = set(known_fields) if known_fields is not None else set(FeatureVector.field_names())
    total = 0
    problems: List[str] = []
    for philosophy_id, rule, ast in _iter_parsed(catalog):
        total += 1
        unknown = sorted(referenced_fields(ast) - known)
        if unknown:
            problems.append(f"{philosophy_id} {rule!r}: unknown {unknown}")
    return AuditResult(
        gate_id="catalog_field_references",
        passed=not problems,
        total=total,
        succeeded=total - len(problems),
        threshold=1.0,
        details=_summarize(problems),
    )


def signal_points_gate(catalog: PhilosophyCatalog) -> AuditResult:
    """A philosophy with no signals can never score above 0."""
    empty = [p.id for p in catalog if not p.signals]
    return AuditResult(
        gate_id="catalog_signal_points",
        passed=not empty,
        total=len(catalog),
        succeeded=len(catalog) - len(empty),
        threshold=1.0,
        details=f"no signals: {empty}" if empty else "",
    )


def membership_literal_gate(catalog: PhilosophyCatalog) -> AuditResult:
    """
    Flag "x in [1, 2]" lists.

    List items are always compared as strings, so an all-numeric list never
    matches a numeric field.
    """
    total = 0
    problems: List[str] = []
    for philosophy_id, rule, ast in _iter_parsed(catalog):
        for node in iter_nodes(ast):
            if not isinstance(node, Membership):
                continue
            total += 1
            if node.items and all(NUMERIC_ITEM.match(item) for item in node.items):
                problems.append(f"{philosophy_id} {rule!r}: numeric list items compare as strings")
    return AuditResult(
        gate_id="catalog_membership_literals",
        passed=not problems,
        total=total,
        succeeded=total - len(problems),
        threshold=1.0,
        details=_summarize(problems),
    )
