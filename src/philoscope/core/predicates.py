"""
Rule Grammar: Philosophy Detection Expressions.

This module defines the small rule language used by the philosophy catalog.
Rules are compiled from strings into an AST and evaluated against a flat
context (the feature vector as a dict).

Grammar:
    rule       := term ((AND | OR) term)*
    term       := "(" rule ")" tail? | predicate
    predicate  := sum tail?
    tail       := COMPARATOR sum
                | BETWEEN sum AND sum
                | IN "[" item ("," item)* "]"
    sum        := unary (("+" | "-") unary)*
    unary      := "-" unary | NUMBER | STRING | TRUE | FALSE
                | ABS "(" sum ")" | IDENT

    COMPARATOR := == | != | > | >= | < | <=

Examples:
    "pct_equity >= 0.75"
    "pct_equity > 0.5 and pct_bonds < 0.5"
    "pct_equity between 0.50 and 0.95"
    "rebalance_frequency in [monthly, quarterly]"
    "abs(tilt_value) >= 0.35"
    "pct_cash + pct_bonds >= 0.50"

Semantics:
    - Keywords are case-insensitive; identifiers are looked up verbatim.
    - AND/OR chains fold strictly left to right with no precedence:
      "a or b and c" means "(a or b) and c".
    - BETWEEN is inclusive on both ends.
    - IN items are always string literals, so "tier in [1, 2]" compares
      against "1" and "2" and never matches a numeric field.
    - A missing field resolves to None; every comparison involving None
      is False.
    - Rules longer than MAX_RULE_TOKENS tokens or nested deeper than
      MAX_NESTING_DEPTH (parentheses, abs, unary minus) do not compile.
"""

import logging
import operator
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from philoscope.constants import (
    KW_ABS,
    KW_AND,
    KW_BETWEEN,
    KW_FALSE,
    KW_IN,
    KW_OR,
    KW_TRUE,
    MAX_NESTING_DEPTH,
    MAX_RULE_TOKENS,
    RESERVED_WORDS,
)
from philoscope.errors import RuleSyntaxError

logger = logging.getLogger(__name__)


class Comparator(Enum):
    """Comparison operators for predicates."""
    EQ = "=="
    NE = "!="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="


class BoolOperator(Enum):
    """Boolean operators for chaining predicates."""
    AND = "and"
    OR = "or"


_COMPARE_FUNCS: Dict[Comparator, Callable[[Any, Any], bool]] = {
    Comparator.EQ: operator.eq,
    Comparator.NE: operator.ne,
    Comparator.GT: operator.gt,
    Comparator.GE: operator.ge,
    Comparator.LT: operator.lt,
    Comparator.LE: operator.le,
}

_ARITH_FUNCS: Dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
}


# =============================================================================
# AST
# =============================================================================

@dataclass(frozen=True)
class RuleNode:
    """Base class for rule AST nodes."""
    pass


@dataclass(frozen=True)
class Literal(RuleNode):
    value: Any


@dataclass(frozen=True)
class FieldRef(RuleNode):
    name: str


@dataclass(frozen=True)
class Negate(RuleNode):
    operand: RuleNode


@dataclass(frozen=True)
class Arithmetic(RuleNode):
    op: str  # "+" or "-"
    left: RuleNode
    right: RuleNode


@dataclass(frozen=True)
class Abs(RuleNode):
    operand: RuleNode


@dataclass(frozen=True)
class Comparison(RuleNode):
    left: RuleNode
    comparator: Comparator
    right: RuleNode


@dataclass(frozen=True)
class Between(RuleNode):
    operand: RuleNode
    low: RuleNode
    high: RuleNode


@dataclass(frozen=True)
class Membership(RuleNode):
    operand: RuleNode
    items: Tuple[str, ...]


@dataclass(frozen=True)
class Truthy(RuleNode):
    """A bare operand used as a condition, e.g. "uses_leveraged_etfs"."""
    operand: RuleNode


@dataclass(frozen=True)
class BooleanNode(RuleNode):
    operator: BoolOperator
    left: RuleNode
    right: RuleNode


# =============================================================================
# TOKENIZER
# =============================================================================

@dataclass(frozen=True)
class Token:
    kind: str  # number | string | ident | keyword | op
    text: str
    position: int


TOKEN_PATTERN = re.compile(
    r"""
    (?P<number>\d+(?:\.\d*)?|\.\d+)
    | (?P<string>"[^"]*"|'[^']*')
    | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<op>>=|<=|==|!=|>|<|\+|-|\(|\)|\[|\]|,)
    """,
    re.VERBOSE,
)

COMPARATOR_TEXTS = {c.value for c in Comparator}


def tokenize(rule: str) -> List[Token]:
    """
    Split rule text into tokens.

    Raises:
        RuleSyntaxError: On any character outside the grammar.
    """
    tokens: List[Token] = []
    pos = 0
    length = len(rule)
    while pos < length:
        if rule[pos].isspace():
            pos += 1
            continue
        match = TOKEN_PATTERN.match(rule, pos)
        if not match:
            raise RuleSyntaxError(
                f"Unexpected character {rule[pos]!r} at position {pos}",
                rule=rule,
                position=pos,
            )
        kind = match.lastgroup
        text = match.group()
        if kind == "ident" and text.lower() in RESERVED_WORDS:
            kind = "keyword"
            text = text.lower()
        tokens.append(Token(kind=kind, text=text, position=pos))
        pos = match.end()
    return tokens


# =============================================================================
# RULE PARSER
# =============================================================================

class RuleParser:
    """
    Recursive-descent parser from rule text to AST.

    A parser instance is single-use per call to parse(); it keeps the token
    cursor as state.
    """

    def __init__(self) -> None:
        self._rule = ""
        self._tokens: List[Token] = []
        self._index = 0
        self._depth = 0

    def parse(self, rule: str) -> RuleNode:
        """
        Parse a rule expression into an AST.

        Args:
            rule: The rule string to parse.

        Returns:
            The root RuleNode.

        Raises:
            RuleSyntaxError: If the expression is invalid or exceeds the
                token or nesting limits.
        """
        if not isinstance(rule, str):
            raise RuleSyntaxError(f"Rule must be a string, got {type(rule).__name__}")
        self._rule = rule
        self._tokens = tokenize(rule)
        self._index = 0
        self._depth = 0
        if not self._tokens:
            raise RuleSyntaxError("Empty rule expression", rule=rule)
        if len(self._tokens) > MAX_RULE_TOKENS:
            raise RuleSyntaxError(
                f"Rule has {len(self._tokens)} tokens (max {MAX_RULE_TOKENS})",
                rule=rule,
                position=self._tokens[MAX_RULE_TOKENS].position,
            )

        node = self._parse_chain()
        if not self._at_end():
            self._fail(f"Unexpected token {self._peek().text!r}")
        return node

    # -- structure --------------------------------------------------------

    def _parse_chain(self) -> RuleNode:
        """Parse and/or chains, folding left to right."""
        node = self._parse_term()
        while self._peek_keyword(KW_AND, KW_OR):
            op = BoolOperator(self._advance().text)
            right = self._parse_term()
            node = BooleanNode(operator=op, left=node, right=right)
        return node

    def _parse_term(self) -> RuleNode:
        if self._peek_op("("):
            self._descend()
            self._advance()
            inner = self._parse_chain()
            self._expect_op(")")
            self._depth -= 1
            # "(a + b) >= x": a parenthesised value followed by a comparison
            if isinstance(inner, Truthy) and self._starts_tail():
                return self._parse_tail(inner.operand)
            return inner
        return self._parse_tail(self._parse_sum())

    def _starts_tail(self) -> bool:
        token = self._peek()
        if token is None:
            return False
        if token.kind == "op" and token.text in COMPARATOR_TEXTS:
            return True
        return token.kind == "keyword" and token.text in (KW_BETWEEN, KW_IN)

    def _parse_tail(self, left: RuleNode) -> RuleNode:
        token = self._peek()
        if token is not None and token.kind == "op" and token.text in COMPARATOR_TEXTS:
            self._advance()
            return Comparison(left=left, comparator=Comparator(token.text), right=self._parse_sum())
        if self._peek_keyword(KW_BETWEEN):
            self._advance()
            low = self._parse_sum()
            if not self._peek_keyword(KW_AND):
                self._fail("Expected 'and' in between expression")
            self._advance()
            high = self._parse_sum()
            return Between(operand=left, low=low, high=high)
        if self._peek_keyword(KW_IN):
            self._advance()
            return Membership(operand=left, items=self._parse_items())
        return Truthy(operand=left)

    def _parse_items(self) -> Tuple[str, ...]:
        self._expect_op("[")
        items: List[str] = []
        if self._peek_op("]"):
            self._advance()
            return tuple(items)
        while True:
            items.append(self._parse_item())
            if self._peek_op(","):
                self._advance()
                continue
            self._expect_op("]")
            return tuple(items)

    def _parse_item(self) -> str:
        token = self._peek()
        if token is None:
            self._fail("Unterminated list")
        if token.kind == "op" and token.text == "-":
            self._advance()
            number = self._peek()
            if number is None or number.kind != "number":
                self._fail("Expected number after '-' in list")
            self._advance()
            return "-" + number.text
        if token.kind == "string":
            self._advance()
            return token.text[1:-1]
        if token.kind in ("ident", "keyword", "number"):
            self._advance()
            return token.text
        self._fail(f"Unexpected token {token.text!r} in list")

    # -- values -----------------------------------------------------------

    def _parse_sum(self) -> RuleNode:
        node = self._parse_unary()
        while self._peek_op("+", "-"):
            op = self._advance().text
            node = Arithmetic(op=op, left=node, right=self._parse_unary())
        return node

    def _parse_unary(self) -> RuleNode:
        token = self._peek()
        if token is None:
            self._fail("Unexpected end of rule")
        if token.kind == "op" and token.text == "-":
            self._descend()
            self._advance()
            operand = self._parse_unary()
            self._depth -= 1
            return Negate(operand=operand)
        if token.kind == "number":
            self._advance()
            return Literal(value=_parse_number(token.text))
        if token.kind == "string":
            self._advance()
            return Literal(value=token.text[1:-1])
        if token.kind == "keyword" and token.text in (KW_TRUE, KW_FALSE):
            self._advance()
            return Literal(value=token.text == KW_TRUE)
        if token.kind == "keyword" and token.text == KW_ABS:
            self._descend()
            self._advance()
            self._expect_op("(")
            inner = self._parse_sum()
            self._expect_op(")")
            self._depth -= 1
            return Abs(operand=inner)
        if token.kind == "ident":
            self._advance()
            return FieldRef(name=token.text)
        self._fail(f"Unexpected token {token.text!r}")

    # -- cursor helpers -----------------------------------------------------

    def _descend(self) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            self._fail(f"Rule nests deeper than {MAX_NESTING_DEPTH} levels")

    def _at_end(self) -> bool:
        return self._index >= len(self._tokens)

    def _peek(self) -> Optional[Token]:
        if self._at_end():
            return None
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _peek_op(self, *texts: str) -> bool:
        token = self._peek()
        return token is not None and token.kind == "op" and token.text in texts

    def _peek_keyword(self, *words: str) -> bool:
        token = self._peek()
        return token is not None and token.kind == "keyword" and token.text in words

    def _expect_op(self, text: str) -> None:
        if not self._peek_op(text):
            found = self._peek()
            self._fail(f"Expected {text!r}, found {found.text if found else 'end of rule'!r}")
        self._advance()

    def _fail(self, message: str) -> None:
        token = self._peek()
        position = token.position if token is not None else len(self._rule)
        raise RuleSyntaxError(f"{message} at position {position}", rule=self._rule, position=position)


def _parse_number(text: str) -> Any:
    if "." in text:
        return float(text)
    return int(text)


# =============================================================================
# PREDICATE EVALUATOR
# =============================================================================

class PredicateEvaluator:
    """
    Evaluates a rule AST against a context mapping.

    Never raises for type mismatches or missing fields: a value that cannot
    be computed becomes None, and any condition over None is False.
    """

    def evaluate(self, node: RuleNode, context: Mapping[str, Any]) -> bool:
        """
        Evaluate a condition node.

        Args:
            node: Root of the rule AST.
            context: Field name -> value.

        Returns:
            True if the condition holds.
        """
        if isinstance(node, BooleanNode):
            if node.operator is BoolOperator.AND:
                return self.evaluate(node.left, context) and self.evaluate(node.right, context)
            return self.evaluate(node.left, context) or self.evaluate(node.right, context)
        if isinstance(node, Comparison):
            return self._compare(
                self.value(node.left, context),
                node.comparator,
                self.value(node.right, context),
            )
        if isinstance(node, Between):
            operand = self.value(node.operand, context)
            return (
                self._compare(operand, Comparator.GE, self.value(node.low, context))
                and self._compare(operand, Comparator.LE, self.value(node.high, context))
            )
        if isinstance(node, Membership):
            operand = self.value(node.operand, context)
            return isinstance(operand, str) and operand in node.items
        if isinstance(node, Truthy):
            return bool(self.value(node.operand, context))
        # A value node in condition position
        return bool(self.value(node, context))

    def value(self, node: RuleNode, context: Mapping[str, Any]) -> Any:
        """Compute a value node; None when it cannot be computed."""
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, FieldRef):
            return context.get(node.name)
        if isinstance(node, Abs):
            return _apply(abs, self.value(node.operand, context))
        if isinstance(node, Negate):
            return _apply(operator.neg, self.value(node.operand, context))
        if isinstance(node, Arithmetic):
            return _apply(
                _ARITH_FUNCS[node.op],
                self.value(node.left, context),
                self.value(node.right, context),
            )
        if isinstance(node, (BooleanNode, Comparison, Between, Membership, Truthy)):
            return self.evaluate(node, context)
        raise TypeError(f"Unknown rule node: {type(node).__name__}")

    def _compare(self, left: Any, comparator: Comparator, right: Any) -> bool:
        if left is None or right is None:
            return False
        try:
            return bool(_COMPARE_FUNCS[comparator](left, right))
        except TypeError:
            return False


def _apply(func: Callable[..., Any], *args: Any) -> Any:
    if any(arg is None for arg in args):
        return None
    try:
        return func(*args)
    except (TypeError, ArithmeticError):
        return None


# =============================================================================
# AST UTILITIES
# =============================================================================

def referenced_fields(node: RuleNode) -> FrozenSet[str]:
    """Collect every field name a rule reads."""
    if isinstance(node, FieldRef):
        return frozenset({node.name})
    names: set = set()
    for child in _children(node):
        names |= referenced_fields(child)
    return frozenset(names)


def render(node: RuleNode) -> str:
    """
    Render an AST back to fully parenthesised rule text.

    Useful for checking how a rule was grouped:
        >>> render(parse_rule("a > 1 or b > 1 and c > 1"))
        '((a > 1) or (b > 1)) and (c > 1)'
    """
    if isinstance(node, Literal):
        if isinstance(node.value, bool):
            return KW_TRUE if node.value else KW_FALSE
        if isinstance(node.value, str):
            return f'"{node.value}"'
        return repr(node.value)
    if isinstance(node, FieldRef):
        return node.name
    if isinstance(node, Negate):
        return f"-{render(node.operand)}"
    if isinstance(node, Abs):
        return f"abs({render(node.operand)})"
    if isinstance(node, Arithmetic):
        return f"{render(node.left)} {node.op} {render(node.right)}"
    if isinstance(node, Comparison):
        return f"{render(node.left)} {node.comparator.value} {render(node.right)}"
    if isinstance(node, Between):
        return f"{render(node.operand)} between {render(node.low)} and {render(node.high)}"
    if isinstance(node, Membership):
        return f"{render(node.operand)} in [{', '.join(node.items)}]"
    if isinstance(node, Truthy):
        return render(node.operand)
    if isinstance(node, BooleanNode):
        return f"({render(node.left)}) {node.operator.value} ({render(node.right)})"
    raise TypeError(f"Unknown rule node: {type(node).__name__}")


def iter_nodes(node: RuleNode):
    """Depth-first walk over an AST."""
    yield node
    for child in _children(node):
        yield from iter_nodes(child)


def _children(node: RuleNode) -> Tuple[RuleNode, ...]:
    if isinstance(node, (BooleanNode, Comparison, Arithmetic)):
        return (node.left, node.right)
    if isinstance(node, Between):
        return (node.operand, node.low, node.high)
    if isinstance(node, (Membership, Truthy, Abs, Negate)):
        return (node.operand,)
    return ()


# =============================================================================
# RULE COMPILER
# =============================================================================

_DEFAULT_EVALUATOR = PredicateEvaluator()


class CompiledRule:
    """
    A compiled rule, callable with a context mapping.

    A rule that failed to compile is still a CompiledRule: is_valid is
    False, error holds the parse message, and every call returns False.
    """

    def __init__(
        self,
        rule: str,
        ast: Optional[RuleNode],
        error: Optional[str] = None,
        evaluator: Optional[PredicateEvaluator] = None,
    ):
        self.rule = rule
        self.ast = ast
        self.error = error
        self._evaluator = evaluator or _DEFAULT_EVALUATOR
        self.fields: FrozenSet[str] = referenced_fields(ast) if ast is not None else frozenset()

    @property
    def is_valid(self) -> bool:
        return self.ast is not None

    def __call__(self, context: Mapping[str, Any]) -> bool:
        if self.ast is None:
            return False
        try:
            return bool(self._evaluator.evaluate(self.ast, context))
        except Exception:
            logger.warning("Rule evaluation failed, treating as false: %r", self.rule, exc_info=True)
            return False

    def __repr__(self) -> str:
        status = "ok" if self.is_valid else f"invalid: {self.error}"
        return f"CompiledRule({self.rule!r}, {status})"


def parse_rule(rule: str) -> RuleNode:
    """
    Parse rule text strictly.

    Raises:
        RuleSyntaxError: If the expression is invalid.
    """
    return RuleParser().parse(rule)


def compile_rule(rule: str) -> CompiledRule:
    """
    Compile rule text into a callable predicate.

    Compilation failures are logged and produce an always-false rule; this
    function never raises.

    Args:
        rule: The rule string to compile.

    Returns:
        A CompiledRule ready for evaluation.
    """
    try:
        return CompiledRule(rule, parse_rule(rule))
    except RuleSyntaxError as exc:
        logger.warning("Failed to compile rule %r: %s", rule, exc)
        return CompiledRule(rule, None, error=str(exc))
    except RecursionError:
        logger.warning("Failed to compile rule %r: too deeply nested", rule)
        return CompiledRule(rule, None, error="Rule too deeply nested")
