"""
Arithmetic Expression Evaluator

A small recursive-descent parser and tree-walking evaluator for the
formula language:

    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('-' | '+') unary | power
    power   := primary ('^' unary)?
    primary := NUMBER | NAME | '(' expr ')'

Identifiers resolve against an evaluation context (name -> float).
There are no functions, no assignment and no side effects.
"""

import logging
import math
import re
from functools import lru_cache
from typing import List, Mapping, NamedTuple, Optional, Union

from models.exceptions import EvaluationError, ExpressionSyntaxError

logger = logging.getLogger(__name__)

NON_FINITE_MESSAGE = "result is not a finite number"

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<number>\d+\.?\d*|\.\d+)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>[-+*/^()]))"
)


class Number(NamedTuple):
    value: float


class Name(NamedTuple):
    id: str


class UnaryOp(NamedTuple):
    op: str
    operand: 'Node'


class BinOp(NamedTuple):
    op: str
    left: 'Node'
    right: 'Node'


Node = Union[Number, Name, UnaryOp, BinOp]


class Token(NamedTuple):
    kind: str  # 'number', 'name', 'op' or 'end'
    text: str
    pos: int


class EvaluationResult(NamedTuple):
    """Outcome of one evaluation. Exactly one of value/error is set."""
    value: Optional[float]
    error: Optional[str]

    @property
    def ok(self) -> bool:
        return self.error is None


def tokenize(expression: str) -> List[Token]:
    tokens = []
    pos = 0
    end = len(expression.rstrip())
    while pos < end:
        match = _TOKEN_RE.match(expression, pos)
        if not match:
            rest = expression[pos:].lstrip()
            bad_pos = len(expression) - len(rest)
            raise ExpressionSyntaxError(
                f"Unexpected character '{rest[:1]}' at position {bad_pos + 1}"
            )
        kind = match.lastgroup
        tokens.append(Token(kind, match.group(kind), match.start(kind)))
        pos = match.end()
    tokens.append(Token('end', '', end))
    return tokens


class _Parser:
    """Builds an expression tree from a token list."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _accept(self, *ops: str) -> Optional[str]:
        token = self.current
        if token.kind == 'op' and token.text in ops:
            self.index += 1
            return token.text
        return None

    def _fail(self, expected: str):
        token = self.current
        found = "end of expression" if token.kind == 'end' else f"'{token.text}'"
        raise ExpressionSyntaxError(
            f"Expected {expected} but found {found} at position {token.pos + 1}"
        )

    def parse(self) -> Node:
        if self.current.kind == 'end':
            raise ExpressionSyntaxError("Expression is empty")
        node = self.expr()
        if self.current.kind != 'end':
            self._fail("an operator")
        return node

    def expr(self) -> Node:
        node = self.term()
        while True:
            op = self._accept('+', '-')
            if op is None:
                return node
            node = BinOp(op, node, self.term())

    def term(self) -> Node:
        node = self.unary()
        while True:
            op = self._accept('*', '/')
            if op is None:
                return node
            node = BinOp(op, node, self.unary())

    def unary(self) -> Node:
        op = self._accept('-', '+')
        if op is not None:
            return UnaryOp(op, self.unary())
        return self.power()

    def power(self) -> Node:
        base = self.primary()
        if self._accept('^'):
            # Right-associative: the exponent may itself contain '^'
            return BinOp('^', base, self.unary())
        return base

    def primary(self) -> Node:
        token = self.current
        if token.kind == 'number':
            self._advance()
            return Number(float(token.text))
        if token.kind == 'name':
            self._advance()
            return Name(token.text)
        if self._accept('('):
            node = self.expr()
            if not self._accept(')'):
                self._fail("')'")
            return node
        self._fail("a number, name or '('")


@lru_cache(maxsize=512)
def parse(expression: str) -> Node:
    """Parse expression text into an immutable tree.

    Raises:
        ExpressionSyntaxError: if the text does not match the grammar.
    """
    return _Parser(tokenize(expression)).parse()


def check_syntax(expression: str) -> Optional[str]:
    """Return the parse error message for expression, or None if it parses."""
    try:
        parse(expression)
    except ExpressionSyntaxError as exc:
        return str(exc)
    return None


def _divide(left: float, right: float) -> float:
    if right == 0:
        raise EvaluationError(NON_FINITE_MESSAGE)
    return left / right


def _power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except (OverflowError, ValueError):
        # Overflow, 0 ** negative, negative ** fractional
        raise EvaluationError(NON_FINITE_MESSAGE)


_BINARY_OPS = {
    '+': lambda a, b: a + b,
    '-': lambda a, b: a - b,
    '*': lambda a, b: a * b,
    '/': _divide,
    '^': _power,
}


def _eval_node(node: Node, context: Mapping[str, float]) -> float:
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Name):
        if node.id not in context:
            raise EvaluationError(f"Undefined symbol {node.id}")
        return float(context[node.id])
    if isinstance(node, UnaryOp):
        operand = _eval_node(node.operand, context)
        return -operand if node.op == '-' else operand
    if isinstance(node, BinOp):
        left = _eval_node(node.left, context)
        right = _eval_node(node.right, context)
        return _BINARY_OPS[node.op](left, right)
    raise EvaluationError(f"Unsupported node {type(node).__name__}")


def evaluate(expression: str, context: Mapping[str, float]) -> EvaluationResult:
    """
    Evaluate expression against context.

    Never raises: parse errors, unknown identifiers, non-finite results and
    any internal fault are returned as EvaluationResult(None, message).
    """
    try:
        value = _eval_node(parse(expression), context)
        if not math.isfinite(value):
            raise EvaluationError(NON_FINITE_MESSAGE)
        return EvaluationResult(value, None)
    except (ExpressionSyntaxError, EvaluationError) as exc:
        return EvaluationResult(None, str(exc))
    except Exception as exc:  # RecursionError on deep nesting, non-numeric context values
        logger.debug("Evaluator fault for %r: %s", expression, exc)
        return EvaluationResult(None, f"Evaluation failed: {exc}")
