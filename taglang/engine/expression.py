"""
Condition and arithmetic evaluation.

Values inside conditions are plain text coerced on use:
- arithmetic and comparisons read the leading number of the text
  ("" and non-numeric text are 0)
- boolean operators treat a value as true iff it equals TRUE, any case
"""

from typing import Callable, List, Union
import re

from taglang.errors import TagArithmeticError
from taglang.parser.ast import (
    TagNode,
    NumberNode,
    BoolNode,
    BinaryArithNode,
    ComparisonNode,
    BinaryBoolNode,
    NotNode,
    MathOp,
    ComparisonOp,
    LogicalOp,
)

Value = Union[str, float, int, bool]

_LEADING_NUMBER = re.compile(r'\s*[+-]?(?:\d+(?:\.\d+)?|\.\d+)(?:[eE][+-]?\d+)?')


def to_number(value: Value) -> float:
    """
    Coerce a value to float.

    Text is read up to the first character that cannot continue a number,
    so "12abc" is 12 and "abc" or "" is 0. Literals too large for a float
    become infinity.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_NUMBER.match(value)
    if not match:
        return 0.0
    return float(match.group(0))


def to_bool(value: Value) -> bool:
    """TRUE rule: only the text TRUE (any case) is true."""
    if isinstance(value, bool):
        return value
    return str(value).upper() == 'TRUE'


def format_number(value: Value) -> str:
    """Render a number as text, without a trailing .0 for whole floats."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ExpressionEvaluator:
    """
    Evaluates condition trees.

    Tag calls inside a condition are resolved through ``resolve_tag``,
    which returns the call's text output.

    Usage:
        expressions = ExpressionEvaluator(tag_evaluator.evaluate)
        expressions.to_bool(condition_node)
    """

    def __init__(self, resolve_tag: Callable[[TagNode], Value]):
        self.resolve_tag = resolve_tag

    def evaluate(self, node: TagNode) -> Value:
        return node.accept(self)

    def to_number(self, node: TagNode) -> float:
        return to_number(self.evaluate(node))

    def to_bool(self, node: TagNode) -> bool:
        return to_bool(self.evaluate(node))

    def generic_visit(self, node: TagNode) -> Value:
        return self.resolve_tag(node)

    def visit_NumberNode(self, node: NumberNode) -> float:
        return float(node.value)

    def visit_BoolNode(self, node: BoolNode) -> bool:
        return node.value

    def visit_BinaryArithNode(self, node: BinaryArithNode) -> float:
        # 1 + 2 + 3 nests to the left; fold the chain instead of recursing
        chain = _left_chain(node, BinaryArithNode)
        result = self.to_number(chain[-1].left)
        for link in reversed(chain):
            result = self._arith(result, link.op, self.to_number(link.right), link.position)
        return result

    def _arith(self, left: float, op: MathOp, right: float, position: int) -> float:
        if op == MathOp.ADD:
            return left + right
        if op == MathOp.SUB:
            return left - right
        if op == MathOp.MUL:
            return left * right
        if op == MathOp.DIV:
            if right == 0:
                raise TagArithmeticError(
                    "Division by zero",
                    {'operation': f"{format_number(left)} / {format_number(right)}",
                     'position': position},
                )
            return left / right

        raise TagArithmeticError(f"Unknown operator: {op}")

    def visit_ComparisonNode(self, node: ComparisonNode) -> bool:
        left = self.to_number(node.left)
        right = self.to_number(node.right)

        if node.op == ComparisonOp.EQ:
            return left == right
        if node.op == ComparisonOp.LT:
            return left < right
        if node.op == ComparisonOp.LTE:
            return left <= right
        if node.op == ComparisonOp.GT:
            return left > right
        if node.op == ComparisonOp.GTE:
            return left >= right

        raise TagArithmeticError(f"Unknown comparison: {node.op}")

    def visit_BinaryBoolNode(self, node: BinaryBoolNode) -> bool:
        # Both sides are always evaluated, left to right
        chain = _left_chain(node, BinaryBoolNode)
        result = self.to_bool(chain[-1].left)
        for link in reversed(chain):
            right = self.to_bool(link.right)
            if link.op == LogicalOp.AND:
                result = result and right
            else:
                result = result or right
        return result

    def visit_NotNode(self, node: NotNode) -> bool:
        return not self.to_bool(node.expr)


def _left_chain(node: TagNode, node_type: type) -> List[TagNode]:
    """Nodes of ``node_type`` down the left edge of ``node``, outermost first."""
    chain = []
    while isinstance(node, node_type):
        chain.append(node)
        node = node.left
    return chain
