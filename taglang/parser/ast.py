"""
Abstract Syntax Tree (AST) nodes for the tag language.

The node set is closed: the evaluator has a visit method for each
class below. Nodes are immutable and live for one resolution only.
"""

from dataclasses import dataclass, fields
from typing import Iterator, Optional, Tuple
from enum import Enum


class ComparisonOp(Enum):
    """Comparison operators."""
    EQ = '=='
    LT = '<'
    LTE = '<='
    GT = '>'
    GTE = '>='


class LogicalOp(Enum):
    """Boolean operators."""
    AND = 'AND'
    OR = 'OR'


class MathOp(Enum):
    """Arithmetic operators."""
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'


@dataclass(frozen=True)
class TagNode:
    """Base class for all AST nodes."""
    position: int = 0

    def accept(self, visitor):
        """Accept a visitor (for visitor pattern)."""
        method_name = f'visit_{self.__class__.__name__}'
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


@dataclass(frozen=True)
class TextNode(TagNode):
    """
    Literal text, either outside any tag or a bare-word parameter.

    Example: "Price: " in "Price: <TAG get_param price />"
    """
    text: str = ""


@dataclass(frozen=True)
class NumberNode(TagNode):
    """
    A numeric literal. ``text`` keeps the source spelling.

    Example: 0.0 in <TAG get_param discount 0.0 />
    """
    value: float = 0.0
    text: str = "0"


@dataclass(frozen=True)
class BoolNode(TagNode):
    """A TRUE/FALSE literal inside a condition."""
    value: bool = False


@dataclass(frozen=True)
class QuotedTextNode(TagNode):
    """
    A double-quoted parameter, split on whitespace runs.

    Example: "a   b" becomes parts ('a', 'b') and resolves to "a b"
    """
    parts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParamListNode(TagNode):
    """Ordered parameters of a call or of an on_error replacement."""
    params: Tuple[TagNode, ...] = ()


@dataclass(frozen=True)
class ShortTagCallNode(TagNode):
    """
    <TAG name params />
    """
    name: str = ""
    params: ParamListNode = ParamListNode()


@dataclass(frozen=True)
class LongTagCallNode(TagNode):
    """
    <TAG name params1 +> params2 </TAG name>

    Both lists are passed to the function as one list, params1 first.
    """
    name: str = ""
    params1: ParamListNode = ParamListNode()
    params2: ParamListNode = ParamListNode()


@dataclass(frozen=True)
class IfThenNode(TagNode):
    """
    <TAG if /> condition <TAG then /> ... <TAG end_if />
    """
    condition: Optional[TagNode] = None
    then_branch: Tuple[TagNode, ...] = ()


@dataclass(frozen=True)
class IfThenElseNode(TagNode):
    """
    <TAG if /> condition <TAG then /> ... <TAG else /> ... <TAG end_if />
    """
    condition: Optional[TagNode] = None
    then_branch: Tuple[TagNode, ...] = ()
    else_branch: Tuple[TagNode, ...] = ()


@dataclass(frozen=True)
class ErrorBoundaryNode(TagNode):
    """
    <TAG on_error replacement +> protected </TAG on_error>
    """
    replacement: ParamListNode = ParamListNode()
    protected: Tuple[TagNode, ...] = ()


@dataclass(frozen=True)
class BinaryArithNode(TagNode):
    """Arithmetic: left op right"""
    left: Optional[TagNode] = None
    op: MathOp = MathOp.ADD
    right: Optional[TagNode] = None


@dataclass(frozen=True)
class ComparisonNode(TagNode):
    """Comparison of two arithmetic expressions."""
    left: Optional[TagNode] = None
    op: ComparisonOp = ComparisonOp.EQ
    right: Optional[TagNode] = None


@dataclass(frozen=True)
class BinaryBoolNode(TagNode):
    """AND / OR of two boolean expressions."""
    left: Optional[TagNode] = None
    op: LogicalOp = LogicalOp.AND
    right: Optional[TagNode] = None


@dataclass(frozen=True)
class NotNode(TagNode):
    """Boolean negation."""
    expr: Optional[TagNode] = None


@dataclass(frozen=True)
class DocumentNode(TagNode):
    """Root node: the whole input as a sequence of text and directives."""
    children: Tuple[TagNode, ...] = ()


def iter_nodes(node: TagNode) -> Iterator[TagNode]:
    """Yield ``node`` and all of its descendants, depth first, in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        children = []
        for f in fields(current):
            value = getattr(current, f.name)
            if isinstance(value, TagNode):
                children.append(value)
            elif isinstance(value, tuple):
                children.extend(item for item in value if isinstance(item, TagNode))
        stack.extend(reversed(children))
