"""
Tag Evaluator for the tag language.

Reduces a parsed document into its output string.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from taglang.config import Config
from taglang.context.processing import ProcessingContext
from taglang.errors import TagLanguageError
from taglang.engine.expression import ExpressionEvaluator, format_number
from taglang.engine.functions import FunctionRegistry, default_function_registry
from taglang.parser.ast import (
    TagNode,
    DocumentNode,
    TextNode,
    NumberNode,
    BoolNode,
    QuotedTextNode,
    ParamListNode,
    ShortTagCallNode,
    LongTagCallNode,
    IfThenNode,
    IfThenElseNode,
    ErrorBoundaryNode,
)

logger = logging.getLogger(__name__)


class EvaluationError(TagLanguageError):
    """A node the evaluator does not know how to handle."""


class TagEvaluator:
    """
    Evaluates a parsed AST into final output.

    Handles:
    - Literal text and parameters
    - Function calls (through the registry)
    - if / then / else, evaluating only the taken branch
    - on_error boundaries, the only place an error is turned into text
    """

    def __init__(
        self,
        context: ProcessingContext,
        registry: Optional[FunctionRegistry] = None,
        config=None,
    ):
        self.context = context
        self.registry = registry or default_function_registry
        self.config = config or Config
        self.expressions = ExpressionEvaluator(self.evaluate)

        # Statistics
        self._calls_count = 0
        self._conditionals_count = 0
        self._recovered_count = 0

    def evaluate(self, node: TagNode) -> Any:
        """
        Evaluate an AST node.

        Returns:
            A string for documents and directives; parameter lists give a
            list of strings
        """
        return node.accept(self)

    def render(self, nodes: Sequence[TagNode]) -> str:
        """Evaluate a sequence of nodes and concatenate their text."""
        return ''.join(self._to_text(self.evaluate(node)) for node in nodes)

    def get_stats(self) -> Dict[str, int]:
        return {
            'calls': self._calls_count,
            'conditionals': self._conditionals_count,
            'recovered_errors': self._recovered_count,
        }

    def generic_visit(self, node: TagNode):
        raise EvaluationError(f"Cannot evaluate node type: {type(node).__name__}")

    # ==================== Text and parameters ====================

    def visit_DocumentNode(self, node: DocumentNode) -> str:
        return self.render(node.children)

    def visit_TextNode(self, node: TextNode) -> str:
        return node.text

    def visit_NumberNode(self, node: NumberNode) -> str:
        # Parameters keep the number as written (0.0 stays 0.0)
        return node.text

    def visit_BoolNode(self, node: BoolNode) -> bool:
        return node.value

    def visit_QuotedTextNode(self, node: QuotedTextNode) -> str:
        return ' '.join(node.parts)

    def visit_ParamListNode(self, node: ParamListNode) -> List[str]:
        return [self._to_text(self.evaluate(param)) for param in node.params]

    # ==================== Calls ====================

    def visit_ShortTagCallNode(self, node: ShortTagCallNode) -> str:
        return self._call(node.name, self.evaluate(node.params))

    def visit_LongTagCallNode(self, node: LongTagCallNode) -> str:
        params = self.evaluate(node.params1) + self.evaluate(node.params2)
        return self._call(node.name, params)

    def _call(self, name: str, params: List[str]) -> str:
        self._calls_count += 1
        return self.registry.dispatch(name, params, self.context)

    # ==================== Control flow ====================

    def visit_IfThenNode(self, node: IfThenNode) -> str:
        self._conditionals_count += 1
        if self.expressions.to_bool(node.condition):
            return self.render(node.then_branch)
        return ''

    def visit_IfThenElseNode(self, node: IfThenElseNode) -> str:
        self._conditionals_count += 1
        if self.expressions.to_bool(node.condition):
            return self.render(node.then_branch)
        return self.render(node.else_branch)

    def visit_ErrorBoundaryNode(self, node: ErrorBoundaryNode) -> str:
        try:
            return self.render(node.protected)
        except TagLanguageError as e:
            self._recovered_count += 1
            logger.info(f"on_error recovered at position {node.position}: {e.message}")
            if not e.reported:
                self.context.add_error(e.message)
            return ' '.join(self.evaluate(node.replacement))

    # ==================== Expressions ====================
    # Arithmetic, comparisons and boolean operators are only reachable
    # from conditions, which go through self.expressions.

    def visit_BinaryArithNode(self, node) -> str:
        return format_number(self.expressions.evaluate(node))

    def visit_ComparisonNode(self, node) -> bool:
        return self.expressions.evaluate(node)

    def visit_BinaryBoolNode(self, node) -> bool:
        return self.expressions.evaluate(node)

    def visit_NotNode(self, node) -> bool:
        return self.expressions.evaluate(node)

    @staticmethod
    def _to_text(value: Any) -> str:
        if isinstance(value, str):
            return value
        if value is None:
            return ''
        return format_number(value)
