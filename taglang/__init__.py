"""
Tag language for text templates

Resolves directives embedded in free-form text:
- Function calls: <TAG get_param price 0 />
- Long calls: <TAG get_param missing +> fallback text </TAG get_param>
- Conditionals: <TAG if /> <TAG get_param qty /> > 5 <TAG then />HIGH<TAG else />LOW<TAG end_if />
- Error boundaries: <TAG on_error n/a +> <TAG get_param a /> / 0 </TAG on_error>

Usage:
    from taglang import TagProcessor

    processor = TagProcessor()
    result = processor.resolve("Price: <TAG get_param price />", {'price': '1234'})
    result.output   # 'Price: 1234'
    result.errors   # []
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from taglang.config import Config
from taglang.context.processing import ProcessingContext
from taglang.errors import (
    TagLanguageError,
    ParseError,
    UnknownFunctionError,
    TagArithmeticError,
    FunctionError,
)
from taglang.engine.condition import ConditionEvaluator
from taglang.engine.evaluator import TagEvaluator
from taglang.engine.functions import FunctionRegistry, TagFunction, default_function_registry
from taglang.parser import TagParser
from taglang.parser.ast import ShortTagCallNode, LongTagCallNode, iter_nodes

logger = logging.getLogger(__name__)

ContextArg = Union[None, Mapping[str, Any], ProcessingContext]


@dataclass
class Resolution:
    """Output of one resolution."""
    output: str
    errors: List[str] = field(default_factory=list)
    params: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'output': self.output,
            'errors': self.errors,
            'params': self.params,
        }


class TagProcessor:
    """
    Main entry point for resolving tags in text.

    Combines parsing, dispatch and evaluation. A processor holds only the
    registry and config, so one instance can serve concurrent callers as
    long as each passes its own context.
    """

    def __init__(self, registry: Optional[FunctionRegistry] = None, config=None):
        """
        Args:
            registry: Functions available to tags (default: get_param, set_param)
            config: Config class or object (default: taglang.config.Config)
        """
        self.registry = registry or default_function_registry
        self.config = config or Config

    def resolve(self, text: str, context: ContextArg = None, dry_run: bool = False) -> Resolution:
        """
        Resolve all tags in ``text``.

        Args:
            text: Text containing tags
            context: None, a seed mapping, or a ProcessingContext owned by the caller
            dry_run: Check the text without running any function

        Returns:
            Resolution with the output, the error log and the final parameters

        Raises:
            TagLanguageError: ParseError or an error not caught by on_error.
                The error log is attached as ``error_log``.
        """
        ctx = self._context_for(context)
        ctx.reset_errors()
        ctx.dry_run = dry_run
        try:
            if not text:
                return Resolution('', ctx.errors(), ctx.current())

            document = TagParser(self.config).parse(text)
            output = TagEvaluator(ctx, self.registry, self.config).evaluate(document)
            return Resolution(output, ctx.errors(), ctx.current())
        except TagLanguageError as e:
            if not e.reported:
                ctx.add_error(e.message)
                e.reported = True
            e.error_log = ctx.errors()
            raise
        except Exception as e:
            message = f"Error processing tags: {e}"
            logger.error(message, exc_info=True)
            ctx.add_error(message)
            error = TagLanguageError(message, {'cause': e})
            error.reported = True
            error.error_log = ctx.errors()
            raise error from e
        finally:
            ctx.dry_run = False

    def validate_syntax(self, text: str) -> Dict[str, Any]:
        """
        Check ``text`` with a dry run on a throw-away context.

        Returns:
            Dict with 'valid' (bool) and 'errors' (list)
        """
        ctx = ProcessingContext()
        try:
            self.resolve(text, ctx, dry_run=True)
        except TagLanguageError:
            return {'valid': False, 'errors': ctx.errors()}
        return {'valid': not ctx.has_errors(), 'errors': ctx.errors()}

    def evaluate_condition(self, condition: str, context: ContextArg = None, dry_run: bool = False) -> bool:
        """Evaluate a standalone condition string. Failures give False."""
        ctx = self._context_for(context)
        return ConditionEvaluator(self.registry, self.config).evaluate(condition, ctx, dry_run)

    def extract_calls(self, text: str) -> List[str]:
        """
        Names of the functions called anywhere in ``text``, in source order.

        Parses only; nothing is evaluated.
        """
        if not text:
            return []
        document = TagParser(self.config).parse(text)
        return [
            node.name
            for node in iter_nodes(document)
            if isinstance(node, (ShortTagCallNode, LongTagCallNode))
        ]

    def _context_for(self, context: ContextArg) -> ProcessingContext:
        if isinstance(context, ProcessingContext):
            return context
        return ProcessingContext(context, debug=self.config.DEBUG)


# Default instance
default_processor = TagProcessor()


def resolve(text: str, context: ContextArg = None, dry_run: bool = False) -> Resolution:
    return default_processor.resolve(text, context, dry_run)


def validate_syntax(text: str) -> Dict[str, Any]:
    return default_processor.validate_syntax(text)


def evaluate_condition(condition: str, context: ContextArg = None, dry_run: bool = False) -> bool:
    return default_processor.evaluate_condition(condition, context, dry_run)


__all__ = [
    'TagProcessor',
    'Resolution',
    'ProcessingContext',
    'FunctionRegistry',
    'TagFunction',
    'TagParser',
    'TagEvaluator',
    'ConditionEvaluator',
    'TagLanguageError',
    'ParseError',
    'UnknownFunctionError',
    'TagArithmeticError',
    'FunctionError',
    'resolve',
    'validate_syntax',
    'evaluate_condition',
]
