"""
Condition evaluator.

Evaluates a standalone condition string such as

    <TAG get_param qty /> > 5 AND <TAG get_param vip /> == 1

Every self-closing tag call is resolved and replaced by its text, one at
a time from the left, re-scanning after each replacement. What is left is
parsed with the condition grammar and reduced to a bool. Any failure
gives False.
"""

import logging
import re
from typing import Optional

from taglang.config import Config
from taglang.context.processing import ProcessingContext
from taglang.errors import TagLanguageError
from taglang.engine.evaluator import TagEvaluator
from taglang.engine.expression import ExpressionEvaluator
from taglang.engine.functions import FunctionRegistry, default_function_registry
from taglang.parser.parser import TagParser

logger = logging.getLogger(__name__)


class ConditionEvaluator:
    """Substitute-then-evaluate for condition strings."""

    # A function returning another tag would otherwise loop forever
    MAX_SUBSTITUTIONS = 1000

    def __init__(self, registry: Optional[FunctionRegistry] = None, config=None):
        self.registry = registry or default_function_registry
        self.config = config or Config
        self.tag_pattern = re.compile(rf'<{re.escape(self.config.TAG_KEYWORD)}\s+[^>]*/>')

    def evaluate(
        self,
        condition: str,
        context: Optional[ProcessingContext] = None,
        dry_run: bool = False,
    ) -> bool:
        """
        Evaluate ``condition`` to a bool.

        The error log of ``context`` is reset first; a failure is logged
        there and yields False.
        """
        if context is None:
            context = ProcessingContext()
        if not condition or not condition.strip():
            return False

        context.reset_errors()
        context.dry_run = dry_run
        try:
            substituted = self.substitute_tags(condition, context)
            expression = TagParser(self.config).parse_condition(substituted)
            evaluator = TagEvaluator(context, self.registry, self.config)
            return ExpressionEvaluator(evaluator.evaluate).to_bool(expression)
        except TagLanguageError as e:
            logger.warning(f"Invalid condition '{condition}': {e.message}")
            if not e.reported:
                context.add_error(f"Error evaluating condition: {e.message}")
            return False
        finally:
            context.dry_run = False

    def substitute_tags(self, condition: str, context: ProcessingContext) -> str:
        """Replace each self-closing tag call with its resolved text."""
        parser = TagParser(self.config)
        evaluator = TagEvaluator(context, self.registry, self.config)
        text = condition

        for _ in range(self.MAX_SUBSTITUTIONS):
            match = self.tag_pattern.search(text)
            if not match:
                return text
            document = parser.parse(match.group(0))
            value = evaluator.evaluate(document)
            logger.debug(f"Condition: {match.group(0)!r} -> {value!r}")
            text = text[:match.start()] + value + text[match.end():]

        raise TagLanguageError(
            f"Too many tag substitutions in condition (limit {self.MAX_SUBSTITUTIONS})",
            {'condition': condition},
        )
