from taglang.engine.evaluator import EvaluationError, TagEvaluator
from taglang.engine.expression import ExpressionEvaluator
from taglang.engine.functions import (
    FunctionRegistry,
    TagFunction,
    create_default_function_registry,
    default_function_registry,
)
from taglang.engine.condition import ConditionEvaluator

__all__ = [
    'TagEvaluator',
    'EvaluationError',
    'ExpressionEvaluator',
    'FunctionRegistry',
    'TagFunction',
    'create_default_function_registry',
    'default_function_registry',
    'ConditionEvaluator',
]
