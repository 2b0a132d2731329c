"""
Tests for the condition evaluator
"""

import logging
import pytest
from taglang import evaluate_condition
from taglang.context.processing import ProcessingContext
from taglang.engine.condition import ConditionEvaluator
from taglang.engine.functions import TagFunction, create_default_function_registry


class LoopFunction(TagFunction):
    """Returns another tag call"""
    name = 'loop'

    def execute(self, params, context):
        return '<TAG loop />'


class TestConditionEvaluator:
    """Substitute tags, then evaluate the condition"""

    def test_comparison_with_tag(self, processor):
        assert processor.evaluate_condition('<TAG get_param qty /> > 5', {'qty': '7'}) is True
        assert processor.evaluate_condition('<TAG get_param qty /> > 5', {'qty': '3'}) is False

    def test_several_tags(self, processor):
        condition = '<TAG get_param a /> + <TAG get_param b /> == 5'

        assert processor.evaluate_condition(condition, {'a': '2', 'b': '3'}) is True

    def test_tag_yielding_boolean_literal(self, processor):
        assert processor.evaluate_condition('<TAG get_param flag />', {'flag': 'TRUE'}) is True
        assert processor.evaluate_condition('<TAG get_param flag />', {'flag': 'false'}) is False

    @pytest.mark.parametrize('condition', ['', '   ', None])
    def test_empty_is_false(self, processor, condition):
        assert processor.evaluate_condition(condition) is False

    def test_boolean_operators(self, processor):
        assert processor.evaluate_condition('NOT (1 > 2) AND (2 >= 2 OR 1 == 0)') is True
        assert processor.evaluate_condition('!(1 > 2) && 1 == 1') is True
        assert processor.evaluate_condition('false || 2 <= 1') is False

    def test_long_tag_left_to_grammar(self, processor):
        """Only self-closing tags are substituted; long calls go through the grammar"""
        condition = '<TAG get_param missing +> 10 </TAG get_param> > 7'

        assert processor.evaluate_condition(condition) is True

    def test_invalid_condition(self, processor, caplog):
        context = ProcessingContext()

        with caplog.at_level(logging.WARNING, logger='taglang.engine.condition'):
            assert processor.evaluate_condition('5 >', context) is False
        assert 'Invalid condition' in caplog.text
        assert len(context.errors()) == 1
        assert context.errors()[0].startswith('Error evaluating condition: Parse error')

    def test_non_boolean_text(self, processor):
        assert processor.evaluate_condition('<TAG get_param flag />', {'flag': 'maybe'}) is False

    def test_unknown_function(self, processor):
        context = ProcessingContext()

        assert processor.evaluate_condition('<TAG nope /> == 1', context) is False
        assert context.errors() == ['Error evaluating condition: Unknown function: nope']

    def test_division_by_zero(self, processor):
        assert processor.evaluate_condition('1 / 0 > 0') is False

    def test_dry_run(self, processor):
        context = ProcessingContext({'qty': '50'})

        assert processor.evaluate_condition('<TAG get_param qty /> == 1', context, dry_run=True) is True
        assert context.dry_run is False

    def test_error_log_reset(self, processor):
        context = ProcessingContext()
        processor.evaluate_condition('5 >', context)

        assert processor.evaluate_condition('1 == 1', context) is True
        assert context.errors() == []

    def test_substitution_limit(self):
        registry = create_default_function_registry()
        registry.register(LoopFunction())
        evaluator = ConditionEvaluator(registry)
        context = ProcessingContext()

        assert evaluator.evaluate('<TAG loop />', context) is False
        assert 'Too many tag substitutions' in context.errors()[0]

    def test_substitute_tags(self):
        evaluator = ConditionEvaluator()
        context = ProcessingContext({'a': '4'})

        assert evaluator.substitute_tags('<TAG get_param a /> > 3', context) == '4 > 3'

    def test_module_level_shortcut(self):
        assert evaluate_condition('<TAG get_param x /> == 2', {'x': '2'}) is True


class TestLongAndLargeOperands:
    """Long operator chains and out-of-range literals evaluate normally"""

    def test_long_sum(self, processor):
        assert processor.evaluate_condition(' + '.join(['1'] * 300) + ' > 5') is True
        assert processor.evaluate_condition(' - '.join(['1'] * 300) + ' > 5') is False

    def test_long_boolean_chain(self, processor):
        assert processor.evaluate_condition(' AND '.join(['TRUE'] * 300)) is True
        assert processor.evaluate_condition(' OR '.join(['FALSE'] * 299 + ['TRUE'])) is True

    def test_chain_keeps_left_to_right_order(self, processor):
        """10 - 2 - 3 is (10 - 2) - 3"""
        assert processor.evaluate_condition('10 - 2 - 3 == 5') is True
        assert processor.evaluate_condition('12 / 2 / 3 == 2') is True

    def test_literal_too_large_for_float(self, processor):
        context = ProcessingContext()

        assert processor.evaluate_condition('1' + '0' * 400 + ' > 5', context) is True
        assert context.errors() == []

    def test_literal_with_many_digits(self, processor):
        assert processor.evaluate_condition('9' * 5000 + ' > 5') is True

    def test_non_numeric_text_is_zero(self, processor):
        condition = '<TAG get_param name /> == 0'

        assert processor.evaluate_condition(condition, {'name': 'abc'}) is True
        assert processor.evaluate_condition(condition, {'name': '12abc'}) is False
