"""
Tests for the TagProcessor facade
"""

from concurrent.futures import ThreadPoolExecutor
import threading

import pytest
from taglang import TagProcessor, resolve
from taglang.context.processing import ProcessingContext
from taglang.errors import TagLanguageError


class TestResolve:
    """TagProcessor.resolve"""

    def test_module_level_shortcut(self):
        result = resolve('Total: <TAG get_param t />', {'t': '5'})

        assert result.output == 'Total: 5'

    def test_seed_mapping_not_mutated(self, processor):
        seed = {'a': '1'}
        result = processor.resolve('<TAG set_param a 2 />', seed)

        assert seed == {'a': '1'}
        assert result.params == {'a': '2'}

    def test_context_reused(self, processor):
        """A caller-owned context keeps params; errors reset per resolution"""
        context = ProcessingContext()
        processor.resolve('<TAG set_param step 1 />', context)
        result = processor.resolve('step=<TAG get_param step />', context)

        assert result.output == 'step=1'

    def test_unexpected_exception_wrapped(self, registry):
        def broken_dispatch(name, params, context):
            raise KeyError('lost')

        registry.dispatch = broken_dispatch
        processor = TagProcessor(registry=registry)
        context = ProcessingContext()

        with pytest.raises(TagLanguageError) as exc:
            processor.resolve('<TAG get_param a />', context)

        assert exc.value.message.startswith('Error processing tags:')
        assert isinstance(exc.value.context['cause'], KeyError)
        assert context.errors() == [exc.value.message]

    def test_custom_keyword(self, hrz_config):
        processor = TagProcessor(config=hrz_config)
        result = processor.resolve('<HRZ get_param a /> <TAG get_param a />', {'a': 'x'})

        assert result.output == 'x <TAG get_param a />'


class TestExtractCalls:
    """TagProcessor.extract_calls"""

    def test_source_order(self, processor):
        text = (
            '<TAG a /> x <TAG if /> <TAG b /> <TAG then />'
            '<TAG c 1 +> <TAG d /> </TAG c><TAG end_if />'
        )

        assert processor.extract_calls(text) == ['a', 'b', 'c', 'd']

    def test_nothing_evaluated(self, custom_processor, spy):
        assert custom_processor.extract_calls('<TAG spy <TAG nope /> />') == ['spy', 'nope']
        assert spy.calls == []

    def test_empty(self, processor):
        assert processor.extract_calls('') == []
        assert processor.extract_calls('no tags') == []

    def test_long_condition_chain(self, processor):
        chain = ' + '.join(['<TAG a />'] * 300)
        text = f'<TAG if />{chain} > 1<TAG then />x<TAG b /><TAG end_if />'

        assert processor.extract_calls(text) == ['a'] * 300 + ['b']


class TestConcurrency:
    """Independent resolutions do not share state"""

    def test_parallel_resolutions_are_isolated(self, processor):
        barrier = threading.Barrier(8)

        def work(i):
            barrier.wait()
            text = f'<TAG set_param v {i} /><TAG get_param v />'
            if i % 2:
                text += '<TAG on_error ! +><TAG nope /></TAG on_error>'
            return i, processor.resolve(text, dry_run=(i % 4 == 0))

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(work, range(8)))

        for i, result in results:
            if i % 4 == 0:
                assert result.output == '11'
                assert result.params == {}
            else:
                expected = f'{i}!' if i % 2 else str(i)
                assert result.output == expected
                assert result.params == {'v': str(i)}
            assert result.errors == (['Unknown function: nope'] if i % 2 else [])
