import logging

import numpy as np

from paperboard.logging_utils import apply_debug_logging, debug_log_call, safe_repr


def test_safe_repr_summarizes_records():
    shape = {'id': 'shape:a', 'typeName': 'shape', 'type': 'note', 'index': 'a1'}
    binding = {'id': 'binding:b', 'typeName': 'binding', 'fromId': 'shape:x', 'toId': 'shape:y'}

    assert safe_repr(shape) == '<shape:a type=note index=a1>'
    assert safe_repr(binding) == '<binding:b shape:x->shape:y>'
    assert safe_repr({'shape:a': shape, 'binding:b': binding}) == 'records(2: binding=1, shape=1)'


def test_safe_repr_caps_collections_and_arrays():
    assert safe_repr(list(range(8))) == '[0, 1, 2, 3, 4, ... +3]'
    assert safe_repr(np.zeros((3, 2))) == 'ndarray(shape=(3, 2), dtype=float64)'
    assert safe_repr(np.array([1.0, 2.0])).endswith('values=[1.0, 2.0]')
    assert safe_repr('x' * 500).endswith("'")
    assert len(safe_repr('x' * 500)) < 100


def test_debug_log_call_logs_entry_and_exit(caplog):
    logger = logging.getLogger('paperboard.tests.debug')

    @debug_log_call(logger)
    def double(value):
        return value * 2

    with caplog.at_level(logging.DEBUG, logger='paperboard.tests.debug'):
        assert double(21) == 42

    assert 'Entering' in caplog.text and 'args=[21]' in caplog.text
    assert 'Exiting' in caplog.text and '-> 42' in caplog.text


def test_apply_debug_logging_wraps_public_functions_once():
    def public():
        return 1

    def _private():
        return 2

    public.__module__ = 'fake_module'
    _private.__module__ = 'fake_module'
    namespace = {'__name__': 'fake_module', 'public': public, '_private': _private}

    apply_debug_logging(namespace)
    wrapped = namespace['public']
    apply_debug_logging(namespace)

    assert namespace['public'] is wrapped
    assert getattr(wrapped, '_debug_logging_wrapped', False)
    assert namespace['_private'] is _private
    assert wrapped() == 1
