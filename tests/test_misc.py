import pytest
import math
import numpy as np
from nwbephys import ObjectView
from nwbephys.conversion.nan_inf_ninf import decode_nan_inf_ninf, encode_nan_inf_ninf
from nwbephys.conversion.attr_conversion import prepare_attr, normalize_attr
from nwbephys.conversion.references import encode_reference, decode_references, is_encoded_reference
from nwbephys.conversion.data_conversion import prepare_data
from nwbephys.conversion._util import _get_default_chunks


def test_decode_nan_inf_ninf():
    assert math.isnan(decode_nan_inf_ninf('NaN'))  # type: ignore
    assert decode_nan_inf_ninf('Infinity') == float('inf')
    assert decode_nan_inf_ninf('-Infinity') == float('-inf')
    assert decode_nan_inf_ninf('a') == 'a'
    assert decode_nan_inf_ninf([1, 'Infinity', '-Infinity']) == [1, float('inf'), float('-inf')]
    assert decode_nan_inf_ninf({'b': 'Infinity', 'c': '-Infinity'}) == {'b': float('inf'), 'c': float('-inf')}


def test_encode_nan_inf_ninf():
    assert encode_nan_inf_ninf(float('nan')) == 'NaN'
    assert encode_nan_inf_ninf(float('inf')) == 'Infinity'
    assert encode_nan_inf_ninf(float('-inf')) == '-Infinity'
    assert encode_nan_inf_ninf('a') == 'a'
    assert encode_nan_inf_ninf([1, float('nan'), float('inf'), float('-inf')]) == [1, 'NaN', 'Infinity', '-Infinity']
    assert encode_nan_inf_ninf({'a': float('nan'), 'b': float('inf'), 'c': float('-inf')}) == {'a': 'NaN', 'b': 'Infinity', 'c': '-Infinity'}
    assert encode_nan_inf_ninf(np.float32(1.5)) == 1.5


def test_prepare_attr():
    assert prepare_attr(1) == 1
    assert prepare_attr(np.int16(3)) == 3
    assert prepare_attr(np.float32(0.5)) == 0.5
    assert prepare_attr(b'abc') == 'abc'
    assert prepare_attr(np.bool_(True)) is True
    assert prepare_attr([1, 2]) == [1, 2]
    assert prepare_attr([1, 2.5]) == [1.0, 2.5]
    assert prepare_attr([True, False]) == [True, False]
    assert prepare_attr(['a', b'b']) == ['a', 'b']
    assert prepare_attr(np.arange(3)) == [0, 1, 2]
    assert prepare_attr([]) == []
    view = ObjectView('/a')
    assert prepare_attr(view) is view
    with pytest.raises(Exception):
        prepare_attr(None)
    with pytest.raises(Exception):
        prepare_attr(1 + 2j)
    with pytest.raises(Exception):
        prepare_attr([1, 'a'])
    with pytest.raises(ValueError):
        prepare_attr('Infinity')
    with pytest.raises(ValueError):
        prepare_attr(['a', '-Infinity'])


def test_normalize_attr():
    assert normalize_attr(np.int64(5)) == 5
    assert normalize_attr(b'x') == 'x'
    assert normalize_attr(np.array([b'a', b'b'], dtype=object)) == ['a', 'b']
    assert normalize_attr(np.array([[1, 2], [3, 4]])) == [[1, 2], [3, 4]]
    assert normalize_attr([np.float64(1.5), 'a']) == [1.5, 'a']


def test_references():
    x = encode_reference('/a/b', object_id='oid', source_object_id='root')
    assert is_encoded_reference(x)
    assert not is_encoded_reference({'a': 1})
    assert x['_REFERENCE']['source'] == '.'
    view = decode_references(x)
    assert view == ObjectView('/a/b', 'oid')
    arr = np.empty((2,), dtype=object)
    arr[0] = encode_reference('/x', object_id=None, source_object_id=None)
    arr[1] = encode_reference('/y', object_id=None, source_object_id=None)
    assert [v.path for v in decode_references(arr)] == ['/x', '/y']
    with pytest.raises(Exception):
        decode_references({'_REFERENCE': {'path': '/x', 'source': 'other.h5'}})


def test_prepare_data():
    arr, kind = prepare_data([1, 2, 3], label='d')
    assert kind == 'numeric'
    assert arr.dtype == np.dtype(np.int64) or arr.dtype.kind == 'i'
    arr, kind = prepare_data('abc', label='d')
    assert kind == 'str' and arr.shape == () and arr[()] == 'abc'
    arr, kind = prepare_data(np.array(['a', 'bb']), label='d')
    assert kind == 'str' and arr.dtype == np.dtype('O') and list(arr) == ['a', 'bb']
    arr, kind = prepare_data([ObjectView('/a'), ObjectView('/b')], label='d')
    assert kind == 'reference' and arr.shape == (2,)
    arr, kind = prepare_data(np.array([True, False]), label='d')
    assert kind == 'numeric'
    with pytest.raises(Exception):
        prepare_data(None, label='d')
    with pytest.raises(Exception):
        prepare_data(ObjectView('/a'), label='d')


def test_get_default_chunks():
    assert _get_default_chunks((), np.float64, 1000) == ()
    assert _get_default_chunks((100,), np.float64, 1000) == (100,)
    assert _get_default_chunks((1000,), np.float64, 1000) == (125,)
    assert _get_default_chunks((1000, 10), np.float64, 1000) == (12, 10)
    assert _get_default_chunks((1000, 1000), np.float64, 1000) == (1, 1000)
    assert _get_default_chunks((0, 3), np.float64, 1000) == (1, 3)


if __name__ == '__main__':
    test_prepare_attr()
