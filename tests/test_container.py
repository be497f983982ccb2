import tempfile
import math
import pytest
import numpy as np
import numcodecs
from nwbephys import Container, ContainerOpts, ObjectView, SoftLink, ContainerIOError
from utils import arrays_are_equal, container_paths


def test_groups_and_attributes():
    with tempfile.TemporaryDirectory() as tmpdir:
        for path in container_paths(tmpdir):
            with Container.create(path) as c:
                c.create_group('/a/b')
                assert '/a' in c
                assert c.is_group('/a/b')
                c.require_group('/a/b')
                with pytest.raises(ValueError):
                    c.create_group('/a/b')
                c.set_attrs('/a', {
                    'int1': 1,
                    'float1': 3.14,
                    'str1': 'abc',
                    'bytes1': b'def',
                    'bool1': True,
                    'list1': [1, 2, 3],
                    'strlist1': ['x', 'y'],
                    'nan1': float('nan'),
                    'inf1': float('inf'),
                })
                with pytest.raises(ValueError):
                    c.set_attr('/a', 'bad', 'NaN')
                with pytest.raises(Exception):
                    c.set_attr('/a', 'bad', None)
            with Container.open(path) as c:
                assert c.mode == 'r'
                assert c.keys('/') == ['a']
                assert c.keys('/a') == ['b']
                attrs = c.attrs('/a')
                assert attrs['int1'] == 1
                assert attrs['float1'] == 3.14
                assert attrs['str1'] == 'abc'
                assert attrs['bytes1'] == 'def'
                assert attrs['bool1'] is True
                assert attrs['list1'] == [1, 2, 3]
                assert attrs['strlist1'] == ['x', 'y']
                assert math.isnan(attrs['nan1'])
                assert attrs['inf1'] == float('inf')
                assert isinstance(c.object_id, str)
                with pytest.raises(ValueError):
                    c.create_group('/c')
                with pytest.raises(KeyError):
                    c.attrs('/does_not_exist')


def test_soft_links():
    with tempfile.TemporaryDirectory() as tmpdir:
        for path in container_paths(tmpdir):
            with Container.create(path) as c:
                c.create_group('/group_target')
                c.set_attr('/group_target', 'foo', 'bar')
                c.create_dataset('/group_target/dataset1', [5, 6, 7])
                c.set_soft_link('/soft_link', '/group_target')
            with Container.open(path) as c:
                assert c.get_link('/soft_link') == SoftLink('/group_target')
                assert c.get_link('/group_target') is None
                assert c.is_group('/soft_link')
                assert c.attrs('/soft_link')['foo'] == 'bar'
                assert arrays_are_equal(c.dataset('/soft_link/dataset1').materialize(), [5, 6, 7])


def test_references():
    with tempfile.TemporaryDirectory() as tmpdir:
        for path in container_paths(tmpdir):
            with Container.create(path) as c:
                c.create_group('/target')
                c.set_attr('/target', 'object_id', 'abc-123')
                c.create_dataset('/data', [1, 2, 3])
                c.set_attr('/', 'ref1', c.object_view('/target'))
                c.create_dataset('/refs', [c.object_view('/target'), c.object_view('/data')])
            with Container.open(path) as c:
                ref1 = c.attrs('/')['ref1']
                assert isinstance(ref1, ObjectView)
                assert ref1.path == '/target'
                assert ref1.object_id == 'abc-123'
                refs = c.dataset('/refs').materialize()
                assert [r.path for r in refs] == ['/target', '/data']


def test_modes():
    with tempfile.TemporaryDirectory() as tmpdir:
        for path in container_paths(tmpdir):
            with pytest.raises(FileNotFoundError):
                Container.open(path, mode='r')
            with Container.create(path, mode='x') as c:
                c.create_dataset('/X', [1, 2, 3])
            with pytest.raises(ValueError):
                Container.create(path, mode='w-')
            with pytest.raises(ValueError):
                Container.create(path, mode='r')
            with Container.open(path, mode='r+') as c:
                assert c.mode == 'r+'
                c.create_dataset('/Y', [4, 5])
                c.delete('/X')
                with pytest.raises(ValueError):
                    c.delete('/')
            with Container.open(path, mode='r') as c:
                assert '/X' not in c
                assert arrays_are_equal(c.dataset('/Y').materialize(), [4, 5])
            with Container.create(path, mode='w') as c:
                assert c.keys('/') == []


def test_close_twice_warns():
    with tempfile.TemporaryDirectory() as tmpdir:
        c = Container.create(f'{tmpdir}/test.h5')
        c.close()
        with pytest.warns(UserWarning):
            c.close()
        with pytest.raises(ContainerIOError):
            c.keys('/')
        # ContainerIOError is also an OSError
        with pytest.raises(OSError):
            c.keys('/')


def test_compression_options():
    data = np.arange(10000, dtype=np.int32)
    with tempfile.TemporaryDirectory() as tmpdir:
        for path in container_paths(tmpdir):
            opts = ContainerOpts(compression=None, chunk_size_bytes=1000)
            with Container.create(path, opts=opts) as c:
                c.create_dataset('/X', data)
                c.create_dataset('/Y', data, compression='gzip')
                c.create_dataset('/Z', data, chunks=(500,))
                with pytest.raises(Exception):
                    c.create_dataset('/W', data, compression='lzf')
            with Container.open(path) as c:
                for name in ['X', 'Y', 'Z']:
                    assert arrays_are_equal(c.dataset(f'/{name}').materialize(), data)
        with Container.create(f'{tmpdir}/codec.zarr', opts=ContainerOpts(compression=numcodecs.Zstd())) as c:
            c.create_dataset('/X', data)
            assert arrays_are_equal(c.dataset('/X').materialize(), data)
        with Container.create(f'{tmpdir}/codec.h5', opts=ContainerOpts(compression=numcodecs.Zstd())) as c:
            with pytest.raises(Exception):
                c.create_dataset('/X', data)


def test_in_memory():
    c = Container.in_memory()
    c.create_dataset('/a/X', np.arange(5))
    c.set_attr('/a', 'description', 'in memory')
    assert c.source is None
    assert c.attrs('/a')['description'] == 'in memory'
    assert arrays_are_equal(c.dataset('/a/X').materialize([1], [3]), [1, 2, 3])
    c.close()


def test_unsupported_data():
    c = Container.in_memory()
    with pytest.raises(Exception):
        c.create_dataset('/complex', np.array([1 + 2j]))
    with pytest.raises(Exception):
        c.create_dataset('/mixed', np.array(['a', 1], dtype=object))
    c.close()


if __name__ == '__main__':
    test_groups_and_attributes()
