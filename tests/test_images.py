import base64
import io
import struct
import zlib

import pytest
from PIL import Image

from paperboard.geometry import Box, Vec
from paperboard.layout import LayoutOptions, add_image, probe_image
from paperboard.layout.images import ImageDecodeError, mime_type_of, strip_data_url
from paperboard.store import MemoryStore


def png_data_url(width, height, color=(200, 120, 40)):
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buffer, format='PNG')
    return 'data:image/png;base64,' + base64.b64encode(buffer.getvalue()).decode('ascii')


def test_probe_image_reads_pixel_size():
    info = probe_image(png_data_url(64, 32))

    assert (info.width, info.height) == (64, 32)
    assert info.mime_type == 'image/png'
    assert info.is_animated is False


@pytest.mark.parametrize(
    'source',
    ['https://example.com/a.png', 'data:image/png;base64,@@@', 'data:image/png;base64,aGVsbG8=', None],
)
def test_probe_image_rejects_undecodable_sources(source):
    with pytest.raises(ImageDecodeError):
        probe_image(source)


def test_data_url_helpers():
    assert mime_type_of('data:image/jpeg;base64,xyz') == 'image/jpeg'
    assert mime_type_of('xyz') == 'image/png'
    assert strip_data_url('data:image/png;base64,abc') == 'abc'
    assert strip_data_url('abc') == 'abc'


def test_add_image_creates_asset_and_shape_with_aspect_ratio():
    store = MemoryStore()
    data_url = png_data_url(200, 100)

    shape_id = add_image(store, data_url, prompt='terrazzo', position=Vec(10, 20), rotation=0.0)

    shape = store.get_record(shape_id)
    assert (shape['x'], shape['y']) == (10, 20)
    assert shape['props']['w'] == 400
    assert shape['props']['h'] == 200
    asset = store.get_asset(shape['props']['assetId'])
    assert asset['props'] == {
        'name': 'terrazzo',
        'src': data_url,
        'w': 200,
        'h': 100,
        'mimeType': 'image/png',
        'isAnimated': False,
    }


def test_add_image_centers_in_viewport_without_position():
    store = MemoryStore(viewport=Box(0, 0, 1000, 800))

    shape_id = add_image(store, png_data_url(100, 100), options=LayoutOptions(random_seed=2))

    shape = store.get_record(shape_id)
    assert (shape['x'], shape['y']) == (300, 200)
    assert abs(shape['rotation']) <= 0.05
    assert store.get_asset(shape['props']['assetId'])['props']['name'] == 'img'


def test_add_image_aborts_only_that_image():
    store = MemoryStore()

    assert add_image(store, 'data:image/png;base64,aGVsbG8=') is None
    assert len(store) == 0

    assert add_image(store, png_data_url(10, 10)) is not None
    assert len(store.shapes()) == 1


def _png_header_only(width, height):
    def chunk(tag, data):
        return struct.pack('>I', len(data)) + tag + data + struct.pack('>I', zlib.crc32(tag + data) & 0xFFFFFFFF)

    header = struct.pack('>IIBBBBB', width, height, 8, 2, 0, 0, 0)
    raw = b'\x89PNG\r\n\x1a\n' + chunk(b'IHDR', header) + chunk(b'IDAT', zlib.compress(b'')) + chunk(b'IEND', b'')
    return 'data:image/png;base64,' + base64.b64encode(raw).decode('ascii')


def test_oversized_image_is_rejected_without_raising():
    store = MemoryStore()
    huge = _png_header_only(20000, 20000)

    with pytest.raises(ImageDecodeError):
        probe_image(huge)
    assert add_image(store, huge) is None
    assert len(store) == 0
