"""Tests for tiles.loader module."""

from pathlib import Path

import pytest
from PIL import Image

from shared.constants import TileKind
from tiles.loader import TileDecodeError, decode_tile, tile_exists, tile_path


def test_tile_path_layout():
    """Tile path is <root>/<map>/<kind dir>/<x>_<y>.png."""
    path = tile_path('maps', 'europe', TileKind.BASE, 3, 12)
    assert path == Path('maps') / 'europe' / 'baseTiles' / '3_12.png'


def test_tile_path_relief():
    path = tile_path(Path('/data/maps'), 'europe', TileKind.RELIEF, 0, 1)
    assert path.parent.name == 'reliefTiles'
    assert path.name == '0_1.png'


def test_tile_exists(tmp_path):
    path = tmp_path / '0_0.png'
    assert not tile_exists(path)
    Image.new('RGB', (2, 2)).save(path)
    assert tile_exists(path)
    assert not tile_exists(tmp_path)


def test_decode_palette_tile_to_rgba(tmp_path):
    """Palette images are converted to the relief target mode."""
    path = tmp_path / 'p.png'
    Image.new('P', (4, 4), color=3).save(path)
    image = decode_tile(path, TileKind.RELIEF)
    assert image.mode == 'RGBA'
    assert image.size == (4, 4)


def test_decode_returns_detached_copy(tmp_path):
    """The decoded image does not depend on the source file."""
    path = tmp_path / 'b.png'
    Image.new('RGB', (4, 4), color=(9, 8, 7)).save(path)
    image = decode_tile(path, TileKind.BASE)
    path.unlink()
    assert image.getpixel((3, 3)) == (9, 8, 7)


def test_decode_missing_file_raises(tmp_path):
    """A vanished file is reported as missing, not as a decode failure."""
    with pytest.raises(FileNotFoundError):
        decode_tile(tmp_path / 'missing.png', TileKind.BASE)


def test_decode_oversized_file_raises(tmp_path, monkeypatch):
    """Pillow's decompression bomb guard surfaces as TileDecodeError."""
    path = tmp_path / 'huge.png'
    Image.new('RGB', (8, 8)).save(path)
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 10)
    with pytest.raises(TileDecodeError) as exc_info:
        decode_tile(path, TileKind.BASE)
    assert exc_info.value.path == path
    assert isinstance(exc_info.value.__cause__, Image.DecompressionBombError)


def test_decode_corrupt_file_raises(tmp_path):
    path = tmp_path / 'bad.png'
    path.write_bytes(b'\x89PNG broken')
    with pytest.raises(TileDecodeError, match='bad.png'):
        decode_tile(path, TileKind.RELIEF)


def test_kind_modes():
    assert TileKind.BASE.image_mode == 'RGB'
    assert TileKind.RELIEF.image_mode == 'RGBA'
    assert TileKind.RELIEF.transparent
    assert not TileKind.BASE.transparent
