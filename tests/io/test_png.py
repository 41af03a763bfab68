"""
Tests for PNG rendering

Images are decoded again with Pillow and checked pixel by pixel.
"""

import io

import numpy as np
import pytest
from PIL import Image

from geoquery.core.exceptions import EncodingError
from geoquery.grid.grid import Grid
from geoquery.grid.no_data_grid import NoDataGrid
from geoquery.grid.shape import GridShape2D, GridShape3D
from geoquery.io.colorizer import Breakpoint, Colorizer, RgbaColor
from geoquery.io.png import nearest_cell_indices, to_png


def _decode(png: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(png))
    assert image.mode == "RGBA"
    return image


def _quadrants(image: Image.Image) -> dict[str, tuple]:
    """Colors of the four 50x50 quadrants of a 100x100 image"""
    return {
        "top_left": image.getpixel((10, 10)),
        "top_right": image.getpixel((90, 10)),
        "bottom_left": image.getpixel((10, 90)),
        "bottom_right": image.getpixel((90, 90)),
    }


def _grid(values, dtype="uint8", no_data_value=None):
    return Grid(GridShape2D((2, 2)), np.asarray(values, dtype=dtype), no_data_value)


class TestSampling:
    """Test nearest-neighbour index mapping"""

    def test_upsampling(self):
        indices = nearest_cell_indices(100, 2)

        assert (indices[:50] == 0).all()
        assert (indices[50:] == 1).all()

    def test_downsampling(self):
        assert nearest_cell_indices(2, 4).tolist() == [1, 3]

    def test_identity(self):
        assert nearest_cell_indices(3, 3).tolist() == [0, 1, 2]


class TestToPng:
    """Test rendering of 2x2 grids into 100x100 images"""

    def test_linear_gradient(self):
        colorizer = Colorizer.linear_gradient(
            [Breakpoint(0.0, RgbaColor.black()), Breakpoint(255.0, RgbaColor.white())],
            RgbaColor.transparent(),
            RgbaColor.pink(),
        )

        image = _decode(to_png(_grid([[255, 100], [0, 0]]), 100, 100, colorizer))

        assert image.size == (100, 100)
        assert _quadrants(image) == {
            "top_left": (255, 255, 255, 255),
            "top_right": (100, 100, 100, 255),
            "bottom_left": (0, 0, 0, 255),
            "bottom_right": (0, 0, 0, 255),
        }

    def test_logarithmic_gradient(self):
        colorizer = Colorizer.logarithmic_gradient(
            [Breakpoint(1.0, RgbaColor.black()), Breakpoint(10.0, RgbaColor.white())],
            RgbaColor.transparent(),
            RgbaColor.pink(),
        )

        image = _decode(to_png(_grid([[10, 5], [1, 1]]), 100, 100, colorizer))

        quadrants = _quadrants(image)
        assert quadrants["top_left"] == (255, 255, 255, 255)
        assert quadrants["top_right"] == (178, 178, 178, 255)
        assert quadrants["bottom_left"] == (0, 0, 0, 255)

    def test_palette(self):
        colorizer = Colorizer.palette(
            {
                0.0: RgbaColor(0, 0, 0, 255),
                1.0: RgbaColor(255, 0, 0, 255),
                2.0: RgbaColor(255, 255, 255, 255),
            },
            RgbaColor.transparent(),
        )

        image = _decode(to_png(_grid([[2, 1], [0, 7]]), 100, 100, colorizer))

        assert _quadrants(image) == {
            "top_left": (255, 255, 255, 255),
            "top_right": (255, 0, 0, 255),
            "bottom_left": (0, 0, 0, 255),
            "bottom_right": (0, 0, 0, 0),
        }

    def test_rgba(self):
        grid = _grid([[0xFF00_00FF, 0x00FF_00FF], [0x0000_00FF, 0x0000_00FF]], dtype="uint32")

        image = _decode(to_png(grid, 100, 100, Colorizer.rgba()))

        assert _quadrants(image) == {
            "top_left": (255, 0, 0, 255),
            "top_right": (0, 255, 0, 255),
            "bottom_left": (0, 0, 0, 255),
            "bottom_right": (0, 0, 0, 255),
        }

    def test_no_data_cells(self):
        colorizer = Colorizer.linear_gradient(
            [Breakpoint(0.0, RgbaColor.black()), Breakpoint(255.0, RgbaColor.white())],
            RgbaColor(1, 2, 3, 4),
            RgbaColor.pink(),
        )

        image = _decode(to_png(_grid([[255, 0], [0, 0]], no_data_value=0), 100, 100, colorizer))

        quadrants = _quadrants(image)
        assert quadrants["top_left"] == (255, 255, 255, 255)
        assert quadrants["top_right"] == (1, 2, 3, 4)

    def test_no_data_grid(self):
        colorizer = Colorizer.palette({1.0: RgbaColor.white()}, RgbaColor(9, 9, 9, 9))

        image = _decode(to_png(NoDataGrid(GridShape2D((2, 2)), 0, dtype="uint8"), 20, 10, colorizer))

        assert image.size == (20, 10)
        assert set(image.getdata()) == {(9, 9, 9, 9)}

    def test_non_square_output(self):
        colorizer = Colorizer.palette({1.0: RgbaColor.white()}, RgbaColor.transparent())

        image = _decode(to_png(_grid([[1, 0], [0, 0]]), 40, 10, colorizer))

        assert image.size == (40, 10)
        assert image.getpixel((5, 2)) == (255, 255, 255, 255)
        assert image.getpixel((35, 2)) == (0, 0, 0, 0)

    @pytest.mark.parametrize("width, height", [(0, 10), (10, -1)])
    def test_invalid_size(self, width, height):
        with pytest.raises(EncodingError):
            to_png(_grid([[1, 2], [3, 4]]), width, height, Colorizer.rgba())

    def test_rejects_3d(self):
        grid = Grid(GridShape3D((1, 2, 2)), np.zeros(4, dtype="uint8"))

        with pytest.raises(EncodingError):
            to_png(grid, 10, 10, Colorizer.rgba())
