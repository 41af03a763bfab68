"""
PNG encoding

Renders a 2D raster grid into a PNG image of arbitrary size through a
colorizer, using nearest-neighbour sampling at pixel centers.
"""

import io
import logging

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from geoquery.core.exceptions import EncodingError
from geoquery.grid.no_data_grid import GridOrEmpty, NoDataGrid
from geoquery.io.colorizer import Colorizer, ColorizerKind

logger = logging.getLogger(__name__)


def nearest_cell_indices(output_size: int, grid_size: int) -> NDArray:
    """
    Source cell sampled by each output pixel along one axis

    The center of output pixel ``i`` maps to ``(i + 0.5) * grid_size /
    output_size - 0.5`` in cell coordinates, which is rounded and clamped at
    zero. Indices may reach ``grid_size`` when the output is smaller than the
    grid; callers treat those as no-data.

    Examples:
        >>> nearest_cell_indices(4, 2).tolist()
        [0, 0, 1, 1]
    """
    scale = grid_size / output_size
    centers = (np.arange(output_size) + 0.5) * scale - 0.5
    return np.maximum(np.floor(centers + 0.5), 0).astype(np.int64)


def _sample(grid_values: NDArray, width: int, height: int) -> tuple[NDArray, NDArray]:
    rows = nearest_cell_indices(height, grid_values.shape[0])
    cols = nearest_cell_indices(width, grid_values.shape[1])
    row_ok = rows < grid_values.shape[0]
    col_ok = cols < grid_values.shape[1]
    valid = row_ok[:, None] & col_ok[None, :]
    sampled = grid_values[np.where(row_ok, rows, 0)[:, None], np.where(col_ok, cols, 0)[None, :]]
    return sampled, valid


def to_png(grid: GridOrEmpty, width: int, height: int, colorizer: Colorizer) -> bytes:
    """
    Encode a 2D grid as an RGBA PNG of ``width`` x ``height`` pixels

    No-data cells and output pixels mapping outside the grid get the
    colorizer's ``no_data_color``.

    Args:
        grid: Dense or no-data grid, indexed (y, x)
        width: Output width in pixels
        height: Output height in pixels
        colorizer: Value to color mapping

    Returns:
        PNG file bytes

    Raises:
        EncodingError: If the grid is not 2D or the size is not positive
        UnsupportedDataTypeError: If an RGBA colorizer receives non-uint32 values
    """
    if width <= 0 or height <= 0:
        raise EncodingError(f"Image size must be positive, got {width}x{height}")
    if grid.ndim != 2:
        raise EncodingError(f"Only 2D grids can be rendered, got {grid.ndim}D")

    no_data_color = np.array(colorizer.no_data_color.to_tuple(), dtype=np.uint8)

    if isinstance(grid, NoDataGrid):
        rgba = np.broadcast_to(no_data_color, (height, width, 4)).copy()
    else:
        sampled, valid = _sample(grid.data, width, height)
        no_data = ~valid | _no_data_mask(sampled, grid.no_data_value)
        if colorizer.kind == ColorizerKind.RGBA:
            rgba = colorizer.map_values(sampled)
        else:
            rgba = colorizer.map_values(sampled.astype(np.float64))
        rgba[no_data] = no_data_color

    logger.debug("Rendering %dx%d grid to %dx%d PNG", *grid.axis_size(), width, height)
    buffer = io.BytesIO()
    Image.fromarray(rgba).save(buffer, format="PNG")
    return buffer.getvalue()


def _no_data_mask(values: NDArray, no_data_value) -> NDArray:
    mask = np.zeros(values.shape, dtype=bool)
    if values.dtype.kind == "f":
        mask |= np.isnan(values)
    if no_data_value is not None and not (isinstance(no_data_value, float) and np.isnan(no_data_value)):
        mask |= values == no_data_value
    return mask
