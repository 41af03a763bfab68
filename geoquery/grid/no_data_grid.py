"""
Virtual no-data grid

A zero-storage grid where every in-bounds cell holds the same no-data value.
Used for whole tiles that are missing, without allocating a buffer.
"""

from typing import Any

import numpy as np

from geoquery.core.exceptions import (
    GridIndexOutOfBoundsError,
    InvalidDataTypeConversionError,
    NoDataGridConversionError,
)
from geoquery.grid.grid import Grid, values_equal_no_data
from geoquery.grid.shape import GridBoundingBox, GridBounds, GridIdx, as_grid_idx


class NoDataGrid:
    """
    Grid of a single no-data value

    Observable behavior matches a dense Grid filled with the sentinel.

    Attributes:
        shape: GridShape or GridBoundingBox describing the index space
        no_data_value: Value returned for every in-bounds index
        dtype: numpy dtype of the (virtual) pixels

    Examples:
        >>> n = NoDataGrid(GridShape2D((2, 2)), 42, dtype="int32")
        >>> n.get_at_grid_index((1, 1))
        42
        >>> n.convert_dtype("float64").no_data_value
        42.0
    """

    def __init__(self, shape: GridBounds, no_data_value: Any, dtype=None):
        self.shape = shape
        self.dtype = np.dtype(dtype) if dtype is not None else np.asarray(no_data_value).dtype
        self.no_data_value = self.dtype.type(no_data_value).item()

    @classmethod
    def from_grid(cls, grid: Grid) -> "NoDataGrid":
        """
        Collapse a dense grid that holds nothing but no-data

        Raises:
            NoDataGridConversionError: If the grid has no sentinel or any data cell
        """
        if grid.no_data_value is None:
            raise NoDataGridConversionError("Grid has no no-data value")
        if not grid.no_data_mask().all():
            raise NoDataGridConversionError("Grid contains data values")
        return cls(grid.shape, grid.no_data_value, dtype=grid.dtype)

    @property
    def ndim(self) -> int:
        return self.shape.ndim

    def axis_size(self) -> tuple[int, ...]:
        return self.shape.axis_size()

    def number_of_elements(self) -> int:
        return self.shape.number_of_elements()

    def min_index(self) -> GridIdx:
        return self.shape.min_index()

    def max_index(self) -> GridIdx:
        return self.shape.max_index()

    def get_at_grid_index(self, index) -> Any:
        idx = as_grid_idx(index)
        if not self.shape.contains(idx):
            raise GridIndexOutOfBoundsError(idx, self.shape.min_index(), self.shape.max_index())
        return self.get_at_grid_index_unchecked(idx)

    def get_at_grid_index_unchecked(self, index) -> Any:
        return self.no_data_value

    def is_no_data(self, value: Any) -> bool:
        return bool(values_equal_no_data(np.asarray(value), self.no_data_value))

    def convert_dtype(self, dtype) -> "NoDataGrid":
        """
        Widen the pixel type without losing the sentinel's value

        Raises:
            InvalidDataTypeConversionError: If ``dtype`` cannot hold every value
                of the current type
        """
        dtype = np.dtype(dtype)
        if not np.can_cast(self.dtype, dtype, casting="safe"):
            raise InvalidDataTypeConversionError(self.dtype, dtype)
        return NoDataGrid(self.shape, self.no_data_value, dtype=dtype)

    def into_materialized_grid(self) -> Grid:
        return Grid.from_no_data_grid(self)

    def shift_by_offset(self, offset) -> "NoDataGrid":
        return NoDataGrid(self.shape.shift_by_offset(offset), self.no_data_value, self.dtype)

    def set_grid_bounds(self, bounds: GridBoundingBox) -> "NoDataGrid":
        if not isinstance(bounds, GridBoundingBox):
            bounds = GridBoundingBox(*bounds)
        return NoDataGrid(bounds, self.no_data_value, self.dtype)

    def __eq__(self, other) -> bool:
        if not isinstance(other, NoDataGrid):
            return NotImplemented
        return (
            self.shape.bounding_box() == other.shape.bounding_box()
            and self.dtype == other.dtype
            and (
                self.no_data_value == other.no_data_value
                or (np.isnan(self.no_data_value) and np.isnan(other.no_data_value))
            )
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"<NoDataGrid: {self.shape!r}, {self.dtype}, no-data={self.no_data_value}>"


GridOrEmpty = Grid | NoDataGrid
