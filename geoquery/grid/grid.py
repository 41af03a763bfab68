"""
Dense grid implementation

A numpy-backed N-dimensional grid with an optional no-data sentinel and
bounds-checked access.
"""

from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from geoquery.core.exceptions import DimensionMismatchError, GridIndexOutOfBoundsError
from geoquery.grid.shape import (
    GridBoundingBox,
    GridBounds,
    GridIdx,
    as_grid_idx,
    grid_shape,
)

if TYPE_CHECKING:
    from geoquery.grid.no_data_grid import NoDataGrid


def values_equal_no_data(values: NDArray, no_data_value: Any | None) -> NDArray:
    """Element-wise no-data test; NaN sentinels match NaN values"""
    if no_data_value is None:
        return np.zeros(np.shape(values), dtype=bool)
    if isinstance(no_data_value, float) and np.isnan(no_data_value):
        return np.isnan(values)
    return values == no_data_value


class Grid:
    """
    Dense grid over a GridShape or GridBoundingBox

    The data array has the grid's ``axis_size()`` as its numpy shape. Indices
    passed to the accessors are absolute; they are translated by
    ``min_index`` before reaching the array.

    Attributes:
        shape: GridShape or GridBoundingBox describing the index space
        data: numpy array holding the pixel values
        no_data_value: Sentinel marking missing values (or None)

    Examples:
        >>> grid = Grid.new(GridShape2D((2, 2)), [1, 2, 3, 4], no_data_value=0)
        >>> grid.get_at_grid_index((1, 0))
        3
        >>> grid.get_at_grid_index((2, 0))
        Traceback (most recent call last):
        ...
        GridIndexOutOfBoundsError: ...
    """

    def __init__(self, shape: GridBounds, data: NDArray, no_data_value: Any | None = None):
        expected = shape.number_of_elements()
        if data.size != expected:
            raise DimensionMismatchError(expected, data.size)
        self.shape = shape
        self.data = data.reshape(shape.axis_size())
        self.no_data_value = (
            None if no_data_value is None else self.data.dtype.type(no_data_value).item()
        )

    @classmethod
    def new(
        cls,
        shape: GridBounds,
        data,
        no_data_value: Any | None = None,
        dtype=None,
    ) -> "Grid":
        """
        Create a grid from any array-like

        Args:
            shape: Index space of the grid
            data: Values in row-major order (flat or already shaped)
            no_data_value: Optional sentinel
            dtype: Optional numpy dtype to cast to

        Raises:
            DimensionMismatchError: If the data size differs from the shape
        """
        return cls(shape, np.asarray(data, dtype=dtype), no_data_value)

    @classmethod
    def new_filled(
        cls,
        shape: GridBounds,
        fill_value: Any,
        no_data_value: Any | None = None,
        dtype=None,
    ) -> "Grid":
        data = np.full(shape.axis_size(), fill_value, dtype=dtype)
        return cls(shape, data, no_data_value)

    @classmethod
    def from_no_data_grid(cls, no_data_grid: "NoDataGrid") -> "Grid":
        return cls.new_filled(
            no_data_grid.shape,
            no_data_grid.no_data_value,
            no_data_value=no_data_grid.no_data_value,
            dtype=no_data_grid.dtype,
        )

    # -------------------------------------------------------------------------
    # Size and bounds
    # -------------------------------------------------------------------------

    @property
    def ndim(self) -> int:
        return self.shape.ndim

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    def axis_size(self) -> tuple[int, ...]:
        return self.shape.axis_size()

    def number_of_elements(self) -> int:
        return self.shape.number_of_elements()

    def min_index(self) -> GridIdx:
        return self.shape.min_index()

    def max_index(self) -> GridIdx:
        return self.shape.max_index()

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def _array_index(self, index) -> tuple[int, ...]:
        return tuple(as_grid_idx(index) - self.shape.min_index())

    def _check_index(self, index) -> GridIdx:
        idx = as_grid_idx(index)
        if not self.shape.contains(idx):
            raise GridIndexOutOfBoundsError(idx, self.shape.min_index(), self.shape.max_index())
        return idx

    def get_at_grid_index(self, index) -> Any:
        return self.get_at_grid_index_unchecked(self._check_index(index))

    def get_at_grid_index_unchecked(self, index) -> Any:
        return self.data[self._array_index(index)].item()

    def set_at_grid_index(self, index, value: Any) -> None:
        self.set_at_grid_index_unchecked(self._check_index(index), value)

    def set_at_grid_index_unchecked(self, index, value: Any) -> None:
        self.data[self._array_index(index)] = value

    def is_no_data(self, value: Any) -> bool:
        return bool(values_equal_no_data(np.asarray(value), self.no_data_value))

    def no_data_mask(self) -> NDArray:
        """Boolean array, True where the cell holds the no-data value"""
        return values_equal_no_data(self.data, self.no_data_value)

    # -------------------------------------------------------------------------
    # Transformations
    # -------------------------------------------------------------------------

    def shift_by_offset(self, offset) -> "Grid":
        return Grid(self.shape.shift_by_offset(offset), self.data.copy(), self.no_data_value)

    def set_grid_bounds(self, bounds: GridBoundingBox) -> "Grid":
        """
        Re-base the grid onto another bounding box of the same element count

        Raises:
            InvalidGridBoundsError: If the bounds are degenerate
            DimensionMismatchError: If the element count differs
        """
        if not isinstance(bounds, GridBoundingBox):
            bounds = GridBoundingBox(*bounds)
        return Grid(bounds, self.data.copy(), self.no_data_value)

    def convert_dtype(self, dtype) -> "Grid":
        dtype = np.dtype(dtype)
        no_data = None if self.no_data_value is None else dtype.type(self.no_data_value).item()
        return Grid(self.shape, self.data.astype(dtype), no_data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (
            self.shape.bounding_box() == other.shape.bounding_box()
            and self.dtype == other.dtype
            and _sentinels_equal(self.no_data_value, other.no_data_value)
            and np.array_equal(self.data, other.data, equal_nan=self.dtype.kind == "f")
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"<Grid: {self.shape!r}>\n"
            f"  Dtype: {self.dtype}\n"
            f"  No-data: {self.no_data_value}"
        )


def _sentinels_equal(a: Any | None, b: Any | None) -> bool:
    if a is None or b is None:
        return a is b
    if isinstance(a, float) and isinstance(b, float) and np.isnan(a) and np.isnan(b):
        return True
    return a == b


def grid_from_array(array: NDArray, no_data_value: Any | None = None) -> Grid:
    """Wrap a numpy array into a grid anchored at index zero"""
    return Grid(grid_shape(array.shape), array, no_data_value)
