"""
Grid Access Protocols

Contracts shared by dense grids and virtual no-data grids, so callers can
treat both uniformly.
"""

from typing import Any, Protocol

import numpy as np

from geoquery.grid.shape import GridIdx


class GridSize(Protocol):
    """Anything with a fixed number of axes and elements"""

    @property
    def ndim(self) -> int:
        ...

    def axis_size(self) -> tuple[int, ...]:
        """
        Per-axis extents

        Returns:
            Tuple of sizes, slowest axis first (e.g. (rows, cols))
        """
        ...

    def number_of_elements(self) -> int:
        """Product of all axis sizes"""
        ...


class GridIndexAccess(GridSize, Protocol):
    """
    Pixel access by multi-index

    ``get_at_grid_index`` is bounds-checked and raises
    ``GridIndexOutOfBoundsError``; the unchecked variant leaves validation to
    the caller.
    """

    @property
    def dtype(self) -> np.dtype:
        ...

    @property
    def no_data_value(self) -> Any | None:
        ...

    def min_index(self) -> GridIdx:
        ...

    def max_index(self) -> GridIdx:
        ...

    def get_at_grid_index(self, index) -> Any:
        ...

    def get_at_grid_index_unchecked(self, index) -> Any:
        ...

    def shift_by_offset(self, offset) -> "GridIndexAccess":
        """Same contents over translated bounds"""
        ...

    def set_grid_bounds(self, bounds) -> "GridIndexAccess":
        """Same contents over arbitrary bounds of equal size"""
        ...
