"""
GeoQuery Grid Module

N-dimensional index arithmetic, dense grids and virtual no-data grids.
"""

from geoquery.grid.base import GridIndexAccess, GridSize
from geoquery.grid.grid import Grid, grid_from_array
from geoquery.grid.no_data_grid import GridOrEmpty, NoDataGrid
from geoquery.grid.shape import (
    GridBoundingBox,
    GridBoundingBox1D,
    GridBoundingBox2D,
    GridBoundingBox3D,
    GridIdx,
    GridShape,
    GridShape1D,
    GridShape2D,
    GridShape3D,
    grid_shape,
)

__all__ = [
    "Grid",
    "GridBoundingBox",
    "GridBoundingBox1D",
    "GridBoundingBox2D",
    "GridBoundingBox3D",
    "GridIdx",
    "GridIndexAccess",
    "GridOrEmpty",
    "GridShape",
    "GridShape1D",
    "GridShape2D",
    "GridShape3D",
    "GridSize",
    "NoDataGrid",
    "grid_from_array",
    "grid_shape",
]
