"""
In-memory raster container used throughout trackenv.

A `Grid` is a single-band array of float cells, an affine transform that
places the array in space, and the CRS the transform is expressed in.
No-data cells are stored as NaN.
"""

import numpy as np
import rasterio
from affine import Affine
from rasterio.errors import RasterioIOError
from rasterio.transform import array_bounds, rowcol

from trackenv.errors import ParseError, ProjectionError
from trackenv.utils.geo import resolve_crs


class Grid:
    """
    A georeferenced 2-D grid of scalar values.

    Example:
    >>> grid = Grid.from_raster("ep_sst.tiff")
    >>> grid.valid_count
    >>> grid.sample([-120.5], [10.25])
    """

    def __init__(self, values: np.ndarray, transform: Affine, crs) -> None:
        """
        Args:
            values (np.ndarray): 2-D array of cell values, NaN for no data.
            transform (Affine): Affine transform from (col, row) to (x, y).
            crs: CRS-like value the transform is expressed in.
        """
        values = np.asarray(values, dtype="float64")
        if values.ndim != 2:
            raise ValueError(f"Grid values must be 2-D, got shape {values.shape}")
        self.values = values
        self.transform = transform
        self.crs = resolve_crs(crs)

    def __repr__(self) -> str:
        return f"Grid(shape={self.shape}, crs={self.crs.to_string()}, valid={self.valid_count})"

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape

    @property
    def height(self) -> int:
        return self.values.shape[0]

    @property
    def width(self) -> int:
        return self.values.shape[1]

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Bounds as (left, bottom, right, top)."""
        west, south, east, north = array_bounds(self.height, self.width, self.transform)
        return (west, south, east, north)

    @property
    def valid_mask(self) -> np.ndarray:
        return ~np.isnan(self.values)

    @property
    def valid_count(self) -> int:
        """Number of cells holding a value."""
        return int(self.valid_mask.sum())

    def sample(self, xs, ys) -> np.ndarray:
        """
        Read the value of the cell containing each (x, y) coordinate.
        Coordinates must be in the grid's CRS.

        Args:
            xs (array-like): X coordinates (longitude for geographic grids).
            ys (array-like): Y coordinates (latitude for geographic grids).
        Returns:
            np.ndarray: Cell values, NaN for points outside the grid.
        """
        xs = np.asarray(xs, dtype="float64")
        ys = np.asarray(ys, dtype="float64")
        result = np.full(xs.shape, np.nan)
        finite = np.isfinite(xs) & np.isfinite(ys)
        if not finite.any():
            return result

        rows, cols = rowcol(self.transform, xs[finite], ys[finite])
        rows = np.asarray(rows, dtype="int64")
        cols = np.asarray(cols, dtype="int64")
        inside = (rows >= 0) & (rows < self.height) & (cols >= 0) & (cols < self.width)

        sampled = np.full(rows.shape, np.nan)
        sampled[inside] = self.values[rows[inside], cols[inside]]
        result[finite] = sampled
        return result

    def to_geotiff(self, path: str) -> None:
        """
        Write the grid to a single-band float32 GeoTIFF with NaN as nodata.

        Args:
            path (str): Output file path.
        """
        profile = {
            'driver': 'GTiff',
            'height': self.height,
            'width': self.width,
            'count': 1,
            'dtype': 'float32',
            'crs': self.crs,
            'transform': self.transform,
            'nodata': np.nan,
            'compress': 'lzw'
        }
        with rasterio.open(path, 'w', **profile) as dst:
            dst.write(self.values.astype('float32'), 1)

    @classmethod
    def from_raster(cls, path: str, band: int = 1) -> "Grid":
        """
        Read one band of a raster file into a Grid. The file's nodata
        value (if any) is converted to NaN.

        Args:
            path (str): Path to the raster file.
            band (int): Band index, starting at 1.
        Returns:
            Grid: Grid with the band values.
        Raises:
            ParseError: If the file cannot be opened.
            ProjectionError: If the raster has no CRS.
        """
        try:
            with rasterio.open(path) as src:
                if src.crs is None:
                    raise ProjectionError(f"Raster {path} has no coordinate reference system")
                values = src.read(band, masked=True).astype("float64").filled(np.nan)
                return cls(values, src.transform, src.crs)
        except RasterioIOError as e:
            raise ParseError(f"Cannot read raster {path}: {e}") from e
