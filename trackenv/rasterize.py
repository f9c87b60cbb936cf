"""
Module for turning a CSV grid of environmental values into a raster that
lines up with a reference raster.

Environmental products are often distributed as plain tables of
(lat, lon, value) rows covering a much larger area than a study site. The
functions below:
- read such a table (first line is a title, columns taken by position)
- find the footprint of a reference raster in geographic coordinates
- keep the rows inside that footprint
- build a geographic grid from them
- warp the grid into the reference raster's CRS

`csv_to_raster` runs all of the steps; the individual steps are public so
they can be shown and inspected one at a time.
"""

import csv
import os
import re
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd
import rasterio
from pandas.errors import EmptyDataError, ParserError
from rasterio.enums import Resampling
from rasterio.errors import CRSError, RasterioError, RasterioIOError
from rasterio.transform import from_origin
from rasterio.warp import calculate_default_transform, reproject

from trackenv.config import RasterizeConfig
from trackenv.errors import EmptyResultError, ParseError, ProjectionError
from trackenv.grid import Grid
from trackenv.logger import Logger
from trackenv.utils.geo import WGS84, Extent, resolve_crs, same_crs, transform_extent

# Positional layout of the input table: source column index -> name.
# Longitude is the SECOND column and latitude the FIRST.
SAMPLE_COLUMNS = {1: "lon", 0: "lat", 2: "value"}

# Coordinates are compared at this many decimals (about 0.1 m) when
# inferring the cell size.
COORD_DECIMALS = 6

MAX_GRID_CELLS = 25_000_000

logger = Logger()


class ReferenceGrid(NamedTuple):
    """
    Footprint of a reference raster.

    Attributes:
        crs: Native CRS of the raster.
        bounds (Extent): Raster extent in its native CRS.
        extent (Extent): Raster extent in EPSG:4326.
        transform: Affine transform of the raster.
        shape (tuple[int, int]): (height, width) of the raster.
    """
    crs: object
    bounds: Extent
    extent: Extent
    transform: object
    shape: tuple[int, int]


def _short_lines(csv_path: str, sep: Optional[str]) -> list[int]:
    """
    Line numbers of data rows with fewer than three fields. pandas pads
    such rows with empty cells, so fields are counted on the raw lines.
    """
    with open(csv_path, newline="", encoding="utf-8") as file:
        next(file, None)  # title
        header = next(file, "")
        if sep is not None and len(sep) > 1:
            # pandas reads multi-character separators as regular expressions
            return [
                number for number, line in enumerate(file, start=3)
                if line.strip() and len(re.split(sep, line.strip())) < 3
            ]
        try:
            delimiter = sep if sep is not None else csv.Sniffer().sniff(header).delimiter
            reader = csv.reader(file, delimiter=delimiter)
            # line_num counts from the first data row, which is line 3 of the file
            return [reader.line_num + 2 for row in reader if row and len(row) < 3]
        except csv.Error as e:
            raise ParseError(f"Error parsing the file {csv_path}: {e}") from e


def read_point_samples(csv_path: str, sep: Optional[str] = ",") -> pd.DataFrame:
    """
    Reads a delimited table of point samples.

    The first line of the file is a title and is skipped; the second line
    is the column header. Columns are picked by position, not by name: the
    second column is the longitude, the first the latitude and the third
    the value. Extra columns are ignored, also when data rows carry more
    fields than the header. Empty cells become NaN, but every data row must
    have at least three fields.

    Args:
        csv_path (str): Path to the delimited text file.
        sep (Optional[str]): Field delimiter. None sniffs it from the data.

    Returns:
        pd.DataFrame: Float columns 'lon', 'lat' and 'value'.

    Raises:
        ParseError: If the file is missing or unreadable, has a header or
            a data row with fewer than three fields, or holds non-numeric
            cells in the first three columns.
    """
    if not os.path.exists(csv_path):
        raise ParseError(f"The file at {csv_path} does not exist.")

    try:
        raw = pd.read_csv(
            csv_path,
            skiprows=1,
            header=0,
            index_col=False,
            sep=sep,
            engine="python" if sep is None else "c",
        )
    except EmptyDataError as e:
        raise ParseError(f"No data rows in {csv_path}: {e}") from e
    except (ParserError, UnicodeDecodeError, OSError) as e:
        raise ParseError(f"Error parsing the file {csv_path}: {e}") from e

    if raw.shape[1] < 3:
        raise ParseError(
            f"{csv_path} has {raw.shape[1]} column(s) after the title line, at least 3 are required"
        )

    short_lines = _short_lines(csv_path, sep)
    if short_lines:
        raise ParseError(
            f"{csv_path} has {len(short_lines)} row(s) with fewer than 3 fields, "
            f"first at line(s) {short_lines[:5]}"
        )

    samples = raw.iloc[:, list(SAMPLE_COLUMNS)].copy()
    samples.columns = list(SAMPLE_COLUMNS.values())
    samples = samples[["lon", "lat", "value"]]

    try:
        samples = samples.apply(pd.to_numeric).astype("float64")
    except (ValueError, TypeError) as e:
        raise ParseError(f"Non-numeric coordinates or values in {csv_path}: {e}") from e

    logger.info(f"Read {len(samples)} samples from {os.path.basename(csv_path)}")
    return samples.reset_index(drop=True)


def _describe_reference(src) -> ReferenceGrid:
    if not src.crs:
        raise ProjectionError("Reference raster has no coordinate reference system")
    crs = resolve_crs(src.crs)
    bounds = Extent.from_bounds(tuple(src.bounds))
    extent = transform_extent(bounds, crs, WGS84)
    return ReferenceGrid(crs, bounds, extent, src.transform, (src.height, src.width))


def reference_extent(reference) -> ReferenceGrid:
    """
    Reads the CRS and footprint of a reference raster and reprojects the
    footprint to EPSG:4326.

    A path is opened and closed here. An already open rasterio dataset or a
    `Grid` is only read from; closing it stays with the caller.

    Args:
        reference: Path to a raster file, an open rasterio dataset or a Grid.

    Returns:
        ReferenceGrid: Native CRS, native bounds and geographic extent.

    Raises:
        ParseError: If the raster file cannot be opened.
        ProjectionError: If the raster has no usable CRS or its extent
            cannot be transformed.
    """
    if isinstance(reference, (str, os.PathLike)):
        try:
            with rasterio.open(reference) as src:
                return _describe_reference(src)
        except RasterioIOError as e:
            raise ParseError(f"Cannot read reference raster {reference}: {e}") from e
    return _describe_reference(reference)


def filter_to_extent(samples: pd.DataFrame, extent: Extent) -> pd.DataFrame:
    """
    Keeps the samples whose coordinates fall inside the extent. Both bounds
    are inclusive, so samples lying exactly on an edge are kept.

    Args:
        samples (pd.DataFrame): Samples with 'lon' and 'lat' columns.
        extent (Extent): Geographic extent.

    Returns:
        pd.DataFrame: The retained samples with a fresh index.
    """
    mask = (
        (samples["lon"] >= extent.min_lon)
        & (samples["lon"] <= extent.max_lon)
        & (samples["lat"] >= extent.min_lat)
        & (samples["lat"] <= extent.max_lat)
    )
    kept = samples[mask].reset_index(drop=True)
    logger.info(f"Samples inside extent: {len(kept)}/{len(samples)}")
    return kept


def _axis_spacing(coords: pd.Series) -> Optional[float]:
    unique = np.unique(np.round(coords.dropna().to_numpy(), COORD_DECIMALS))
    steps = np.diff(unique)
    steps = steps[steps > 0]
    return float(steps.min()) if steps.size else None


def infer_resolution(samples: pd.DataFrame, extent: Extent) -> tuple[float, float]:
    """
    Infers the cell size from the spacing of the sample coordinates.

    The smallest gap between distinct longitudes (latitudes) is used as the
    x (y) cell size. Coordinates are rounded to `COORD_DECIMALS` first so
    float noise does not shrink the cells. An axis with a single distinct value borrows the other
    axis' spacing; with a single sample the whole extent becomes one cell.

    Args:
        samples (pd.DataFrame): Samples with 'lon' and 'lat' columns.
        extent (Extent): Extent the grid will cover.

    Returns:
        tuple[float, float]: Cell size (x, y) in degrees.

    Raises:
        ValueError: If no positive cell size can be derived.
    """
    res_x = _axis_spacing(samples["lon"])
    res_y = _axis_spacing(samples["lat"])

    if res_x is None and res_y is None:
        res_x, res_y = extent.width, extent.height
    elif res_x is None:
        res_x = res_y
    elif res_y is None:
        res_y = res_x

    if not res_x or not res_y or res_x <= 0 or res_y <= 0:
        raise ValueError(f"Cannot infer a positive cell size for extent {extent}")
    return res_x, res_y


def _cell_count(size: float, cell: float) -> int:
    return max(1, int(np.ceil(round(size / cell, 9))))


def _cell_index(offsets: np.ndarray, cell: float) -> np.ndarray:
    # Rounding keeps samples sitting on a cell corner out of the previous cell.
    index = np.floor(np.round(offsets / cell, 9)).astype("int64")
    return np.maximum(index, 0)


def build_grid(
    samples: pd.DataFrame,
    extent: Extent,
    resolution: tuple[float, float],
    crs=WGS84,
) -> Grid:
    """
    Burns the samples into a grid anchored at the top-left corner of the
    given extent.

    The extent is split into whole cells no larger than the requested cell
    size, so samples at least one cell size apart never share a cell. Each
    sample lands in the cell whose top-left corner it lies on or after.
    Samples on the right or bottom edge of the extent get a cell of their
    own: the grid then grows by one column or row past the extent. Several
    samples in one cell are averaged.

    Args:
        samples (pd.DataFrame): Samples with 'lon', 'lat' and 'value' columns,
            inside `extent`.
        extent (Extent): Extent in `crs`.
        resolution (tuple[float, float]): Requested cell size (x, y).
        crs: CRS of the extent and the samples.

    Returns:
        Grid: Grid with NaN in cells without samples.

    Raises:
        ValueError: If the grid would hold more than `MAX_GRID_CELLS` cells.
    """
    res_x, res_y = resolution
    width = _cell_count(extent.width, res_x)
    height = _cell_count(extent.height, res_y)
    cell_x = extent.width / width if extent.width > 0 else res_x
    cell_y = extent.height / height if extent.height > 0 else res_y

    if not samples.empty:
        cols = _cell_index(samples["lon"].to_numpy() - extent.min_lon, cell_x)
        rows = _cell_index(extent.max_lat - samples["lat"].to_numpy(), cell_y)
        width = max(width, int(cols.max()) + 1)
        height = max(height, int(rows.max()) + 1)

    if width * height > MAX_GRID_CELLS:
        raise ValueError(
            f"A {height}x{width} grid exceeds {MAX_GRID_CELLS} cells, set a coarser resolution"
        )

    transform = from_origin(extent.min_lon, extent.max_lat, cell_x, cell_y)
    values = np.full((height, width), np.nan)

    if not samples.empty:
        cells = pd.DataFrame({
            "row": rows,
            "col": cols,
            "value": samples["value"].to_numpy(),
        })
        means = cells.groupby(["row", "col"])["value"].mean()
        values[
            means.index.get_level_values("row"),
            means.index.get_level_values("col"),
        ] = means.to_numpy()

    return Grid(values, transform, crs)


def reproject_grid(
    grid: Grid,
    dst_crs,
    resampling: Resampling = Resampling.nearest,
    reference: Optional[ReferenceGrid] = None,
) -> Grid:
    """
    Warps a grid into another CRS.

    Without `reference` the output transform and size are those GDAL
    suggests for the grid's footprint in `dst_crs`. With `reference` the
    grid is warped onto the reference raster's own cells instead. A grid
    already in `dst_crs` is returned as a copy without resampling unless a
    reference is given.

    Args:
        grid (Grid): Source grid.
        dst_crs: Target CRS-like value.
        resampling (Resampling): Resampling method.
        reference (Optional[ReferenceGrid]): Target cell layout.

    Returns:
        Grid: The warped grid, NaN where no source data maps.

    Raises:
        ProjectionError: If the target CRS is unusable or warping fails.
    """
    dst = resolve_crs(dst_crs)
    if reference is None and same_crs(grid.crs, dst):
        return Grid(grid.values.copy(), grid.transform, dst)

    try:
        if reference is not None:
            dst_transform = reference.transform
            dst_height, dst_width = reference.shape
        else:
            dst_transform, dst_width, dst_height = calculate_default_transform(
                grid.crs, dst, grid.width, grid.height, *grid.bounds
            )

        destination = np.full((dst_height, dst_width), np.nan)
        reproject(
            source=grid.values,
            destination=destination,
            src_transform=grid.transform,
            src_crs=grid.crs,
            dst_transform=dst_transform,
            dst_crs=dst,
            resampling=resampling,
            src_nodata=np.nan,
            dst_nodata=np.nan,
        )
    except (CRSError, RasterioError, ValueError) as e:
        raise ProjectionError(f"Reprojection from {grid.crs} to {dst} failed: {e}") from e

    return Grid(destination, dst_transform, dst)


def csv_to_raster(
    csv_path: str,
    reference,
    config: Optional[RasterizeConfig] = None,
) -> Grid:
    """
    Converts a (lat, lon, value) CSV grid into a raster in the CRS of a
    reference raster, restricted to the reference raster's footprint.

    Steps:
        1. Read the table, skipping its title line (`read_point_samples`).
        2. Take the second, first and third columns as lon, lat and value.
        3. Reproject the reference footprint to EPSG:4326 (`reference_extent`).
        4. Keep rows inside the footprint, bounds inclusive (`filter_to_extent`).
        5. Build an EPSG:4326 grid over the footprint (`build_grid`).
        6. Warp it into the reference CRS (`reproject_grid`).

    When no row is inside the footprint an `EmptyResultError` is raised,
    unless `config.allow_empty` is set, in which case an all no-data grid
    is returned.

    Args:
        csv_path (str): Path to the delimited table.
        reference: Path to the reference raster, an open rasterio dataset
            or a Grid.
        config (Optional[RasterizeConfig]): Delimiter, cell size,
            resampling, empty-result handling and output layout.

    Returns:
        Grid: Grid in the reference raster's CRS.

    Raises:
        ParseError: If the table cannot be read or has rows with too few
            fields.
        ProjectionError: If the reference raster has no usable CRS or
            reprojection fails.
        EmptyResultError: If no sample falls inside the footprint and
            empty results are not allowed.
        ValueError: If the cell size gives a grid larger than `MAX_GRID_CELLS`.

    Example:
        >>> sst = csv_to_raster("data/sst.csv", "data/ep_sst.tiff")
        >>> sst.to_geotiff("sst_ep.tiff")
    """
    config = config or RasterizeConfig()

    samples = read_point_samples(csv_path, sep=config.sep)
    ref = reference_extent(reference)
    logger.info(f"Reference extent in {WGS84}: {tuple(round(v, 6) for v in ref.extent)}")

    kept = filter_to_extent(samples, ref.extent)
    if kept.empty:
        if not config.allow_empty:
            raise EmptyResultError(
                f"None of the {len(samples)} samples in {csv_path} fall inside {ref.extent}"
            )
        logger.warning(f"No samples from {csv_path} inside the reference extent, returning an empty grid")

    resolution = config.resolution or (
        infer_resolution(kept, ref.extent) if not kept.empty
        else (ref.extent.width or 1.0, ref.extent.height or 1.0)
    )
    grid = build_grid(kept, ref.extent, resolution, crs=WGS84)
    logger.info(f"Geographic grid {grid.shape} with {grid.valid_count} valid cells")

    result = reproject_grid(
        grid,
        ref.crs,
        resampling=config.resampling_method,
        reference=ref if config.match_reference else None,
    )
    logger.info(f"Output grid {result.shape} in {result.crs.to_string()}, {result.valid_count} valid cells")
    return result
