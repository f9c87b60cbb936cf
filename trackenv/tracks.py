"""
Module for loading animal-tracking data.

Tracking files are CSV tables with one fix per row: an animal identifier,
a timestamp and a pair of coordinates. They are loaded into GeoDataFrames
of points so they can be reprojected, plotted on top of rasters and
annotated with raster values.
"""

import os
from typing import Optional

import geopandas as gpd
import pandas as pd
from pandas.errors import EmptyDataError, ParserError
from shapely.geometry import LineString

from trackenv.config import TracksConfig
from trackenv.errors import ParseError
from trackenv.logger import Logger

logger = Logger()


def parse_time(dataframe: pd.DataFrame, time_col: str) -> pd.DataFrame:
    """
    Converts the time column to datetime. Values that cannot be parsed
    become NaT and are logged.

    Args:
        dataframe (pd.DataFrame): Tracking data.
        time_col (str): Name of the timestamp column.

    Returns:
        pd.DataFrame: The same frame with a datetime column.
    """
    parsed = pd.to_datetime(dataframe[time_col], errors="coerce")
    failed = int(parsed.isna().sum() - dataframe[time_col].isna().sum())
    if failed:
        logger.warning(f"Time parser error: {failed} value(s) in '{time_col}' could not be parsed")
    dataframe[time_col] = parsed
    return dataframe


def read_tracks(csv_path: str, config: Optional[TracksConfig] = None) -> gpd.GeoDataFrame:
    """
    Reads an animal-tracking CSV into a GeoDataFrame of points.

    Rows without coordinates are dropped, the timestamp column (if any) is
    parsed, and fixes are sorted by animal and time.

    Args:
        csv_path (str): Path to the CSV file.
        config (Optional[TracksConfig]): Column names and CRS of the file.

    Returns:
        gpd.GeoDataFrame: One point per fix, in the CRS of the file.

    Raises:
        ParseError: If the file is missing, unreadable, lacks one of the
            configured columns or has non-numeric coordinates.

    Example:
        >>> tracks = read_tracks("data/turtles.csv", TracksConfig(id_col="id"))
    """
    config = config or TracksConfig()

    if not os.path.exists(csv_path):
        raise ParseError(f"The file at {csv_path} does not exist.")

    try:
        data = pd.read_csv(csv_path)
    except (EmptyDataError, ParserError, UnicodeDecodeError) as e:
        raise ParseError(f"Error parsing the CSV file {csv_path}: {e}") from e

    required = [config.id_col, config.lon_col, config.lat_col]
    if config.time_col:
        required.append(config.time_col)
    missing = [col for col in required if col not in data.columns]
    if missing:
        raise ParseError(f"{csv_path} is missing column(s) {missing}")

    try:
        data[config.lon_col] = pd.to_numeric(data[config.lon_col])
        data[config.lat_col] = pd.to_numeric(data[config.lat_col])
    except (ValueError, TypeError) as e:
        raise ParseError(f"Non-numeric coordinates in {csv_path}: {e}") from e

    rows_no = len(data)
    data = data.dropna(subset=[config.lon_col, config.lat_col]).copy()

    sort_cols = [config.id_col]
    if config.time_col:
        data = parse_time(data, config.time_col)
        sort_cols.append(config.time_col)
    data = data.sort_values(sort_cols, kind="stable").reset_index(drop=True)

    gdf = gpd.GeoDataFrame(
        data,
        geometry=gpd.points_from_xy(data[config.lon_col], data[config.lat_col]),
        crs=config.crs,
    )
    logger.info(
        f"{os.path.basename(csv_path)} loaded. Rows {len(gdf)}/{rows_no}, "
        f"animals {gdf[config.id_col].nunique()}"
    )
    return gdf


def tracks_to_lines(tracks: gpd.GeoDataFrame, id_col: str = "animal_id") -> gpd.GeoDataFrame:
    """
    Joins the fixes of each animal into a single line, in row order.
    Animals with one fix keep no line.

    Args:
        tracks (gpd.GeoDataFrame): Point fixes, sorted by animal and time.
        id_col (str): Animal identifier column.

    Returns:
        gpd.GeoDataFrame: One LineString per animal with a 'n_fixes' column.
    """
    ids, counts, geometries = [], [], []
    for animal_id, group in tracks.groupby(id_col, sort=True):
        if len(group) < 2:
            continue
        ids.append(animal_id)
        counts.append(len(group))
        geometries.append(LineString([(point.x, point.y) for point in group.geometry]))
    return gpd.GeoDataFrame({id_col: ids, "n_fixes": counts}, geometry=geometries, crs=tracks.crs)
