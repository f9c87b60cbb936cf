"""
Module for sampling raster coverage values along animal trajectories.

This module provides the CoverageSampler class, which allows you to:
- Load a raster file (e.g., sea surface temperature, land cover) or use an
  in-memory Grid produced by `trackenv.rasterize`
- Load a set of GPS trajectories from file
- Sample the raster values at trajectory point locations
- Return a GeoDataFrame with coverage values for each point
"""

from typing import Optional, Union

import geopandas as gpd
from pyproj.exceptions import CRSError
from tqdm import tqdm

from trackenv.config import TracksConfig
from trackenv.errors import ProjectionError
from trackenv.grid import Grid
from trackenv.logger import Logger
from trackenv.tracks import read_tracks

logger = Logger()


class CoverageSampler:
    """
    A class for extracting raster coverage values for GPS trajectory points.

    This is useful for spatiotemporal ecological analyses, such as linking
    animal movement data with environmental variables (e.g., sea surface
    temperature, elevation).

    Example:
    >>> cs = CoverageSampler()
    >>> cs.read_raster("ep_sst.tiff")
    >>> cs.read_trajectories("turtles.csv")
    >>> results = cs.get_coverage("sst")
    """
    def __init__(self) -> None:
        self.grid: Optional[Grid] = None
        self.trajectories_data = gpd.GeoDataFrame()

    @property
    def raster_crs(self):
        return self.grid.crs if self.grid is not None else None

    def read_raster(self, path: str, crs=None, band: int = 1) -> None:
        """
        Loads a raster file and sets the coordinate reference system (CRS).

        Args:
            path (str): Path to the raster file (e.g., GeoTIFF).
            crs (optional): CRS to override the raster's CRS. If not
                provided, the CRS is taken from the file itself.
            band (int): Band to sample, starting at 1.
        """
        grid = Grid.from_raster(path, band=band)
        if crs:
            grid = Grid(grid.values, grid.transform, crs)
        self.grid = grid

    def set_grid(self, grid: Grid) -> None:
        """
        Uses an in-memory grid as the raster to sample.

        Args:
            grid (Grid): Grid to sample.
        """
        self.grid = grid

    def read_trajectories(self, path: str, config: Optional[TracksConfig] = None) -> None:
        """
        Loads trajectory data from a CSV file.

        Args:
            path (str): Path to the tracking CSV.
            config (Optional[TracksConfig]): Column names and CRS of the file.
        """
        self.trajectories_data = read_tracks(path, config)

    def set_trajectories(self, tracks: gpd.GeoDataFrame) -> None:
        """
        Uses already loaded trajectory points.

        Args:
            tracks (gpd.GeoDataFrame): Point fixes with a CRS.
        """
        self.trajectories_data = tracks

    def get_coverage(self, column: str = "coverage") -> gpd.GeoDataFrame:
        """
        Samples raster values at each trajectory point. Points are
        reprojected to the raster CRS for sampling; the returned frame keeps
        the original geometry.

        Args:
            column (str): Name of the column receiving the sampled values.

        Returns:
            gpd.GeoDataFrame: The trajectory data with an additional column
                of sampled raster values, NaN for points on no-data cells or
                outside the raster.

        Raises:
            ValueError: If the raster or the trajectories are not loaded.
            ProjectionError: If the trajectories have no CRS or cannot be
                transformed to the raster CRS.
        """
        if self.grid is None:
            raise ValueError("Raster is not set. Call read_raster or set_grid first.")
        if self.trajectories_data.empty:
            raise ValueError("Trajectories are not set. Call read_trajectories or set_trajectories first.")
        if self.trajectories_data.crs is None:
            raise ProjectionError("Trajectories have no coordinate reference system")

        try:
            points = self.trajectories_data.geometry.to_crs(self.grid.crs.to_wkt())
        except CRSError as e:
            raise ProjectionError(f"Cannot transform trajectories to {self.grid.crs}: {e}") from e

        values = self.grid.sample(points.x.to_numpy(), points.y.to_numpy())

        result = self.trajectories_data.copy()
        result[column] = values

        missing = int(result[column].isna().sum())
        if missing:
            logger.warning(f"{missing}/{len(result)} points have no '{column}' value")
        return result


def annotate_tracks(
    tracks: gpd.GeoDataFrame,
    rasters: dict[str, Union[Grid, str]],
) -> gpd.GeoDataFrame:
    """
    Annotates trajectory points with values from several rasters, one
    column per raster.

    Args:
        tracks (gpd.GeoDataFrame): Point fixes with a CRS.
        rasters (dict[str, Grid | str]): Column name -> Grid or raster path.

    Returns:
        gpd.GeoDataFrame: The trajectory data with one extra column per raster.
    """
    sampler = CoverageSampler()
    sampler.set_trajectories(tracks)
    for column, raster in tqdm(rasters.items(), total=len(rasters), desc="Annotating"):
        if isinstance(raster, Grid):
            sampler.set_grid(raster)
        else:
            sampler.read_raster(raster)
        sampler.set_trajectories(sampler.get_coverage(column))
        logger.info(f"Annotated tracks with '{column}'")
    return sampler.trajectories_data
