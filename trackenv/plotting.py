"""
Maps of tracking data over environmental rasters.
"""

from typing import Literal, Optional

import geopandas as gpd
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from trackenv.grid import Grid
from trackenv.tracks import tracks_to_lines
from trackenv.utils.geo import check_crs_is_metric

sns.set_style("white")


def plot_tracks_on_grid(
    grid: Grid,
    tracks: Optional[gpd.GeoDataFrame] = None,
    id_col: str = "animal_id",
    kind: Literal["points", "lines"] = "points",
    value_label: str = "value",
    title: Optional[str] = None,
    cmap: str = "viridis",
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    """
    Draws a grid with animal tracks on top, in the grid's CRS.

    Args:
        grid (Grid): Environmental grid to draw.
        tracks (Optional[gpd.GeoDataFrame]): Point fixes, reprojected to the
            grid CRS before drawing.
        id_col (str): Animal identifier column, used for colours and lines.
        kind (Literal["points", "lines"]): Draw fixes or one line per animal.
        value_label (str): Colorbar label.
        title (Optional[str]): Plot title.
        cmap (str): Matplotlib colormap for the grid.
        ax (Optional[plt.Axes]): Axes to draw on, a new figure if None.

    Returns:
        plt.Axes: The axes holding the map.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 6))

    left, bottom, right, top = grid.bounds
    image = ax.imshow(
        np.ma.masked_invalid(grid.values),
        extent=(left, right, bottom, top),
        origin="upper",
        cmap=cmap,
    )
    ax.figure.colorbar(image, ax=ax, label=value_label)

    if tracks is not None and not tracks.empty:
        projected = tracks.to_crs(grid.crs.to_wkt())
        if kind == "lines":
            layer = tracks_to_lines(projected, id_col=id_col)
            if not layer.empty:
                layer.plot(ax=ax, column=id_col, categorical=True, linewidth=1.5, cmap="tab10")
        else:
            projected.plot(ax=ax, column=id_col, categorical=True, markersize=8, cmap="tab10")

    ax.set_xlim(left, right)
    ax.set_ylim(bottom, top)
    if grid.crs.is_geographic:
        ax.set_xlabel("Longitude")
        ax.set_ylabel("Latitude")
    elif check_crs_is_metric(grid.crs):
        ax.set_xlabel("Easting (m)")
        ax.set_ylabel("Northing (m)")
    ax.set_title(title or f"Tracks over {value_label}")
    return ax


def save_map(ax: plt.Axes, path: str, dpi: int = 150) -> None:
    """
    Saves the figure holding `ax` and closes it.

    Args:
        ax (plt.Axes): Axes returned by `plot_tracks_on_grid`.
        path (str): Output image path.
        dpi (int): Output resolution.
    """
    fig = ax.figure
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
