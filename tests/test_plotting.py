import matplotlib.pyplot as plt
import numpy as np
from rasterio.transform import from_origin

from trackenv.grid import Grid
from trackenv.plotting import plot_tracks_on_grid, save_map
from trackenv.rasterize import csv_to_raster
from trackenv.tracks import read_tracks


def test_plot_points_over_geographic_grid(tracks_csv):
    grid = Grid(np.arange(1.0, 10.0).reshape(3, 3), from_origin(10.0, 3.0, 1.0, 1.0), "EPSG:4326")
    ax = plot_tracks_on_grid(grid, read_tracks(tracks_csv), value_label="sst")
    assert ax.get_title() == "Tracks over sst"
    assert ax.get_xlabel() == "Longitude"
    assert ax.get_xlim() == (10.0, 13.0)
    assert len(ax.collections) == 1
    plt.close(ax.figure)


def test_plot_lines_over_projected_grid(tracks_csv, full_samples, mercator_reference, tmp_path):
    grid = csv_to_raster(full_samples, mercator_reference)
    ax = plot_tracks_on_grid(grid, read_tracks(tracks_csv), kind="lines", title="SST")
    assert ax.get_title() == "SST"
    assert ax.get_xlabel() == "Easting (m)"
    assert len(ax.collections) == 1

    path = tmp_path / "map.png"
    save_map(ax, str(path))
    assert path.exists() and path.stat().st_size > 0


def test_plot_grid_without_tracks():
    grid = Grid(np.full((2, 2), np.nan), from_origin(0.0, 2.0, 1.0, 1.0), "EPSG:4326")
    ax = plot_tracks_on_grid(grid)
    assert len(ax.images) == 1
    plt.close(ax.figure)
