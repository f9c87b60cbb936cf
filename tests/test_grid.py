import numpy as np
import pytest
from rasterio.transform import from_origin

from trackenv.errors import ParseError, ProjectionError
from trackenv.grid import Grid


@pytest.fixture
def grid():
    values = np.array([[1.0, 2.0, np.nan], [4.0, 5.0, 6.0]])
    return Grid(values, from_origin(10.0, 2.0, 1.0, 1.0), "EPSG:4326")


def test_grid_properties(grid):
    assert grid.shape == (2, 3)
    assert grid.width == 3 and grid.height == 2
    assert grid.valid_count == 5
    assert np.allclose(grid.bounds, (10.0, 0.0, 13.0, 2.0))


def test_grid_rejects_non_2d_values():
    with pytest.raises(ValueError):
        Grid(np.ones(3), from_origin(0, 1, 1, 1), "EPSG:4326")


def test_grid_sample_inside_and_outside(grid):
    values = grid.sample([10.5, 12.5, 12.5, 20.0, np.nan], [1.5, 0.5, 1.5, 1.0, 1.0])
    assert values[0] == 1.0
    assert values[1] == 6.0
    assert np.isnan(values[2])
    assert np.isnan(values[3])
    assert np.isnan(values[4])


def test_grid_sample_empty(grid):
    assert grid.sample([], []).size == 0


def test_grid_geotiff_round_trip(grid, tmp_path):
    path = str(tmp_path / "grid.tif")
    grid.to_geotiff(path)
    loaded = Grid.from_raster(path)
    assert loaded.crs.to_epsg() == 4326
    assert loaded.transform.almost_equals(grid.transform)
    assert np.array_equal(loaded.values, grid.values, equal_nan=True)


def test_from_raster_converts_nodata_to_nan(tmp_path):
    from conftest import write_raster

    values = np.array([[1.0, -9999.0], [3.0, 4.0]])
    path = write_raster(tmp_path / "nodata.tif", (0.0, 0.0, 2.0, 2.0), shape=(2, 2), values=values)
    loaded = Grid.from_raster(path)
    assert np.isnan(loaded.values[0, 1])
    assert loaded.valid_count == 3


def test_from_raster_without_crs_raises(reference_without_crs):
    with pytest.raises(ProjectionError):
        Grid.from_raster(reference_without_crs)


def test_from_raster_missing_file_raises(tmp_path):
    with pytest.raises(ParseError):
        Grid.from_raster(str(tmp_path / "missing.tif"))
