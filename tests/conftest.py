import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
import rasterio
from rasterio.transform import from_bounds
from rasterio.warp import transform_bounds


def write_raster(path, bounds, shape=(3, 3), crs="EPSG:4326", values=None):
    """Write a single-band float32 GeoTIFF covering `bounds` (left, bottom, right, top)."""
    height, width = shape
    if values is None:
        values = np.arange(1, height * width + 1, dtype="float32").reshape(shape)
    profile = {
        "driver": "GTiff",
        "height": height,
        "width": width,
        "count": 1,
        "dtype": "float32",
        "transform": from_bounds(*bounds, width, height),
        "nodata": -9999.0,
    }
    if crs is not None:
        profile["crs"] = crs
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(np.asarray(values, dtype="float32"), 1)
    return str(path)


def write_samples(path, rows, header="lat,lon,sst", title="SST export", sep=","):
    """Write a sample table: title line, header line, then `rows` of (lat, lon, value)."""
    lines = [title, header] + [sep.join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n")
    return str(path)


@pytest.fixture
def geographic_reference(tmp_path):
    """3x3 one-degree raster in EPSG:4326 covering lon 10..13, lat 0..3."""
    return write_raster(tmp_path / "ref_4326.tif", (10.0, 0.0, 13.0, 3.0))


@pytest.fixture
def mercator_reference(tmp_path):
    """Raster in EPSG:3857 whose footprint is lon 10..13, lat 0..3."""
    bounds = transform_bounds("EPSG:4326", "EPSG:3857", 10.0, 0.0, 13.0, 3.0)
    return write_raster(tmp_path / "ref_3857.tif", bounds, shape=(6, 6), crs="EPSG:3857")


@pytest.fixture
def reference_without_crs(tmp_path):
    return write_raster(tmp_path / "ref_nocrs.tif", (10.0, 0.0, 13.0, 3.0), crs=None)


@pytest.fixture
def diagonal_samples(tmp_path):
    """Three samples at cell centres inside lon 10..13, lat 0..3, plus two far outside."""
    rows = [
        (0.5, 10.5, 1.0),
        (1.5, 11.5, 2.0),
        (2.5, 12.5, 3.0),
        (40.0, -30.0, 99.0),
        (-40.0, 150.0, 98.0),
    ]
    return write_samples(tmp_path / "diagonal.csv", rows)


@pytest.fixture
def full_samples(tmp_path):
    """A complete 3x3 one-degree grid of samples at cell centres, values 1..9."""
    rows = []
    value = 1.0
    for lat in (2.5, 1.5, 0.5):
        for lon in (10.5, 11.5, 12.5):
            rows.append((lat, lon, value))
            value += 1.0
    return write_samples(tmp_path / "full.csv", rows)


@pytest.fixture
def tracks_csv(tmp_path):
    data = pd.DataFrame({
        "animal_id": ["turtle_b", "turtle_a", "turtle_a", "turtle_a", "turtle_b", "turtle_c"],
        "datetime": [
            "2023-05-02 10:00:00",
            "2023-05-01 12:00:00",
            "2023-05-01 08:00:00",
            "2023-05-01 16:00:00",
            "2023-05-02 08:00:00",
            "2023-05-03 08:00:00",
        ],
        "lon": [11.5, 10.5, 10.2, 12.5, 11.2, None],
        "lat": [1.5, 2.5, 2.8, 0.5, 1.2, 1.0],
    })
    path = tmp_path / "tracks.csv"
    data.to_csv(path, index=False)
    return str(path)
