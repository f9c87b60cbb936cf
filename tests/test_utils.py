import pytest
from pyproj import CRS

from trackenv.errors import ProjectionError
from trackenv.utils.geo import Extent, check_crs_is_metric, resolve_crs, same_crs, transform_extent


def test_extent_bounds_order():
    extent = Extent.from_bounds((10.0, 0.0, 13.0, 3.0))
    assert extent == Extent(10.0, 13.0, 0.0, 3.0)
    assert extent.as_bounds() == (10.0, 0.0, 13.0, 3.0)
    assert extent.width == 3.0 and extent.height == 3.0


@pytest.mark.parametrize("value", [4326, "EPSG:4326", "epsg:4326", CRS.from_epsg(4326)])
def test_resolve_crs_accepts_common_inputs(value):
    assert resolve_crs(value).to_epsg() == 4326


@pytest.mark.parametrize("value", [None, "", "not a crs"])
def test_resolve_crs_rejects_unusable_input(value):
    with pytest.raises(ProjectionError):
        resolve_crs(value)


def test_same_crs():
    assert same_crs("EPSG:4326", 4326)
    assert not same_crs("EPSG:4326", "EPSG:3857")


def test_returns_true_for_metric_crs():
    assert check_crs_is_metric(CRS.from_epsg(3857)) is True


def test_returns_false_for_geographic_crs():
    assert check_crs_is_metric(CRS.from_epsg(4326)) is False


def test_accepts_crs_as_string_and_returns_true_for_metric():
    assert check_crs_is_metric("EPSG:3857") is True


def test_transform_extent_same_crs_is_unchanged():
    extent = Extent(10.0, 13.0, 0.0, 3.0)
    assert transform_extent(extent, 4326, "EPSG:4326") == extent


def test_transform_extent_round_trip():
    extent = Extent(10.0, 13.0, 0.0, 3.0)
    projected = transform_extent(extent, "EPSG:4326", "EPSG:3857")
    assert projected.min_lon == pytest.approx(1113194.9, abs=1.0)
    back = transform_extent(projected, "EPSG:3857", "EPSG:4326")
    assert back == pytest.approx(extent, abs=1e-9)
