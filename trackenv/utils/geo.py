from typing import NamedTuple

from pyproj import CRS
from rasterio.crs import CRS as RasterCRS
from rasterio.errors import CRSError, RasterioError
from rasterio.warp import transform_bounds

from trackenv.errors import ProjectionError

WGS84 = "EPSG:4326"


class Extent(NamedTuple):
    """
    Axis-aligned bounding box, ordered as (xmin, xmax, ymin, ymax).

    In geographic coordinates the fields read as longitude and latitude
    bounds. Note the order differs from rasterio's (left, bottom, right, top).
    """
    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float

    @classmethod
    def from_bounds(cls, bounds) -> "Extent":
        """Build an Extent from a (left, bottom, right, top) sequence."""
        left, bottom, right, top = bounds
        return cls(float(left), float(right), float(bottom), float(top))

    def as_bounds(self) -> tuple[float, float, float, float]:
        """Return the extent as (left, bottom, right, top)."""
        return (self.min_lon, self.min_lat, self.max_lon, self.max_lat)

    @property
    def width(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def height(self) -> float:
        return self.max_lat - self.min_lat


def resolve_crs(crs) -> RasterCRS:
    """
    Turn any CRS-like input (EPSG code, "EPSG:xxxx" string, WKT, PROJ
    string, rasterio or pyproj CRS) into a rasterio CRS.

    Args:
        crs: CRS-like value.
    Returns:
        rasterio.crs.CRS: Parsed CRS.
    Raises:
        ProjectionError: If `crs` is empty or cannot be parsed.
    """
    if crs is None or (isinstance(crs, str) and not crs.strip()):
        raise ProjectionError("No coordinate reference system provided")
    if isinstance(crs, RasterCRS):
        return crs
    if isinstance(crs, int):
        crs = f"EPSG:{crs}"
    elif isinstance(crs, CRS):
        crs = crs.to_wkt()
    try:
        return RasterCRS.from_user_input(crs)
    except CRSError as e:
        raise ProjectionError(f"Invalid coordinate reference system {crs!r}: {e}") from e


def same_crs(first, second) -> bool:
    """
    Check whether two CRS-like values describe the same system. CRSs read
    from different files may differ in WKT details while sharing an EPSG code.
    """
    first, second = resolve_crs(first), resolve_crs(second)
    if first == second:
        return True
    epsg = first.to_epsg()
    return epsg is not None and epsg == second.to_epsg()


def check_crs_is_metric(crs: CRS | str) -> bool:
    """
    Check if a given CRS is projected and uses metric units (meters).

    Args:
        crs (CRS | str): A pyproj CRS object or a string representation of a CRS.
    Returns:
        bool: True if the CRS is projected and uses meters, False otherwise.
    """
    if not isinstance(crs, CRS):
        crs = CRS.from_user_input(resolve_crs(crs).to_wkt())
    return crs.is_projected and crs.axis_info[0].unit_name.lower() == 'metre'


def transform_extent(extent: Extent, src_crs, dst_crs, densify_pts: int = 21) -> Extent:
    """
    Reproject an extent from one CRS to another. Edges are densified so
    curved boundaries in the target CRS are still fully enclosed.

    Args:
        extent (Extent): Extent in `src_crs`.
        src_crs: Source CRS-like value.
        dst_crs: Target CRS-like value.
        densify_pts (int): Number of points added along each edge.
    Returns:
        Extent: Bounding box of the reprojected extent.
    Raises:
        ProjectionError: If either CRS is unusable or the transform fails.
    """
    src = resolve_crs(src_crs)
    dst = resolve_crs(dst_crs)
    if same_crs(src, dst):
        return extent
    try:
        bounds = transform_bounds(src, dst, *extent.as_bounds(), densify_pts=densify_pts)
    except (CRSError, RasterioError, ValueError) as e:
        raise ProjectionError(f"Extent transform from {src} to {dst} failed: {e}") from e
    return Extent.from_bounds(bounds)
