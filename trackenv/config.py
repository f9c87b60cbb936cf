"""
Configuration models and YAML loading.

Parameters for each step are validated with pydantic models; the annotation
script reads them from a YAML file through `ConfigManager`.
"""

import os
from typing import Literal, Optional

import yaml
from box import Box
from pydantic import BaseModel, Field, field_validator, model_validator
from rasterio.enums import Resampling


class RasterizeConfig(BaseModel):
    """
    Parameters of the CSV grid to raster conversion.

    Attributes:
        sep (Optional[str]): Field delimiter of the input table. None lets
            pandas sniff the delimiter.
        resolution (Optional[tuple[float, float]]): Cell size (x, y) in
            degrees. Inferred from the sample spacing when not given.
        resampling (str): Resampling method used when warping to the
            reference CRS (a `rasterio.enums.Resampling` name).
        allow_empty (bool): Return an all no-data grid instead of raising
            when no samples fall inside the reference extent.
        match_reference (bool): Warp onto the reference raster's own cells
            instead of a layout computed from the grid footprint.
    """
    sep: Optional[str] = Field(default=",", description="Field delimiter, None to sniff")
    resolution: Optional[tuple[float, float]] = Field(
        default=None, description="Cell size (x, y) in degrees"
    )
    resampling: str = Field(default="nearest", description="Resampling method for reprojection")
    allow_empty: bool = Field(default=False, description="Return an empty grid instead of raising")
    match_reference: bool = Field(default=False, description="Warp onto the reference raster cells")

    @field_validator("resolution")
    @classmethod
    def check_resolution(cls, value):
        """
        Validate that both cell sizes are strictly positive.

        Raises:
            ValueError: If either cell size is not positive.
        """
        if value is not None and (value[0] <= 0 or value[1] <= 0):
            raise ValueError("`resolution` values must be positive")
        return value

    @field_validator("resampling")
    @classmethod
    def check_resampling(cls, value: str) -> str:
        """
        Validate that the resampling name is known to rasterio.

        Raises:
            ValueError: If the name is not a `Resampling` member.
        """
        if value not in Resampling.__members__:
            raise ValueError(
                f"Unknown resampling '{value}', expected one of {sorted(Resampling.__members__)}"
            )
        return value

    @property
    def resampling_method(self) -> Resampling:
        return Resampling[self.resampling]


class TracksConfig(BaseModel):
    """
    Column layout of an animal-tracking CSV.

    Attributes:
        id_col (str): Column identifying the animal.
        time_col (Optional[str]): Timestamp column, None if the file has none.
        lon_col (str): Longitude (or x) column.
        lat_col (str): Latitude (or y) column.
        crs (str): CRS of the coordinates.
    """
    id_col: str = Field(default="animal_id", description="Animal identifier column")
    time_col: Optional[str] = Field(default="datetime", description="Timestamp column")
    lon_col: str = Field(default="lon", description="Longitude column")
    lat_col: str = Field(default="lat", description="Latitude column")
    crs: str = Field(default="EPSG:4326", description="CRS of the coordinates")


class AnnotationConfig(BaseModel):
    """
    Inputs and outputs of the annotation workflow.

    Attributes:
        tracks_path (str): Animal-tracking CSV.
        grid_csv_path (str): Environmental CSV grid (lat, lon, value).
        reference_raster_path (str): Raster giving the target extent and CRS.
        value_name (str): Column name for the rasterized values in the output.
        extra_rasters (dict[str, str]): Further rasters to sample, column name -> path.
        output_dir (str): Directory for all outputs.
        write_raster (bool): Save the rasterized grid as a GeoTIFF.
        plot (Literal["none", "points", "lines"]): Map to save alongside the CSV.
        log_dir (Optional[str]): Directory for log files, None for console only.
    """
    tracks_path: str
    grid_csv_path: str
    reference_raster_path: str
    value_name: str = Field(default="value", description="Name of the annotated column")
    extra_rasters: dict[str, str] = Field(default_factory=dict)
    output_dir: str = Field(default="output")
    write_raster: bool = Field(default=True)
    plot: Literal["none", "points", "lines"] = Field(default="points")
    log_dir: Optional[str] = Field(default="logs")
    rasterize: RasterizeConfig = Field(default_factory=RasterizeConfig)
    tracks: TracksConfig = Field(default_factory=TracksConfig)

    @model_validator(mode="after")
    def check_column_names(self) -> "AnnotationConfig":
        """
        Validate that annotated column names are unique and do not collide
        with the track columns.

        Raises:
            ValueError: If a column name is reused.
        Returns:
            AnnotationConfig: The validated configuration instance.
        """
        names = [self.value_name, *self.extra_rasters.keys()]
        reserved = {self.tracks.id_col, self.tracks.lon_col, self.tracks.lat_col, "geometry"}
        if self.tracks.time_col:
            reserved.add(self.tracks.time_col)
        if len(set(names)) != len(names) or reserved.intersection(names):
            raise ValueError(
                f"Annotation column names {names} must be unique and differ from {sorted(reserved)}"
            )
        return self


class ConfigManager:
    """
    Class to manage configuration settings from a YAML file.
    """
    def __init__(self, config_file: str):
        """
        Initialize the ConfigManager with a configuration file.

        Args:
            config_file (str): Path to the YAML configuration file.
        """
        self.config = self.read_config(config_file)

    def read_config(self, config_file: str) -> Box:
        """
        Read and parse the YAML configuration file.

        Args:
            config_file (str): Path to the YAML configuration file.
        Returns:
            Box: Parsed configuration settings.
        Raises:
            FileNotFoundError: If the configuration file does not exist.
        """
        if not os.path.exists(config_file):
            raise FileNotFoundError(f"No config file found at {config_file}")
        with open(config_file, "r") as file:
            return Box(yaml.safe_load(file) or {})

    def annotation_config(self) -> AnnotationConfig:
        """
        Build the validated annotation settings from the `annotation`
        section of the file.

        Returns:
            AnnotationConfig: Validated settings.
        Raises:
            pydantic.ValidationError: If the section is missing fields or
                holds invalid values.
        """
        section = self.config.get("annotation", Box())
        return AnnotationConfig(**section.to_dict())
