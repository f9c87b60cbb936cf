"""
Script for annotating animal trajectory data with environmental values.

This script uses three components:
1. csv_to_raster - turns an environmental CSV grid (lat, lon, value) into a
   raster matching the footprint and CRS of a reference raster.
2. CoverageSampler - samples the rasterized values (and any extra rasters)
   at the trajectory points.
3. plot_tracks_on_grid - draws the trajectories over the rasterized grid.

Inputs (read from the `annotation` section of CONFIG_FILE):
    tracks_path (str): Path to the animal trajectories CSV.
    grid_csv_path (str): Path to the environmental CSV grid.
    reference_raster_path (str): Path to the reference raster.

Outputs (written to `output_dir`):
    - "<value_name>_grid.tif" (if `write_raster`)
    - "animal_with_environment_annotation.csv"
    - "tracks_map.png" (unless `plot` is "none")
"""

import os

from trackenv.config import AnnotationConfig, ConfigManager
from trackenv.coverage import annotate_tracks
from trackenv.logger import Logger
from trackenv.plotting import plot_tracks_on_grid, save_map
from trackenv.rasterize import csv_to_raster
from trackenv.tracks import read_tracks

CONFIG_FILE = 'config.yaml'


def run(config: AnnotationConfig) -> str:
    """
    Runs the annotation workflow for a validated configuration.

    Workflow:
        1. Rasterize the environmental CSV against the reference raster.
        2. Optionally save the grid as a GeoTIFF.
        3. Load the trajectories and sample the grid and extra rasters.
        4. Save the annotated trajectories as CSV.
        5. Optionally save a map of the trajectories over the grid.

    Args:
        config (AnnotationConfig): Workflow settings.

    Returns:
        str: Path to the annotated CSV.
    """
    logger = Logger()
    if config.log_dir:
        logger.add_file_handler(config.log_dir)

    os.makedirs(config.output_dir, exist_ok=True)

    grid = csv_to_raster(config.grid_csv_path, config.reference_raster_path, config.rasterize)
    if config.write_raster:
        raster_path = os.path.join(config.output_dir, f"{config.value_name}_grid.tif")
        grid.to_geotiff(raster_path)
        logger.info(f"Saved grid to file: {raster_path}")

    tracks = read_tracks(config.tracks_path, config.tracks)
    rasters = {config.value_name: grid, **config.extra_rasters}
    annotated = annotate_tracks(tracks, rasters)

    csv_path = os.path.join(config.output_dir, "animal_with_environment_annotation.csv")
    annotated.drop(columns="geometry").to_csv(csv_path, index=False)
    logger.info(f"Saved annotated tracks to file: {csv_path}")

    if config.plot != "none":
        ax = plot_tracks_on_grid(
            grid,
            tracks,
            id_col=config.tracks.id_col,
            kind=config.plot,
            value_label=config.value_name,
        )
        map_path = os.path.join(config.output_dir, "tracks_map.png")
        save_map(ax, map_path)
        logger.info(f"Saved map to file: {map_path}")

    return csv_path


def main(config_file: str = CONFIG_FILE) -> None:
    """
    Main pipeline for enriching animal trajectory data with environmental
    information, driven by a YAML configuration file.

    Args:
        config_file (str): Path to the YAML configuration file.

    Returns:
        None
    """
    config = ConfigManager(config_file).annotation_config()
    run(config)


if __name__ == "__main__":
    # Ensure the main function is called when the script is executed directly.
    main()
