import os

import pandas as pd
import yaml

from annotation import main, run
from trackenv.config import AnnotationConfig


def test_run_writes_all_outputs(tmp_path, tracks_csv, full_samples, geographic_reference):
    config = AnnotationConfig(
        tracks_path=tracks_csv,
        grid_csv_path=full_samples,
        reference_raster_path=geographic_reference,
        value_name="sst",
        extra_rasters={"depth": geographic_reference},
        output_dir=str(tmp_path / "output"),
        log_dir=str(tmp_path / "logs"),
        plot="lines",
    )
    csv_path = run(config)

    annotated = pd.read_csv(csv_path)
    assert annotated["sst"].tolist() == [1.0, 1.0, 9.0, 5.0, 5.0]
    assert annotated["depth"].tolist() == [1.0, 1.0, 9.0, 5.0, 5.0]
    assert "geometry" not in annotated.columns
    assert os.path.exists(tmp_path / "output" / "sst_grid.tif")
    assert os.path.exists(tmp_path / "output" / "tracks_map.png")


def test_main_reads_yaml(tmp_path, tracks_csv, full_samples, geographic_reference):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({
        "annotation": {
            "tracks_path": tracks_csv,
            "grid_csv_path": full_samples,
            "reference_raster_path": geographic_reference,
            "output_dir": str(tmp_path / "output"),
            "write_raster": False,
            "plot": "none",
            "log_dir": None,
        }
    }))
    main(str(config_path))

    output = tmp_path / "output"
    assert (output / "animal_with_environment_annotation.csv").exists()
    assert not (output / "value_grid.tif").exists()
    assert not (output / "tracks_map.png").exists()
