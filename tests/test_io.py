import math

import numpy as np
import pandas as pd
import pytest

from src.core.config import ExtractConfig, load_extract_config
from src.io import output_trips_to_df, read_csv_validated, sha256_file, write_output_trips
from src.models import NODES, OUTPUT_TRIPS, validate_df
from src.trips.extract import extract

# ---------- Schema validation


def test_validate_df_coerces_and_fills_optional_columns():
    df = pd.DataFrame({"node_id": [1, 2], "x": [0, 1], "y": [0.5, 2.5]})
    out = validate_df(df, NODES)
    assert str(out["node_id"].dtype) == "string"
    assert str(out["x"].dtype) == "Float64"


def test_validate_df_rejects_non_finite_coordinates():
    df = pd.DataFrame({"node_id": ["a"], "x": [np.inf], "y": [0.0]})
    with pytest.raises(ValueError, match="non-finite"):
        validate_df(df, NODES)


def test_validate_df_rejects_unexpected_columns_when_strict():
    df = pd.DataFrame({"node_id": ["a"], "x": [0.0], "y": [0.0], "z": [1.0]})
    with pytest.raises(ValueError, match="unexpected columns"):
        validate_df(df, NODES, allow_extra_columns=False)


def test_read_csv_validated_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_csv_validated(tmp_path / "nodes.csv", dtype={}, schema=NODES)


# ---------- Output trips


def test_write_output_trips_round_trip(tmp_path, network, region, make_trip):
    trips, _, _ = extract(
        network,
        region,
        [
            make_trip("a", "N1", "2_1", "N4", "3_4", departure=1000.0),
            make_trip("b", "N4", "3_4", "N1", "2_1", departure=500.0),
        ],
    )
    path = tmp_path / "out" / "trips.csv"
    written = write_output_trips(trips, path)
    back = read_csv_validated(path, dtype={"person_id": "string"}, schema=OUTPUT_TRIPS)

    assert list(back["person_id"]) == ["0", "1"]
    assert list(back["case"]) == ["outgoing", "incoming"]
    assert list(back["start_end_time"]) == [1000.0, 503.0]
    assert list(back["end_x"]) == [10.0, 0.0]
    assert len(written) == 2
    assert len(sha256_file(path)) == 64


def test_output_table_for_no_trips_has_all_columns():
    df = output_trips_to_df([])
    assert df.empty
    assert set(OUTPUT_TRIPS.required_columns) <= set(df.columns)


# ---------- Configuration


def test_config_file_overrides_defaults(tmp_path):
    path = tmp_path / "extract_config.yaml"
    path.write_text("extract:\n  n_landmarks: 2\n  workers: 3\n", encoding="utf-8")
    cfg = load_extract_config(path)
    assert cfg.n_landmarks == 2
    assert cfg.workers == 3
    assert cfg.crs == "EPSG:5677"
    assert cfg.horizon_s == 86400.0


def test_repository_config_loads():
    cfg = load_extract_config()
    assert cfg == ExtractConfig()


def test_config_rejects_bad_values():
    with pytest.raises(ValueError):
        ExtractConfig(workers=0)
    assert math.isclose(ExtractConfig(horizon_s=3600).horizon_s, 3600.0)
