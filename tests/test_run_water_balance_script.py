"""
Smoke test for scripts/run_water_balance.py
"""
import importlib.util
from pathlib import Path

import pandas as pd
import pytest
import yaml

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "run_water_balance.py"


@pytest.fixture
def script():
    spec = importlib.util.spec_from_file_location("run_water_balance", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "soil.yaml"
    path.write_text(yaml.safe_dump({
        "logging": {"log_level": "WARNING"},
        "profile": {
            "thickness": [150.0, 150.0, 150.0],
            "air_dry": [0.05, 0.06, 0.08],
            "ll15": [0.10, 0.12, 0.15],
            "dul": [0.30, 0.28, 0.25],
            "sat": [0.45, 0.40, 0.35],
            "bulk_density": [0.9, 1.0, 1.1],
        },
    }))
    return path


@pytest.fixture
def forcings_path(tmp_path):
    path = tmp_path / "days.csv"
    pd.DataFrame({
        "date": ["2020-01-01", "2020-01-02"],
        "potential_infiltration_mm": [10.0, 0.0],
        "eo_mm": [3.0, 3.0],
        "evaporation_mm": [1.0, 1.0],
        "flux_0": [5.0, 0.0],
        "flux_1": [2.0, 0.0],
        "flux_2": [1.0, 0.0],
    }).to_csv(path, index=False)
    return path


class TestRunWaterBalanceScript:

    def test_writes_daily_results(self, script, config_path, forcings_path, tmp_path):
        out = tmp_path / "results.csv"

        status = script.main([
            "--config", str(config_path),
            "--forcings", str(forcings_path),
            "--out", str(out),
            "--no3", "10,5,2",
        ])

        assert status == 0
        results = pd.read_csv(out, index_col="date")
        assert list(results.index) == ["2020-01-01", "2020-01-02"]
        assert results["drainage_mm"].tolist() == pytest.approx([1.0, 0.0])
        assert results["leached_NO3_kgha"].iloc[0] > 0

    def test_per_layer_values(self, script):
        assert script._per_layer("2.5", 3, "no3").tolist() == [2.5, 2.5, 2.5]
        assert script._per_layer("1,2,3", 3, "no3").tolist() == [1.0, 2.0, 3.0]
        with pytest.raises(SystemExit):
            script._per_layer("1,2", 3, "no3")

    def test_profile_required(self, script, forcings_path, tmp_path):
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("water:\n  solute_flux_efficiency: 1.0\n")

        with pytest.raises(SystemExit):
            script.main([
                "--config", str(config_path),
                "--forcings", str(forcings_path),
                "--out", str(tmp_path / "out.csv"),
            ])
