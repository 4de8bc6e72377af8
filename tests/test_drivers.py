"""Command-line drivers and configuration."""

import os

import pytest

from conftest import make_raw_table
from solow_panel import chow, preprocessing, regression
from solow_panel.config import Config, _as_abs
from solow_panel.errors import FormatError


def _write_world_bank_csv(path, raw):
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [
        '"Data Source","World Development Indicators",',
        '"Last Updated Date","2024-06-28",',
        '"Note","synthetic",',
        '"Note","synthetic",',
    ]
    for _, row in raw.iterrows():
        cells = ["" if not isinstance(v, str) else f'"{v}"' for v in row]
        lines.append(",".join(cells))
    path.write_text("\n".join(lines) + "\n")


def test_config_paths(tmp_path):
    cfg = Config()

    files = dict(cfg.indicator_files(str(tmp_path)))

    assert list(files) == list(cfg.variables)
    assert files["trade"] == os.path.join(str(tmp_path), "trade/trade.csv")
    assert _as_abs(str(tmp_path), "/data/x.csv") == "/data/x.csv"


def test_config_rejects_mismatched_paths():
    cfg = Config(indicator_paths=("gdp.csv",))

    with pytest.raises(ValueError):
        cfg.indicator_files(".")


def test_preprocessing_main_writes_aggregated_panel(tmp_path, monkeypatch, capsys):
    cfg = Config()
    years = [1999, 2000, 2001, 2002]
    values = {
        "gdp_per_capita": {"Aruba": [1.0, 2.0, 3.0, 4.0], "Chad": [5.0, 6.0, 7.0, 8.0], "World": [1.0, 1.0, 1.0, 1.0]},
        "pop_growth": {"Aruba": [1.0, 1.0, 1.0, 1.0], "Chad": [3.0, 3.0, 3.0, 3.0], "World": [1.0, 1.0, 1.0, 1.0]},
        "saving_rate": {"Aruba": [20.0, 20.0, 20.0, 20.0], "Chad": [5.0, 5.0, 5.0, 5.0], "World": [1.0, 1.0, 1.0, 1.0]},
        "resource_rents": {"Aruba": [1.0, 1.0, 1.0, 1.0], "Chad": [30.0, 30.0, 30.0, 30.0], "World": [1.0, 1.0, 1.0, 1.0]},
        "educ_attained": {"Aruba": [9.0, 9.0, 9.0, 9.0], "Chad": [3.0, 3.0, 3.0, 3.0], "World": [1.0, 1.0, 1.0, 1.0]},
        "trade": {"Aruba": [100.0, 100.0, 100.0, 100.0], "Chad": [60.0, 60.0, 60.0, 60.0], "World": [1.0, 1.0, 1.0, 1.0]},
    }
    for var, path in zip(cfg.variables, cfg.indicator_paths):
        _write_world_bank_csv(tmp_path / path, make_raw_table(values[var], years))
    monkeypatch.chdir(tmp_path)

    preprocessing.main()

    agg = preprocessing.load_aggregated(str(tmp_path / cfg.aggregated_path))
    assert agg["Country Name"].tolist() == ["Aruba", "Chad"]
    assert agg["avg_gdp_per_capita"].tolist() == [3.0, 7.0]
    assert agg["high_resources"].tolist() == [0, 1]
    assert "Dropped aggregate region labels: 1" in capsys.readouterr().out


def test_preprocessing_main_reports_bad_year_label(tmp_path, monkeypatch):
    cfg = Config()
    for path in cfg.indicator_paths:
        _write_world_bank_csv(tmp_path / path, make_raw_table({"Aruba": [1.0]}, ["Y2000"]))
    monkeypatch.chdir(tmp_path)

    with pytest.raises(FormatError, match="Y2000"):
        preprocessing.main()


def test_regression_main_returns_reports(tmp_path, solow_sample, capsys):
    summary, _ = solow_sample
    path = tmp_path / "aggregated_data.csv"
    summary.to_csv(path, index=False)

    reports = regression.main(["--data", str(path)])

    assert set(reports) == set(regression.default_specs())
    out = capsys.readouterr().out
    assert "Models fitted: 16" in out
    assert "Model: model_oecd_2000-2023_2023_trade_with_constraint" in out


def test_chow_main(tmp_path, solow_sample, monkeypatch, capsys):
    summary, _ = solow_sample
    summary.to_csv(tmp_path / Config().aggregated_path, index=False)
    monkeypatch.chdir(tmp_path)

    chow.main()

    out = capsys.readouterr().out
    assert "Chow test (high_resources)" in out
    assert "Chow test (OECD)" in out
