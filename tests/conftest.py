"""
Shared fixtures: raw World Bank style tables and synthetic country summaries.
"""

from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd
import pytest

from solow_panel.config import Config


def make_raw_table(
    values: Dict[str, Sequence[Optional[float]]],
    years: Sequence[int],
    indicator: str = "Some indicator",
    codes: Optional[Dict[str, str]] = None,
) -> pd.DataFrame:
    """
    Build a table shaped like load_indicator output: header=None, the real header in
    row 0, every cell a string, and an empty trailing column.
    """
    header = ["Country Name", "Country Code", "Indicator Name", "Indicator Code"] + [str(y) for y in years] + [np.nan]
    rows = [header]
    for country, series in values.items():
        code = (codes or {}).get(country, country[:3].upper())
        cells = [np.nan if v is None else str(v) for v in series]
        rows.append([country, code, indicator, "IND.CODE"] + cells + [np.nan])
    return pd.DataFrame(rows)


def make_summary(
    lsaving: Sequence[float],
    lpop: Sequence[float],
    lgdp: Sequence[float],
    ltrade: Optional[Sequence[float]] = None,
    high_resources: Optional[Sequence[int]] = None,
    oecd: Optional[Sequence[int]] = None,
) -> pd.DataFrame:
    """
    Country summary whose transformed features equal the given log values exactly
    (positive saving rates, population growth shifted back by 5).
    """
    n = len(lsaving)
    gdp = np.exp(np.asarray(lgdp, dtype=float))
    saving = np.exp(np.asarray(lsaving, dtype=float))
    pop = np.exp(np.asarray(lpop, dtype=float)) - 5.0
    trade = np.exp(np.asarray(ltrade, dtype=float)) if ltrade is not None else np.full(n, 60.0)

    df = pd.DataFrame({"Country Name": [f"Country {i:02d}" for i in range(n)]})
    for prefix in ("last_", "avg_"):
        df[prefix + "gdp_per_capita"] = gdp
        df[prefix + "pop_growth"] = pop
        df[prefix + "saving_rate"] = saving
        df[prefix + "resource_rents"] = 2.0
        df[prefix + "educ_attained"] = 12.0
        df[prefix + "trade"] = trade
    df["high_resources"] = list(high_resources) if high_resources is not None else [0] * n
    df["OECD"] = list(oecd) if oecd is not None else [0] * n
    return df


@pytest.fixture
def cfg() -> Config:
    return Config()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240601)


@pytest.fixture
def solow_sample(rng):
    """30 countries drawn around lGDP = 4 + 1.1 lsaving - 0.5 lpop + 0.2 ltrade."""
    n = 30
    lsaving = rng.uniform(1.5, 3.5, n)
    lpop = np.log(5.0 + rng.uniform(-1.0, 3.0, n))
    ltrade = np.log(rng.uniform(20.0, 150.0, n))
    noise = rng.normal(0.0, 0.1, n)
    lgdp = 4.0 + 1.1 * lsaving - 0.5 * lpop + 0.2 * ltrade + noise
    high_resources = [1 if i % 4 == 0 else 0 for i in range(n)]
    oecd = [1 if i % 3 == 0 else 0 for i in range(n)]
    summary = make_summary(lsaving, lpop, lgdp, ltrade, high_resources, oecd)
    return summary, {"lsaving": lsaving, "lpop": lpop, "ltrade": ltrade, "lgdp": lgdp}
