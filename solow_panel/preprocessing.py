import os
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from solow_panel.config import OECD_COUNTRIES, REGION_LABELS, Config, _as_abs
from solow_panel.errors import FormatError


ID_COLS = ["Country Name", "Country Code"]
INDICATOR_COLS = ["Indicator Name", "Indicator Code"]
PANEL_KEYS = ID_COLS + ["Year"]


# ---------------------------------------------------------------------
# Defensive utilities
# ---------------------------------------------------------------------

def _require_cols(df: pd.DataFrame, cols: Iterable[str], label: str) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise FormatError(f"{label}: missing required columns: {missing}")


def merge_with_diagnostics(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: List[str],
    how: str,
    label: str,
    validate: Optional[str] = None,
) -> pd.DataFrame:
    """
    Merge with explicit diagnostics: prints input sizes and how many rows of each side matched.
    """
    out = left.merge(right, on=on, how=how, validate=validate, indicator=True)

    both = int((out["_merge"] == "both").sum())
    left_only = int((out["_merge"] == "left_only").sum())
    right_only = int((out["_merge"] == "right_only").sum())

    print(
        f"{label}: left rows={len(left):,} right rows={len(right):,} "
        f"result rows={len(out):,} matched={both:,} left_only={left_only:,} right_only={right_only:,}"
    )

    out = out.drop(columns=["_merge"])
    return out


# ---------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------

def load_indicator(path: str, skiprows: int = 4) -> pd.DataFrame:
    """
    Read a World Bank wide indicator CSV without interpreting its header.

    The header line (Country Name, Country Code, Indicator Name, Indicator Code, 1960, ...)
    is kept as the first row and every line ends with a trailing comma, so the last
    column is empty. reshape_indicator relies on both.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"indicator file not found: {path}")
    return pd.read_csv(path, skiprows=skiprows, header=None, dtype=str)


def load_indicators(cfg: Config, base_dir: str) -> Dict[str, pd.DataFrame]:
    raw_tables = {}
    for variable, path in cfg.indicator_files(base_dir):
        print(f"Loading {variable} from {path}")
        raw_tables[variable] = load_indicator(path, skiprows=cfg.raw_skiprows)
    return raw_tables


# ---------------------------------------------------------------------
# Reshaper
# ---------------------------------------------------------------------

def reshape_indicator(raw: pd.DataFrame, variable: str) -> pd.DataFrame:
    """
    Wide World Bank table -> long (Country Name, Country Code, Year, <variable>).

    Steps: drop the trailing empty column, promote the first row to column names,
    drop the indicator name/code columns and the promoted row, then melt the year columns.
    """
    if raw.shape[0] < 1 or raw.shape[1] < len(ID_COLS) + len(INDICATOR_COLS) + 1:
        raise FormatError(f"{variable}: raw table too small to reshape (shape={raw.shape})")

    df = raw.iloc[:, :-1].copy()
    df.columns = ["" if pd.isna(v) else str(v).strip() for v in df.iloc[0]]
    df = df.iloc[1:].reset_index(drop=True)

    _require_cols(df, ID_COLS + INDICATOR_COLS, f"{variable}: raw table")
    df = df.drop(columns=INDICATOR_COLS)

    year_cols = [c for c in df.columns if c not in ID_COLS]
    bad = [c for c in year_cols if not c.isdigit()]
    if bad:
        raise FormatError(f"{variable}: column labels are not years: {bad}")
    if not year_cols:
        raise FormatError(f"{variable}: raw table has no year columns")

    long = df.melt(id_vars=ID_COLS, value_vars=year_cols, var_name="Year", value_name=variable)
    long["Year"] = long["Year"].astype(int)
    long[variable] = pd.to_numeric(long[variable], errors="coerce")
    return long


# ---------------------------------------------------------------------
# Merger
# ---------------------------------------------------------------------

def merge_indicators(tables: Sequence[pd.DataFrame]) -> pd.DataFrame:
    """Successive inner joins on (Country Name, Country Code, Year)."""
    if not tables:
        raise FormatError("merge: no indicator tables supplied")

    merged = tables[0]
    for table in tables[1:]:
        _require_cols(table, PANEL_KEYS, "merge: indicator table")
        added = [c for c in table.columns if c not in PANEL_KEYS]
        merged = merge_with_diagnostics(
            merged,
            table,
            on=PANEL_KEYS,
            how="inner",
            label=f"merge_panel_to_{'_'.join(added)}",
        )
    return merged


def filter_panel(
    panel: pd.DataFrame,
    first_year: int = 2000,
    regions: Iterable[str] = REGION_LABELS,
) -> pd.DataFrame:
    """Keep country rows from first_year onwards; drop World Bank aggregates."""
    _require_cols(panel, PANEL_KEYS, "merged panel")

    panel = panel[panel["Year"] >= first_year].copy()

    n_before = panel["Country Name"].nunique()
    panel = panel[~panel["Country Name"].isin(set(regions))]
    n_after = panel["Country Name"].nunique()
    print("Dropped aggregate region labels:", n_before - n_after)

    return panel.reset_index(drop=True)


# ---------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------

def aggregated_columns(variables: Sequence[str]) -> List[str]:
    return (
        ["Country Name"]
        + [f"last_{v}" for v in variables]
        + [f"avg_{v}" for v in variables]
        + ["high_resources", "OECD"]
    )


def aggregate_countries(
    panel: pd.DataFrame,
    variables: Sequence[str],
    cfg: Optional[Config] = None,
) -> pd.DataFrame:
    """
    One row per country with last_<var> and avg_<var> for every variable.

    last_<var> is the most recent non-missing value. Rows are stably sorted by Year first,
    so duplicate (country, year) rows resolve to the one that came later in the input.
    """
    cfg = cfg or Config()
    variables = list(variables)
    _require_cols(panel, ["Country Name", "Year"] + variables, "merged panel")

    ordered = panel.sort_values("Year", kind="mergesort")
    grouped = ordered.groupby("Country Name", sort=True)[variables]

    last = grouped.last().add_prefix("last_")
    avg = grouped.mean().add_prefix("avg_")
    agg = pd.concat([last, avg], axis=1).reset_index()

    key_cols = [f"avg_{v}" for v in cfg.key_variables]
    _require_cols(agg, key_cols + ["avg_resource_rents"], "aggregated panel")

    no_key = agg[key_cols].isna().any(axis=1)
    if no_key.any():
        print("Countries without data on key variables:", sorted(agg.loc[no_key, "Country Name"]))
    agg = agg[~no_key].copy()

    agg["high_resources"] = np.where(agg["avg_resource_rents"] >= cfg.resource_threshold, 1, 0)
    oecd = {c.lower() for c in OECD_COUNTRIES}
    agg["OECD"] = agg["Country Name"].str.lower().isin(oecd).astype(int)

    incomplete = agg.isna().any(axis=1)
    if incomplete.any():
        print("Dropping countries with missing values:", sorted(agg.loc[incomplete, "Country Name"]))
    agg = agg[~incomplete]

    agg = agg[~agg["Country Name"].isin(cfg.excluded_countries)]

    return agg[aggregated_columns(variables)].reset_index(drop=True)


# ---------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------

def export_aggregated(agg: pd.DataFrame, path: str) -> None:
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    agg.to_csv(path, index=False)
    print(f"Saved {path} with shape {agg.shape}")


def load_aggregated(path: str, variables: Sequence[str] = Config.variables) -> pd.DataFrame:
    """Read an aggregated panel written by export_aggregated and check its schema."""
    agg = pd.read_csv(path)
    _require_cols(agg, aggregated_columns(variables), f"aggregated panel {path}")
    return agg


# ---------------------------------------------------------------------
# Main pipeline
# ---------------------------------------------------------------------

def build_aggregated_panel(raw_tables: Mapping[str, pd.DataFrame], cfg: Optional[Config] = None) -> pd.DataFrame:
    """Raw wide tables keyed by variable name -> per-country summary table."""
    cfg = cfg or Config()
    missing = [v for v in cfg.variables if v not in raw_tables]
    if missing:
        raise FormatError(f"raw tables: no table supplied for variables {missing}")

    long_tables = [reshape_indicator(raw_tables[v], v) for v in cfg.variables]
    merged = merge_indicators(long_tables)
    merged = filter_panel(merged, first_year=cfg.first_year)
    print("Merged panel shape:", merged.shape)

    return aggregate_countries(merged, cfg.variables, cfg)


def main() -> None:
    cfg = Config()
    base_dir = os.getcwd()

    raw_tables = load_indicators(cfg, base_dir)

    print("Reshaping, merging and aggregating indicators")
    agg = build_aggregated_panel(raw_tables, cfg)

    export_aggregated(agg, _as_abs(base_dir, cfg.aggregated_path))
    print("Countries in aggregated panel:", len(agg))


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print("ERROR:", str(e))
        raise
