"""
Solow-model regressions on the aggregated country panel.

lGDP is regressed on the log saving rate and the log of population growth plus a shift,
either freely (no_constraint) or with the two coefficients forced to be equal and
opposite (with_constraint, a single lsaving - lpop regressor). Each fit comes back with
its diagnostics as a ModelReport; nothing is accumulated in module state.
"""
import argparse
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from statsmodels.stats.diagnostic import het_breuschpagan
from statsmodels.stats.outliers_influence import variance_inflation_factor

from solow_panel.config import Config, _as_abs
from solow_panel.errors import ConfigError, NumericError
from solow_panel.preprocessing import _require_cols, load_aggregated


PERIODS = ("2023", "2000-2023")
CONSTRAINTS = ("no_constraint", "with_constraint")
GROUPS = ("all", "non_resource", "oecd")

# "2023" reads the latest observation, "2000-2023" the average over the window
PERIOD_PREFIX = {"2023": "last_", "2000-2023": "avg_"}

COMBINED = "lsav_minus_lpop"


def _check_option(option: str, value: Any, allowed: Sequence[Any]) -> None:
    if value not in allowed:
        raise ConfigError(f"Invalid {option} {value!r}; use one of {list(allowed)}")


@dataclass(frozen=True)
class ModelSpec:
    x_period: str = "2000-2023"
    y_period: str = "2023"
    constraint: str = "no_constraint"
    trade: bool = False
    group: str = "all"

    def __post_init__(self) -> None:
        _check_option("x_period", self.x_period, PERIODS)
        _check_option("y_period", self.y_period, PERIODS)
        _check_option("constraint", self.constraint, CONSTRAINTS)
        _check_option("group", self.group, GROUPS)
        _check_option("trade", self.trade, (True, False))

    @property
    def constrained(self) -> bool:
        return self.constraint == "with_constraint"

    @property
    def name(self) -> str:
        parts = ["model"]
        if self.group != "all":
            parts.append(self.group)
        parts.append(f"{self.x_period}_{self.y_period}")
        if self.trade:
            parts.append("trade")
        parts.append(self.constraint)
        return "_".join(parts)

    @property
    def regressors(self) -> List[str]:
        rhs = [COMBINED] if self.constrained else ["lsaving", "lpop"]
        if self.trade:
            rhs.append("ltrade")
        return rhs

    @property
    def formula(self) -> str:
        return "lGDP ~ " + " + ".join(self.regressors)


@dataclass(frozen=True)
class FittedModel:
    spec: ModelSpec
    formula: str
    results: Any
    countries: Tuple[str, ...]

    @property
    def params(self) -> pd.Series:
        return self.results.params

    @property
    def bse(self) -> pd.Series:
        return self.results.bse

    @property
    def resid(self) -> pd.Series:
        return self.results.resid

    @property
    def fittedvalues(self) -> pd.Series:
        return self.results.fittedvalues

    @property
    def rsquared(self) -> float:
        return float(self.results.rsquared)

    @property
    def nobs(self) -> int:
        return int(self.results.nobs)


@dataclass(frozen=True)
class HypothesisTest:
    name: str
    statistic: float
    pvalue: float
    df: Tuple[float, ...] = ()

    def rejected(self, alpha: float = 0.05) -> bool:
        return bool(self.pvalue < alpha)


@dataclass(frozen=True)
class Diagnostics:
    breusch_pagan: HypothesisTest
    constraint_test: Optional[HypothesisTest] = None
    trade_target_test: Optional[HypothesisTest] = None
    vif: Optional[pd.Series] = None


@dataclass(frozen=True)
class ModelReport:
    spec: ModelSpec
    model: FittedModel
    diagnostics: Diagnostics


# ---------------------------------------------------------------------
# Feature construction
# ---------------------------------------------------------------------

def _country_labels(summary: pd.DataFrame) -> pd.Series:
    if "Country Name" in summary.columns:
        return summary["Country Name"].astype(str)
    return pd.Series(summary.index.astype(str), index=summary.index)


def _safe_log(values: pd.Series, label: str, countries: pd.Series, context: str) -> pd.Series:
    values = pd.to_numeric(values, errors="coerce")
    bad = ~(values > 0)
    if bad.any():
        offenders = sorted(countries[bad].tolist())
        raise NumericError(f"{context}: log of non-positive or missing {label} for {offenders}")
    return np.log(values)


def build_features(summary: pd.DataFrame, spec: ModelSpec, cfg: Optional[Config] = None) -> pd.DataFrame:
    """
    lGDP  = log(GDP per capita), latest or average per y_period
    lsaving = sign(s) * log(|s|), keeps the sign of negative saving rates
    lpop  = log(pop_growth + shift)
    ltrade = log(trade), trade models only
    """
    cfg = cfg or Config()
    gdp_col = PERIOD_PREFIX[spec.y_period] + "gdp_per_capita"
    x_prefix = PERIOD_PREFIX[spec.x_period]
    cols = [gdp_col, x_prefix + "saving_rate", x_prefix + "pop_growth"]
    if spec.trade:
        cols.append(x_prefix + "trade")
    _require_cols(summary, cols, f"{spec.name}: country summary")

    countries = _country_labels(summary)
    saving = pd.to_numeric(summary[x_prefix + "saving_rate"], errors="coerce")

    features = pd.DataFrame(index=summary.index)
    features["lGDP"] = _safe_log(summary[gdp_col], gdp_col, countries, spec.name)
    features["lsaving"] = np.sign(saving) * _safe_log(saving.abs(), f"|{x_prefix}saving_rate|", countries, spec.name)
    features["lpop"] = _safe_log(
        summary[x_prefix + "pop_growth"] + cfg.pop_growth_shift,
        f"{x_prefix}pop_growth + {cfg.pop_growth_shift:g}",
        countries,
        spec.name,
    )
    if spec.trade:
        features["ltrade"] = _safe_log(summary[x_prefix + "trade"], x_prefix + "trade", countries, spec.name)
    if spec.constrained:
        features[COMBINED] = features["lsaving"] - features["lpop"]
    return features


def filter_group(summary: pd.DataFrame, group: str) -> pd.DataFrame:
    _check_option("group", group, GROUPS)
    if group == "non_resource":
        _require_cols(summary, ["high_resources"], "country summary")
        return summary[summary["high_resources"] == 0]
    if group == "oecd":
        _require_cols(summary, ["OECD"], "country summary")
        return summary[summary["OECD"] == 1]
    return summary


# ---------------------------------------------------------------------
# Estimation
# ---------------------------------------------------------------------

def fit_ols(data: pd.DataFrame, regressors: Sequence[str], context: str) -> Any:
    """OLS of lGDP on the given columns plus an intercept."""
    n_params = len(regressors) + 1
    if len(data) <= n_params:
        raise NumericError(f"{context}: {len(data)} observations for {n_params} parameters")
    return smf.ols("lGDP ~ " + " + ".join(regressors), data=data).fit()


def fit_model(summary: pd.DataFrame, spec: ModelSpec, cfg: Optional[Config] = None) -> FittedModel:
    sample = filter_group(summary, spec.group)
    features = build_features(sample, spec, cfg)
    results = fit_ols(features, spec.regressors, spec.name)
    return FittedModel(
        spec=spec,
        formula=spec.formula,
        results=results,
        countries=tuple(_country_labels(sample)),
    )


# ---------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------

def restriction_test(
    results: Any,
    rows: Sequence[Mapping[str, float]],
    values: Sequence[float],
    name: str,
) -> HypothesisTest:
    """
    F test of R b = q, with each row of R given as {parameter name: weight}.
    """
    names = list(results.params.index)
    R = np.zeros((len(rows), len(names)))
    for i, row in enumerate(rows):
        for param, weight in row.items():
            if param not in names:
                raise ConfigError(f"{name}: parameter {param!r} not in model ({names})")
            R[i, names.index(param)] = weight
    q = np.asarray(values, dtype=float)

    res = results.f_test((R, q))
    return HypothesisTest(
        name=name,
        statistic=float(np.squeeze(res.fvalue)),
        pvalue=float(np.squeeze(res.pvalue)),
        df=(float(res.df_num), float(res.df_denom)),
    )


def breusch_pagan(model: FittedModel) -> HypothesisTest:
    exog = model.results.model.exog
    lm, lm_pvalue, _, _ = het_breuschpagan(model.resid, exog)
    return HypothesisTest("Breusch-Pagan", float(lm), float(lm_pvalue), (float(exog.shape[1] - 1),))


def vif_table(model: FittedModel) -> pd.Series:
    exog = model.results.model.exog
    names = model.results.model.exog_names
    values = {
        name: variance_inflation_factor(exog, i)
        for i, name in enumerate(names)
        if name != "Intercept"
    }
    return pd.Series(values, name="VIF")


def diagnose(model: FittedModel, cfg: Optional[Config] = None) -> Diagnostics:
    cfg = cfg or Config()
    spec = model.spec

    constraint_test = None
    if not spec.constrained:
        constraint_test = restriction_test(
            model.results, [{"lsaving": 1.0, "lpop": 1.0}], [0.0], "lsaving + lpop = 0"
        )

    trade_target_test = None
    if spec.constrained and spec.trade:
        trade_target_test = restriction_test(
            model.results,
            [{COMBINED: 1.0}],
            [cfg.trade_coef_target],
            f"(lsaving - lpop) = {cfg.trade_coef_target:g}",
        )

    vif = vif_table(model) if len(spec.regressors) >= 2 else None

    return Diagnostics(
        breusch_pagan=breusch_pagan(model),
        constraint_test=constraint_test,
        trade_target_test=trade_target_test,
        vif=vif,
    )


def run_model(summary: pd.DataFrame, spec: ModelSpec, cfg: Optional[Config] = None) -> ModelReport:
    model = fit_model(summary, spec, cfg)
    return ModelReport(spec=spec, model=model, diagnostics=diagnose(model, cfg))


# ---------------------------------------------------------------------
# Regression battery
# ---------------------------------------------------------------------

PERIOD_COMBINATIONS = (
    ("2023", "2023"),
    ("2000-2023", "2000-2023"),
    ("2000-2023", "2023"),
)


def default_specs() -> Tuple[ModelSpec, ...]:
    """
    Period comparison on all countries first, then the 2000-2023 / 2023 specification
    per country group, then the same with trade. Repeated specs are listed once.
    """
    specs: List[ModelSpec] = []
    for x_period, y_period in PERIOD_COMBINATIONS:
        for constraint in CONSTRAINTS:
            specs.append(ModelSpec(x_period, y_period, constraint))

    for trade in (False, True):
        for group in GROUPS:
            for constraint in CONSTRAINTS:
                specs.append(ModelSpec("2000-2023", "2023", constraint, trade=trade, group=group))

    return tuple(dict.fromkeys(specs))


def run_battery(
    summary: pd.DataFrame,
    specs: Optional[Iterable[ModelSpec]] = None,
    cfg: Optional[Config] = None,
) -> Iterator[ModelReport]:
    for spec in specs if specs is not None else default_specs():
        yield run_model(summary, spec, cfg)


# ---------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------

def _format_test(test: HypothesisTest) -> str:
    df = ", ".join(f"{d:g}" for d in test.df)
    return f"{test.name}: statistic={test.statistic:.4f} df=({df}) p-value={test.pvalue:.4g}"


def format_report(report: ModelReport) -> str:
    lines = ["-----", f"Model: {report.spec.name}", report.model.results.summary().as_text()]
    diag = report.diagnostics
    lines.append(_format_test(diag.breusch_pagan))
    if diag.vif is not None:
        lines.append("Variance Inflation Factors:")
        lines.append(diag.vif.to_string())
    if diag.constraint_test is not None:
        lines.append("Test for constraint: " + _format_test(diag.constraint_test))
    if diag.trade_target_test is not None:
        lines.append("Test for coefficient target: " + _format_test(diag.trade_target_test))
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> Dict[ModelSpec, ModelReport]:
    cfg = Config()
    parser = argparse.ArgumentParser(description="Run the Solow regression battery on the aggregated panel")
    parser.add_argument("--data", default=cfg.aggregated_path, help="aggregated panel CSV")
    parser.add_argument("--pause", action="store_true", help="wait for Enter between models")
    args = parser.parse_args(argv)

    path = _as_abs(os.getcwd(), args.data)
    print("Loading aggregated panel from", path)
    summary = load_aggregated(path, cfg.variables)

    reports = {}
    for report in run_battery(summary, cfg=cfg):
        reports[report.spec] = report
        print(format_report(report))
        if args.pause:
            input("Press [enter] to continue to the next model")

    print("Models fitted:", len(reports))
    return reports


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print("ERROR:", str(e))
        raise
