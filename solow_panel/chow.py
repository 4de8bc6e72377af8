"""
Chow-style tests for splitting the sample by country group.

The unconstrained model is fitted on all countries with a group dummy D and its
interactions with lsaving and lpop. A joint F test that the dummy and both
interactions are zero tells whether the group needs its own regression.
"""
import os
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import pandas as pd

from solow_panel.config import Config, _as_abs
from solow_panel.errors import NumericError
from solow_panel.preprocessing import _require_cols, load_aggregated
from solow_panel.regression import (
    FittedModel,
    HypothesisTest,
    ModelSpec,
    _country_labels,
    build_features,
    fit_ols,
    restriction_test,
)


SPLIT_TERMS = ("D", "lsaving_x_D", "lpop_x_D")


@dataclass(frozen=True)
class GroupSplitResult:
    dummy: str
    model: FittedModel
    test: HypothesisTest

    def significant(self, alpha: float = 0.05) -> bool:
        return self.test.rejected(alpha)


def group_split_test(
    summary: pd.DataFrame,
    dummy: str,
    cfg: Optional[Config] = None,
    x_period: str = "2000-2023",
    y_period: str = "2023",
) -> GroupSplitResult:
    spec = ModelSpec(x_period, y_period, "no_constraint")
    _require_cols(summary, [dummy], "country summary")

    d = pd.to_numeric(summary[dummy], errors="coerce")
    if not d.isin([0, 1]).all():
        raise NumericError(f"group split on {dummy}: dummy must be 0/1, got {sorted(d.unique().tolist())}")
    if d.nunique() < 2:
        raise NumericError(f"group split on {dummy}: all countries fall in one group")

    features = build_features(summary, spec, cfg)
    features["D"] = d.astype(float)
    features["lsaving_x_D"] = features["lsaving"] * features["D"]
    features["lpop_x_D"] = features["lpop"] * features["D"]

    regressors = ["lsaving", "lpop"] + list(SPLIT_TERMS)
    context = f"{spec.name} split on {dummy}"
    results = fit_ols(features, regressors, context)

    model = FittedModel(
        spec=spec,
        formula="lGDP ~ " + " + ".join(regressors),
        results=results,
        countries=tuple(_country_labels(summary)),
    )
    test = restriction_test(
        results,
        [{term: 1.0} for term in SPLIT_TERMS],
        [0.0] * len(SPLIT_TERMS),
        f"Chow test ({dummy})",
    )
    return GroupSplitResult(dummy=dummy, model=model, test=test)


def run_group_split_tests(
    summary: pd.DataFrame,
    dummies: Sequence[str] = ("high_resources", "OECD"),
    cfg: Optional[Config] = None,
) -> Dict[str, GroupSplitResult]:
    return {dummy: group_split_test(summary, dummy, cfg) for dummy in dummies}


def main() -> None:
    cfg = Config()
    path = _as_abs(os.getcwd(), cfg.aggregated_path)
    print("Loading aggregated panel from", path)
    summary = load_aggregated(path, cfg.variables)

    for dummy, result in run_group_split_tests(summary, cfg=cfg).items():
        print("-----")
        print(result.model.results.summary().as_text())
        verdict = "separate regressions" if result.significant(cfg.significance_level) else "pooled regression"
        print(
            f"{result.test.name}: F={result.test.statistic:.4f} "
            f"p-value={result.test.pvalue:.4g} -> {verdict}"
        )


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print("ERROR:", str(e))
        raise
