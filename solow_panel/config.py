import os
from dataclasses import dataclass
from typing import Tuple


# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Config:
    # Raw World Bank indicator files (relative to base_dir unless absolute paths are provided).
    # Order must match `variables`.
    indicator_paths: Tuple[str, ...] = (
        "gdp/gdp.csv",
        "pop_growth/pop_growth.csv",
        "saving/saving.csv",
        "resource/resource.csv",
        "educ_attained/educ_attained.csv",
        "trade/trade.csv",
    )
    variables: Tuple[str, ...] = (
        "gdp_per_capita",
        "pop_growth",
        "saving_rate",
        "resource_rents",
        "educ_attained",
        "trade",
    )

    # World Bank downloads carry four metadata lines above the header row
    raw_skiprows: int = 4

    first_year: int = 2000

    # Countries must have all three to enter the regressions
    key_variables: Tuple[str, ...] = ("gdp_per_capita", "pop_growth", "saving_rate")

    # Ukraine: population fell by more than 5% in 2023, so log(pop_growth + 5) is undefined
    excluded_countries: Tuple[str, ...] = ("Ukraine",)

    resource_threshold: float = 10.0
    pop_growth_shift: float = 5.0
    trade_coef_target: float = 0.5
    significance_level: float = 0.05

    aggregated_path: str = "aggregated_data.csv"

    def indicator_files(self, base_dir: str) -> Tuple[Tuple[str, str], ...]:
        if len(self.indicator_paths) != len(self.variables):
            raise ValueError(
                f"config: {len(self.indicator_paths)} indicator paths for {len(self.variables)} variables"
            )
        return tuple(
            (var, _as_abs(base_dir, path)) for var, path in zip(self.variables, self.indicator_paths)
        )


def _as_abs(base_dir: str, path: str) -> str:
    return path if os.path.isabs(path) else os.path.join(base_dir, path)


OECD_COUNTRIES: Tuple[str, ...] = (
    "Australia", "Austria", "Belgium", "Canada", "Chile", "Colombia",
    "Costa Rica", "Czechia", "Denmark", "Estonia", "Germany", "Finland",
    "France", "Greece", "Hungary", "Iceland", "Ireland", "Israel", "Italy",
    "Japan", "Latvia", "Lithuania", "Luxembourg", "Mexico", "Netherlands",
    "New Zealand", "Norway", "Poland", "Portugal", "Slovenia", "Slovakia",
    "Spain", "Sweden", "Switzerland", "Turkey", "United Kingdom", "United States",
)

# World Bank aggregate labels that appear in the Country Name column.
# Matched exactly, not case-folded.
REGION_LABELS: Tuple[str, ...] = (
    "Africa Eastern and Southern",
    "Africa Western and Central",
    "Arab World",
    "Central Europe and the Baltics",
    "Caribbean small states",
    "East Asia & Pacific (excluding high income)",
    "Early-demographic dividend",
    "East Asia & Pacific",
    "Europe & Central Asia (excluding high income)",
    "Europe & Central Asia",
    "Euro area",
    "European Union",
    "Fragile and conflict affected situations",
    "High income",
    "Heavily indebted poor countries (HIPC)",
    "IBRD only",
    "IDA & IBRD total",
    "IDA total",
    "IDA blend",
    "IDA only",
    "Not classified",
    "Latin America & Caribbean (excluding high income)",
    "Latin America & Caribbean",
    "Least developed countries: UN classification",
    "Low income",
    "Lower middle income",
    "Low & middle income",
    "Late-demographic dividend",
    "Middle East & North Africa",
    "Middle income",
    "Middle East & North Africa (excluding high income)",
    "North America",
    "OECD members",
    "Other small states",
    "Pre-demographic dividend",
    "West Bank and Gaza",
    "Pacific island small states",
    "Post-demographic dividend",
    "Sub-Saharan Africa (excluding high income)",
    "Sub-Saharan Africa",
    "Small states",
    "East Asia & Pacific (IDA & IBRD countries)",
    "Europe & Central Asia (IDA & IBRD countries)",
    "Latin America & the Caribbean (IDA & IBRD countries)",
    "Middle East & North Africa (IDA & IBRD countries)",
    "South Asia",
    "South Asia (IDA & IBRD)",
    "Sub-Saharan Africa (IDA & IBRD countries)",
    "Upper middle income",
    "World",
)
