"""World Bank country panel preprocessing and Solow-model regressions."""

__version__ = "0.1.0"
