class SolowPanelError(Exception):
    """Base class for pipeline and regression failures."""


class FormatError(SolowPanelError, ValueError):
    """An input table does not have the expected shape or labels."""


class ConfigError(SolowPanelError, ValueError):
    """A model specification option is outside the recognised set."""


class NumericError(SolowPanelError, ValueError):
    """A transform received an argument outside its domain."""
