"""Exceptions raised by wfc3d.

Only configuration problems are exceptional. A contradiction found while
searching is an ordinary outcome and is reported through `SolveResult`.
"""


class WFCError(Exception):
    """Base class for all wfc3d errors."""

    pass


class ConfigurationError(WFCError):
    """Raised when a model, grid size or settings object cannot be used.

    This is fatal: the solver never starts searching.
    """

    pass


class ModelFormatError(ConfigurationError):
    """Raised when a serialized model artifact is malformed."""

    pass
