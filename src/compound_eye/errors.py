"""Exception types shared across Compound Eye."""


class CompoundEyeError(Exception):
    """Base class for Compound Eye errors."""


class ValidationError(CompoundEyeError):
    """Raised when caller-supplied input has the wrong shape.

    Examples: empty observation text, an unknown disposition, an update
    that provides no fields, or an action linking no observations.
    """


class ScanError(CompoundEyeError):
    """Raised when a scan root cannot be resolved at all."""
