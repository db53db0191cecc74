# core/exceptions.py

class CalcError(Exception):
    """Base exception for calculation engine errors."""
    pass

class TopologyError(CalcError):
    """Raised when a diagram cannot be flattened into a net list."""
    pass

class ReferenceCycleError(TopologyError):
    """Raised in strict mode when a diagram reference re-enters a diagram being inlined."""
    pass

class SolveError(CalcError):
    """Raised when a solve fails and no values may be applied."""
    pass

class SystemShapeError(SolveError):
    """Raised when the equation count does not match the net count."""
    pass

class SingularSystemError(SolveError):
    """Raised when the Jacobian is singular or too ill-conditioned to factor."""
    pass

class NumericError(SolveError):
    """Raised when NaN or infinite values appear during a solve."""
    pass

class ConfigError(CalcError):
    """Raised when a configuration file cannot be read or validated."""
    pass
