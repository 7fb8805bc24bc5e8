"""
Error kinds raised by the neuroevolution simulator.
Nothing here is retried automatically; callers decide what to do.
"""


class EvoSimError(Exception):
    """Base class for all simulator errors."""


class ShapeError(EvoSimError):
    """Genome or input dimensions do not fit together."""


class ConfigError(EvoSimError):
    """Configuration value is missing, unknown or out of range."""


class SerializationError(EvoSimError):
    """Genome data is corrupt, malformed or of an unsupported schema version."""


class NumericInstabilityError(EvoSimError):
    """Forward inference produced NaN or infinite values."""


class LifecycleError(EvoSimError):
    """A population was driven through an illegal lifecycle transition."""
