"""Football match prediction, pick selection and settlement engine."""

__version__ = "0.1.0"
