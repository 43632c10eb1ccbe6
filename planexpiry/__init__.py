"""Free plan expiry batch job."""

__version__ = "1.0.0"
