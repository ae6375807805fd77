"""skyfolio - astrophotography observation upload wizard."""

__version__ = "0.1.0"
