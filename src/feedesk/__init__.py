"""FeeDesk - student fee management with live roster and profile views."""

__version__ = "0.1.0"
