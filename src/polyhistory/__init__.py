"""polyhistory - Polymarket price history exporter."""

__version__ = "0.1.0"
