"""optview: browse compiler optimizer diagnostics next to the source they annotate."""

__version__ = "0.1.0"
