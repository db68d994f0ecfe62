"""Create Go.Data cases from lab results without duplicating existing cases."""

__version__ = "0.1.0"
