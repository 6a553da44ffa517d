"""Parse and validate the string settings of a Vali log-shipping output plugin into typed dataclasses."""

__version__ = "0.1.0"

__all__ = ["__version__"]