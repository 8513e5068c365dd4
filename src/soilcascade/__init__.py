"""Daily cascading soil water and solute balance for a layered soil profile."""

__version__ = "0.1.0"
