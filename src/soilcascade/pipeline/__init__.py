"""
soilcascade pipeline module.

Drives the daily step over a table of forcings.
"""

__all__ = [
    "create_water_balance",
    "run_period",
]


def __getattr__(name):
    """Lazy import so pandas is only loaded when the driver is used."""
    if name in ("create_water_balance", "run_period"):
        from soilcascade.pipeline import driver
        return getattr(driver, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
