"""snapwatch - state-sync snapshot testing for live blockchain networks."""

__version__ = "0.1.0"
