"""Guild event shift-building planner."""

__version__ = "0.1.0"
