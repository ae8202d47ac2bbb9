"""EV charging window planner driven by hourly grid carbon intensity."""

__version__ = "0.1.0"
