"""Feed monitor that turns new magnet links into offline downloads."""

__version__ = "0.1.0"
