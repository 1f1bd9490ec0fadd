"""Version information for kubedeploy."""

__version__ = "0.1.0"
