"""dacsimple - discretionary access control for class/instance resource trees."""

__version__ = "0.1.0"
