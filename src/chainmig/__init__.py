"""chainmig — chain deployment migration from the 6.1.0 to the 6.3.0 layout."""

__version__ = "0.1.0"
