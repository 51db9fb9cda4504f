"""Fantasy league roster rules, transfers and round scoring."""

__version__ = "0.1.0"
