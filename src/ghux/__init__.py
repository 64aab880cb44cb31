"""ghux: Git hosting URL parsing and repository file downloads."""

__version__ = "0.4.0"
