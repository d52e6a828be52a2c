"""remote-files: manage bucket profiles and the files stored in them."""

__version__ = "0.1.0"
