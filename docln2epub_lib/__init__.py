"""Building blocks for turning docln.net novels into EPUB packages."""

__version__ = "0.1.0"
