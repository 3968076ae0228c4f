"""Exception hierarchy used across the conversion pipeline."""


class Docln2EpubError(Exception):
    """Base class for every error raised by docln2epub."""


class FetchError(Docln2EpubError):
    """A network request failed or timed out."""

    def __init__(self, url: str, reason: object = None):
        self.url = url
        self.reason = reason
        message = f"Failed to fetch {url}"
        if reason is not None:
            message += f": {reason}"
        super().__init__(message)


class AssetError(FetchError):
    """Downloaded bytes could not be used as an image."""


class ParseError(Docln2EpubError):
    """An expected element is missing from a scraped page."""


class PackageError(Docln2EpubError):
    """The package working tree could not be written or is inconsistent."""


class ArchiveError(Docln2EpubError):
    """The working tree could not be folded into an archive."""
