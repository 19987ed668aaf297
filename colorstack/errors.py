class ColorstackError(Exception):
    """Base class for errors raised by the colorstack core."""


class InvalidInputError(ColorstackError, ValueError):
    """Raised when a pixel buffer, palette or export parameter cannot be used."""


class BandMapConsistencyError(ColorstackError, ValueError):
    """Raised when a band map does not agree with the band height table."""
