class TextImageError(Exception):
    """Base class for every error raised while generating an asset."""


class ConfigurationError(TextImageError, ValueError):
    """Options are missing, unknown, of the wrong type or out of range."""


class ResourceError(TextImageError, OSError):
    """A font or image file could not be read or decoded."""


class LayoutError(TextImageError, ValueError):
    """The requested output would have no lines or non-positive dimensions."""
