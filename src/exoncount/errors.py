class ExonCountError(Exception):
    """Base class for errors that abort a counting run."""


class ConfigurationError(ExonCountError):
    """Missing or invalid inputs, raised before any counting begins."""


class DecodeError(ExonCountError):
    """The alignment file could not be opened or decoded."""


class MalformedRegionError(ExonCountError):
    """An exon region ends before it starts."""
