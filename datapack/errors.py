"""Exception taxonomy for data packages.

Validation problems abort only the offending call. Archive build problems
abort the whole build. Lookups of unknown identifiers never raise; they
return ``None`` or ``False`` instead.
"""


class DataPackError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(DataPackError, ValueError):
    """Input rejected before any state was changed (bad node type, bad member)."""


class SerializationError(DataPackError):
    """A resource map could not be rendered in the requested syntax."""


class UnsupportedSyntaxError(SerializationError, ValidationError):
    """The requested RDF syntax is not one of the supported syntaxes."""


class BagBuildError(DataPackError, OSError):
    """Staging, copying, writing, digesting or compressing a bag failed."""


class MissingPayloadError(BagBuildError, FileNotFoundError):
    """A member references an external file that does not exist."""
