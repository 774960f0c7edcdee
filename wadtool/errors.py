"""Exceptions raised by the WAD reader and writer."""


class WadError(Exception):
    """Base class for every failure reported by the codec."""


class StructuralError(WadError):
    """The archive bytes do not describe a usable WAD.

    Bad header tag, header or directory cut short, a lump that points
    outside the file, or an unknown level marker.
    """


class WadIOError(WadError):
    """Opening, reading, writing or seeking the archive file failed.

    The underlying ``OSError`` is chained as ``__cause__``.
    """

    def __init__(self, path: str, action: str, error: OSError):
        self.path = path
        self.action = action
        super().__init__(f"Could not {action} {path!r}: {error.strerror or error}")


class ConsistencyWarning(UserWarning):
    """A record references an index outside its target collection."""
