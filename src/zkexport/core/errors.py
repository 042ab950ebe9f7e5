from __future__ import annotations


class ExportError(Exception):
    """Base class for everything that aborts an r1cs/wtns export."""


class ResolutionError(ExportError):
    """A variable had no assigned value, or the assignment violates the system."""


class EncodingError(ExportError):
    """A value or count does not fit its fixed-width binary field."""


class ConsistencyError(ExportError):
    """The model, the resolved dimensions and the encoded output disagree."""


class FormatError(ExportError):
    """A file read back from disk is not a well-formed r1cs/wtns file."""
