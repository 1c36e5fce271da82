# voxrec/services/errors.py
from __future__ import annotations


class ExportError(Exception):
    """Base class for failures of a single export request."""


class DecodeError(ExportError):
    """The input bytes could not be decoded as audio."""


class AllocationError(ExportError):
    """An output buffer could not be built (size limit or out of memory)."""
