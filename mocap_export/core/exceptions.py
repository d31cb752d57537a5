"""
Exception types raised by the export pipeline.

Only conditions the caller must act on are raised. A landmark index missing
from a frame and an antiparallel rest/current direction pair are recovered
where they occur and never surface here.
"""


class ExportError(Exception):
    """Base class for all export failures."""


class InputError(ExportError, ValueError):
    """The landmark sequence or a parameter cannot be exported."""


class BackendError(ExportError):
    """The binary serialization backend could not build a buffer."""
