from __future__ import annotations


class SketchbookError(Exception):
    """Base class for errors raised by sketchbook."""


class DecodeError(SketchbookError):
    """The source image could not be read or decoded."""


class DegenerateGeometryError(SketchbookError, ValueError):
    """An image or bounding box has no area."""


class SessionStateError(SketchbookError):
    """A session control call is not valid in the current state."""
