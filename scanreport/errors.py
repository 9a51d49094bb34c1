from __future__ import annotations


class ReportError(Exception):
    """Base class for failures surfaced by the report pipeline."""

    code = 500

    def __init__(self, message: str, *, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage


class MissingInputError(ReportError):
    code = 404


class InputParseError(ReportError):
    code = 422


class MergeError(ReportError):
    pass


class AnnotationError(ReportError):
    pass
