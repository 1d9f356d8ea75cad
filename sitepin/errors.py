"""Error taxonomy and tagged failure values shared by both pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    DIRECTORY = "directory"
    FETCH = "fetch"
    EMPTY_RESPONSE = "empty_response"
    FILE_IO = "file_io"
    AUTH = "auth"
    UPLOAD = "upload"
    MISSING_ATTRIBUTE = "missing_attribute"
    UNSUPPORTED_SCHEME = "unsupported_scheme"


@dataclass(frozen=True)
class Failure:
    """A failure reported as a value.

    ``fatal`` failures abort the pipeline; non-fatal ones (an asset element
    without its URL attribute) are collected and reported alongside results.
    """

    kind: ErrorKind
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    fatal: bool = True


class PipelineError(Exception):
    """Base class for errors that abort a pipeline stage."""

    kind: ErrorKind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_failure(self) -> Failure:
        return Failure(kind=self.kind, message=self.message, context=dict(self.context))


class ConfigurationError(PipelineError):
    kind = ErrorKind.CONFIGURATION


class DirectoryError(PipelineError):
    kind = ErrorKind.DIRECTORY


class FetchError(PipelineError):
    kind = ErrorKind.FETCH


class EmptyResponseError(FetchError):
    kind = ErrorKind.EMPTY_RESPONSE


class FileIOError(PipelineError):
    kind = ErrorKind.FILE_IO


class AuthError(PipelineError):
    kind = ErrorKind.AUTH


class UploadError(PipelineError):
    kind = ErrorKind.UPLOAD
