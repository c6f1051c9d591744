# topmark:header:start
#
#   project      : PubSniff
#   file         : errors.py
#   file_relpath : src/pubsniff/fetcher/errors.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Errors raised when reading a `Resource`.

Fetchers never raise when asked for a resource; failures surface on the first
read and are then cached by the resource, so every later read raises the same
error instance.
"""

from __future__ import annotations

from pubsniff.errors import PubsniffLibraryError


class ResourceError(PubsniffLibraryError):
    """Base class for resource access failures."""


class ResourceNotFound(ResourceError):
    """The resource does not exist in the medium."""


class ResourceForbidden(ResourceError):
    """Access to the resource was denied."""


class ResourceIOError(ResourceError):
    """Reading the resource failed at the transport or file system level.

    Attributes:
        cause (BaseException | None): The underlying error.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause: BaseException | None = cause


class ResourceOtherError(ResourceError):
    """Any other failure, including access to a closed resource."""
