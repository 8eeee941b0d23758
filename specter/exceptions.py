"""Client-level exception types.

Convention:
- Every error raised by the client derives from ``SpecterError`` so the CLI
  entry point can report it uniformly and exit non-zero.
- Local file problems are left as the built-in ``OSError``.
- ``ApiError`` carries the structured error items returned by the server and
  must be shown verbatim, including any ``context``.
"""

from __future__ import annotations

from dataclasses import dataclass


class SpecterError(Exception):
    """Base class for all client errors."""


class ConfigError(SpecterError):
    """Raised when no usable URL/key can be resolved or a config file is invalid."""


class MalformedInputError(SpecterError, ValueError):
    """Raised for input that cannot be decoded (e.g. invalid hex)."""


class AuthError(SpecterError):
    """Raised when the admin API key cannot be turned into a token."""


class BadKeyFormatError(AuthError):
    """The admin key has no ``id:secret`` separator."""


class BadSecretError(AuthError):
    """The secret half of the admin key is not valid hex."""


@dataclass(frozen=True)
class ApiErrorItem:
    """A single entry of an ``{"errors": [...]}`` response envelope."""

    message: str
    context: str | None = None
    type: str | None = None


class ApiError(SpecterError):
    """Structured error returned by the remote service (status >= 400)."""

    def __init__(self, status_code: int, items: list[ApiErrorItem]) -> None:
        self.status_code = status_code
        self.items = items
        super().__init__(self._format())

    def _format(self) -> str:
        if not self.items:
            return "unknown API error"
        first = self.items[0]
        if first.context:
            return f"{first.message}: {first.context}"
        return first.message

    @property
    def message(self) -> str:
        return self.items[0].message if self.items else ""


class TransportError(SpecterError):
    """Network failure, or an error response whose body is not a structured error."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ResponseShapeError(SpecterError):
    """A successful response is missing a field the client relies on."""


class NotFoundError(SpecterError):
    """An identifier lookup found nothing by id nor by filter."""


class PaginationError(SpecterError):
    """The server's pagination cursors did not terminate."""


class OperationCancelledError(SpecterError):
    """A long-running operation was cancelled between steps."""


class ParseError(SpecterError):
    """A local document could not be parsed."""


class UnterminatedFrontmatterError(ParseError):
    """The opening ``---`` delimiter has no matching closing line."""


class BadMetadataError(ParseError):
    """The frontmatter block is not a valid YAML mapping."""


class RenderError(ParseError):
    """Markdown to HTML conversion failed."""
