# invoicer/core/errors.py

"""Exceptions raised across the invoicer package.

Only the export boundary is expected to fail at runtime; calculation and
rendering are pure and raise nothing on well-typed input.
"""


class InvoicerError(Exception):
    """Base class for all invoicer errors."""


class InvoiceValidationError(InvoicerError, ValueError):
    """A record was rejected at save time. The stored copy is left untouched."""


class UnsupportedLanguageError(InvoicerError, LookupError):
    """No translation table exists for the requested language code."""

    def __init__(self, code):
        self.code = code
        super().__init__(f"Unsupported invoice language: {code!r}")


class RenderTargetUnavailableError(InvoicerError):
    """Export or preview was requested before the off-screen layout existed."""


class DocumentGenerationError(InvoicerError, RuntimeError):
    """Rasterization or PDF composition failed."""


class PreviewReleasedError(InvoicerError):
    """A preview handle was read after it had been released."""


class ExportInProgressError(InvoicerError):
    """Another export or preview is still running for the same view."""


class StorageError(InvoicerError):
    """The local store could not be read or written."""
