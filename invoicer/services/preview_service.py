# invoicer/services/preview_service.py

"""In-memory PDF previews with explicit release."""

import logging
import uuid
from io import BytesIO
from typing import Optional

from invoicer.core.errors import PreviewReleasedError

logger = logging.getLogger(__name__)


class PreviewHandle:
    """A transient reference to a generated PDF that is never written to disk."""

    def __init__(self, data: bytes, language: str):
        self.token = f"preview://{uuid.uuid4().hex}"
        self.language = language
        self._buffer: Optional[BytesIO] = BytesIO(data)

    @property
    def released(self) -> bool:
        return self._buffer is None

    def read(self) -> bytes:
        if self._buffer is None:
            raise PreviewReleasedError(f"Preview {self.token} has been released")
        return self._buffer.getvalue()

    def release(self) -> None:
        """Frees the buffer. Safe to call more than once."""
        if self._buffer is not None:
            self._buffer.close()
            self._buffer = None
            logger.debug("Released %s", self.token)

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"<PreviewHandle {self.token} {self.language} {state}>"


class PreviewSlot:
    """
    Holds at most one live preview for a view.

    The previous handle is released when a new one replaces it, when the
    preview is closed, and when the slot itself is torn down.
    """

    def __init__(self):
        self._handle: Optional[PreviewHandle] = None

    @property
    def handle(self) -> Optional[PreviewHandle]:
        return self._handle

    def replace(self, handle: PreviewHandle) -> PreviewHandle:
        previous, self._handle = self._handle, handle
        if previous is not None and previous is not handle:
            previous.release()
        return handle

    def close(self) -> None:
        if self._handle is not None:
            self._handle.release()
            self._handle = None

    def __enter__(self) -> "PreviewSlot":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
