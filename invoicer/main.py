# invoicer/main.py

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from invoicer.config import DEFAULT_LANGUAGE
from invoicer.core.errors import (
    DocumentGenerationError,
    ExportInProgressError,
    RenderTargetUnavailableError,
    UnsupportedLanguageError,
)
from invoicer.models import Client, CompanyInfo, Invoice
from invoicer.services.pdf_service import export_pdf, generate_pdf_bytes
from invoicer.services.preview_service import PreviewHandle, PreviewSlot
from invoicer.services.render_service import DocumentKind, DocumentLayout, render_document
from invoicer.services.storage_service import LocalStorageService, get_storage_service

logger = logging.getLogger(__name__)


class ActionResult(BaseModel):
    """Outcome of a user-triggered export or preview, ready to show as a toast."""
    ok: bool
    message: str
    path: Optional[str] = None
    preview_token: Optional[str] = None


class InvoiceViewController:
    """
    Orchestrates preview and export for one open invoice.

    Works on a snapshot of the invoice, client and company profile taken when
    the view opens (or refreshes). Exports and previews are serialized: while
    one is running, another request is rejected, mirroring a disabled button.
    """
    def __init__(self, storage: LocalStorageService, invoice: Invoice, company_info: CompanyInfo):
        self.storage = storage
        self.company_info = company_info
        self.preview_slot = PreviewSlot()
        self._busy = False
        self._closed = False
        # Bumped whenever the current preview is invalidated; an in-flight preview
        # started under an older generation is discarded on arrival.
        self._generation = 0
        self.invoice: Invoice
        self.client: Optional[Client]
        self._snapshot(invoice)

    def _snapshot(self, invoice: Invoice) -> None:
        self.invoice = invoice.model_copy(deep=True)
        self.client = self.storage.get_client_by_id(invoice.client_id)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def preview_handle(self) -> Optional[PreviewHandle]:
        return self.preview_slot.handle

    def render(self, language: str = DEFAULT_LANGUAGE, kind: Optional[DocumentKind] = None) -> DocumentLayout:
        return render_document(self.invoice, self.client, self.company_info, language, kind)

    async def _run_exclusive(self, label: str, job) -> ActionResult:
        if self._busy:
            error = ExportInProgressError(f"A {label} is already in progress")
            logger.info("%s", error)
            return ActionResult(ok=False, message=str(error))
        self._busy = True
        try:
            return await job()
        except UnsupportedLanguageError as e:
            logger.error("%s failed: %s", label, e)
            return ActionResult(ok=False, message=str(e))
        except RenderTargetUnavailableError as e:
            logger.warning("%s failed: %s", label, e)
            return ActionResult(ok=False, message="The document is not ready yet. Please try again.")
        except DocumentGenerationError as e:
            logger.error("%s failed: %s", label, e)
            return ActionResult(ok=False, message=f"Failed to {label}. Please try again.")
        finally:
            self._busy = False

    async def preview(self, language: str = DEFAULT_LANGUAGE, kind: Optional[DocumentKind] = None) -> ActionResult:
        """
        Generates an in-memory PDF preview in the chosen language.

        The previous preview is released once the new one exists; on failure
        the slot is emptied so no stale document stays on screen.
        """
        async def job() -> ActionResult:
            generation = self._generation
            try:
                data = await generate_pdf_bytes(self.render(language, kind))
            except Exception:
                if generation == self._generation:
                    self.preview_slot.close()
                raise
            handle = PreviewHandle(data, language)
            if self._closed or generation != self._generation:
                handle.release()
                logger.info("Discarded %s preview, the view changed while it was generated", language)
                return ActionResult(ok=False, message="The preview is out of date and was discarded.")
            self.preview_slot.replace(handle)
            return ActionResult(ok=True, message="Preview ready", preview_token=handle.token)

        return await self._run_exclusive("generate the preview", job)

    async def export(
        self,
        language: str = DEFAULT_LANGUAGE,
        directory: Optional[Path] = None,
        kind: Optional[DocumentKind] = None,
    ) -> ActionResult:
        """Saves `<invoiceNumber>.pdf` to the directory (EXPORT_DIR by default)."""
        async def job() -> ActionResult:
            path = await export_pdf(self.render(language, kind), self.invoice.invoice_number, directory)
            return ActionResult(ok=True, message=f"Exported {path.name}", path=str(path))

        return await self._run_exclusive("export the PDF", job)

    def close_preview(self) -> None:
        self._generation += 1
        self.preview_slot.close()

    def toggle_paid(self) -> Invoice:
        """Flips the paid flag through the store and refreshes the snapshot."""
        updated = self.storage.toggle_invoice_status(self.invoice.id)
        if updated is not None:
            self.close_preview()
            self._snapshot(updated)
        return self.invoice

    def close(self) -> None:
        """Tears the view down, releasing any preview it still holds or is still generating."""
        self._closed = True
        self.close_preview()

    def __enter__(self) -> "InvoiceViewController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class InvoicerApp:
    """
    One session over a local store.

    The company profile is read once here and injected into every view,
    rather than being looked up globally at render time.
    """
    def __init__(self, storage: Optional[LocalStorageService] = None):
        self.storage = storage or get_storage_service()
        self.company_info = self.storage.get_company_info()
        logger.info("Session started for %r", self.company_info.name or "unnamed company")

    def reload_company_info(self) -> CompanyInfo:
        self.company_info = self.storage.get_company_info()
        return self.company_info

    def open_invoice(self, invoice_id: str) -> InvoiceViewController:
        invoice = self.storage.get_invoice_by_id(invoice_id)
        if invoice is None:
            raise KeyError(f"Invoice {invoice_id!r} not found")
        return InvoiceViewController(self.storage, invoice, self.company_info)
