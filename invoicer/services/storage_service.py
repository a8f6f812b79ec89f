# invoicer/services/storage_service.py

import json
import logging
import os
import re
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from invoicer.config import DATA_DIR, INVOICE_NUMBER_DIGITS, INVOICE_NUMBER_PREFIX, STORE_FILE_NAME
from invoicer.core.errors import StorageError
from invoicer.core.time import utc_now_iso
from invoicer.models import Client, CompanyInfo, Invoice, SavedItem

logger = logging.getLogger(__name__)

STORE_VERSION = 1

_EMPTY_STORE: Dict[str, Any] = {
    "version": STORE_VERSION,
    "invoices": [],
    "clients": [],
    "company_info": None,
    "saved_items": [],
    "invoice_counter": 0,
}


class LocalStorageService:
    """
    Key-value persistence for invoices, clients, the company profile and saved items.

    The whole store is one JSON document. Every read returns the full current
    record set and every write replaces the file atomically, so a reader never
    observes a half-applied change.
    """
    def __init__(self, path: Optional[Path] = None):
        """
        Initializes the store, creating an empty document if none exists yet.

        Args:
            path (Path): Location of the JSON store. Defaults to DATA_DIR/STORE_FILE_NAME.
        """
        self.path = Path(path) if path is not None else DATA_DIR / STORE_FILE_NAME
        self._ensure_store_exists()

    def _ensure_store_exists(self) -> None:
        if self.path.exists():
            logger.debug("Using local store at %s", self.path)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write(json.loads(json.dumps(_EMPTY_STORE)))
        logger.info("Created local store at %s", self.path)

    # ---- raw document access ------------------------------------------------

    def _read(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return json.loads(json.dumps(_EMPTY_STORE))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read local store %s: %s", self.path, e)
            raise StorageError(f"Local store {self.path} is unreadable: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Local store {self.path} does not contain a JSON object.")
        for key, default in _EMPTY_STORE.items():
            data.setdefault(key, json.loads(json.dumps(default)))
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        fd, tmp = tempfile.mkstemp(prefix="invoicer_", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error("Failed to write local store %s: %s", self.path, e)
            raise StorageError(f"Could not write local store {self.path}: {e}") from e
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)

    @staticmethod
    def _load_record(entry: Any, model, kind: str):
        try:
            return model.model_validate(entry)
        except ValidationError as e:
            raise StorageError(f"Stored {kind} record is invalid: {e}") from e

    @classmethod
    def _load_records(cls, raw: List[Dict[str, Any]], model, kind: str) -> list:
        return [cls._load_record(entry, model, kind) for entry in raw]

    @staticmethod
    def _upsert(records: List[Dict[str, Any]], record: Dict[str, Any]) -> None:
        for index, existing in enumerate(records):
            if existing.get("id") == record["id"]:
                records[index] = record
                return
        records.append(record)

    # ---- identifiers ----------------------------------------------------------

    def generate_id(self) -> str:
        """Returns a process-wide unique opaque token."""
        return uuid.uuid4().hex

    def generate_invoice_number(self) -> str:
        """
        Reserves the next invoice number.

        The counter is persisted, so numbers are never handed out twice even
        after invoices are deleted.

        Returns:
            str: e.g. "INV-0007".
        """
        data = self._read()
        highest = int(data.get("invoice_counter") or 0)
        # Stores written without a counter still continue after their largest number.
        for entry in data["invoices"]:
            match = re.fullmatch(rf"{re.escape(INVOICE_NUMBER_PREFIX)}(\d+)", str(entry.get("invoice_number", "")))
            if match:
                highest = max(highest, int(match.group(1)))
        data["invoice_counter"] = highest + 1
        self._write(data)
        return f"{INVOICE_NUMBER_PREFIX}{highest + 1:0{INVOICE_NUMBER_DIGITS}d}"

    # ---- invoices -------------------------------------------------------------

    def get_invoices(self) -> List[Invoice]:
        return self._load_records(self._read()["invoices"], Invoice, "invoice")

    def get_invoice_by_id(self, invoice_id: str) -> Optional[Invoice]:
        for invoice in self.get_invoices():
            if invoice.id == invoice_id:
                return invoice
        return None

    def save_invoice(self, invoice: Invoice) -> Invoice:
        """
        Inserts or replaces an invoice by id.

        Only stored fields are written; derived totals are properties and never persisted.
        """
        data = self._read()
        self._upsert(data["invoices"], invoice.model_dump(mode="json"))
        self._write(data)
        logger.info("Saved invoice %s (%s)", invoice.invoice_number, invoice.id)
        return invoice

    def delete_invoice(self, invoice_id: str) -> bool:
        data = self._read()
        remaining = [entry for entry in data["invoices"] if entry.get("id") != invoice_id]
        if len(remaining) == len(data["invoices"]):
            return False
        data["invoices"] = remaining
        self._write(data)
        logger.info("Deleted invoice %s", invoice_id)
        return True

    def toggle_invoice_status(self, invoice_id: str) -> Optional[Invoice]:
        """
        Flips the paid flag and stamps updated_at in a single write.

        Returns:
            Optional[Invoice]: The updated invoice, or None when the id is unknown.
        """
        data = self._read()
        for index, entry in enumerate(data["invoices"]):
            if entry.get("id") == invoice_id:
                invoice = self._load_record(entry, Invoice, "invoice")
                updated = invoice.model_copy(update={"is_paid": not invoice.is_paid, "updated_at": utc_now_iso()})
                data["invoices"][index] = updated.model_dump(mode="json")
                self._write(data)
                logger.info("Invoice %s marked %s", updated.invoice_number, "paid" if updated.is_paid else "unpaid")
                return updated
        return None

    # ---- clients --------------------------------------------------------------

    def get_clients(self) -> List[Client]:
        return self._load_records(self._read()["clients"], Client, "client")

    def get_client_by_id(self, client_id: Optional[str]) -> Optional[Client]:
        """Resolves a weak reference; a deleted or missing client yields None."""
        if not client_id:
            return None
        for client in self.get_clients():
            if client.id == client_id:
                return client
        return None

    def save_client(self, client: Client) -> Client:
        data = self._read()
        self._upsert(data["clients"], client.model_dump(mode="json"))
        self._write(data)
        return client

    def delete_client(self, client_id: str) -> bool:
        # Invoices keep their client_id; renderers show the no-client placeholder instead.
        data = self._read()
        remaining = [entry for entry in data["clients"] if entry.get("id") != client_id]
        if len(remaining) == len(data["clients"]):
            return False
        data["clients"] = remaining
        self._write(data)
        return True

    # ---- company profile ------------------------------------------------------

    def get_company_info(self) -> CompanyInfo:
        raw = self._read().get("company_info")
        if not raw:
            return CompanyInfo()
        return self._load_record(raw, CompanyInfo, "company profile")

    def save_company_info(self, company_info: CompanyInfo) -> CompanyInfo:
        data = self._read()
        data["company_info"] = company_info.model_dump(mode="json")
        self._write(data)
        logger.info("Saved company profile %r", company_info.name)
        return company_info

    # ---- saved items ----------------------------------------------------------

    def get_saved_items(self) -> List[SavedItem]:
        return self._load_records(self._read()["saved_items"], SavedItem, "saved item")

    def save_saved_item(self, item: SavedItem) -> SavedItem:
        data = self._read()
        self._upsert(data["saved_items"], item.model_dump(mode="json"))
        self._write(data)
        return item

    def delete_saved_item(self, item_id: str) -> bool:
        data = self._read()
        remaining = [entry for entry in data["saved_items"] if entry.get("id") != item_id]
        if len(remaining) == len(data["saved_items"]):
            return False
        data["saved_items"] = remaining
        self._write(data)
        return True


_storage_instance: Optional[LocalStorageService] = None


def get_storage_service() -> LocalStorageService:
    """Return the process-wide store at the configured location."""
    global _storage_instance
    if _storage_instance is None:
        _storage_instance = LocalStorageService()
    return _storage_instance
