"""
Record Store

Owns the canonical list of shopping records, persisted as one JSON array
under one fixed key of a blob store.

CONTRACT:
- list_all() never raises: an unreadable or corrupt blob reads as an
  empty collection (fail-open), and elements that fail validation are
  skipped, so a bad file cannot crash the app
- mutations read strictly: if the blob cannot be read or any element is
  invalid they raise and leave the blob untouched
- upsert() replaces by id in place, or prepends a new record
- remove() of an unknown id is a no-op
- every successful mutation rewrites the whole blob and returns the full
  resulting collection
"""

import json
import secrets
import string
import time
from typing import Iterable, Optional

from pydantic import ValidationError

from smartshop.audit import ActivityLogger
from smartshop.models.record import ShoppingRecord
from smartshop.services.storage.interface import BlobStoreInterface, StorageError


DEFAULT_RECORDS_KEY = "smart_shop_items_v1"

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


class CorruptStoreError(StorageError):
    """Stored blob is not a JSON array of valid records."""
    pass


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def new_id() -> str:
    """
    Generate a record ID.

    Millisecond timestamp in base 36 followed by a random base-36
    suffix. Collisions are not checked for.
    """
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = _to_base36(secrets.randbits(52)).rjust(11, "0")
    return timestamp + suffix


def dump_records(records: Iterable[ShoppingRecord]) -> str:
    """Serialize records to the persisted JSON array."""
    return json.dumps(
        [record.to_storage_dict() for record in records],
        ensure_ascii=False,
    )


def _load_array(text: str) -> list:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptStoreError(f"Stored records are not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise CorruptStoreError(
            f"Stored records must be a JSON array, got {type(data).__name__}"
        )
    return data


def load_records(text: str) -> list[ShoppingRecord]:
    """
    Parse the persisted JSON array.

    Raises:
        CorruptStoreError: If the text is not a JSON array of valid records
    """
    records = []
    for index, item in enumerate(_load_array(text)):
        try:
            records.append(ShoppingRecord.model_validate(item))
        except ValidationError as e:
            raise CorruptStoreError(
                f"Stored record {index} failed validation: {e}"
            ) from e
    return records


def salvage_records(text: str) -> tuple[list[ShoppingRecord], list[int]]:
    """
    Parse the persisted JSON array, skipping elements that fail validation.

    Returns:
        The valid records and the indexes of the skipped elements

    Raises:
        CorruptStoreError: If the text is not a JSON array at all
    """
    records = []
    skipped = []
    for index, item in enumerate(_load_array(text)):
        try:
            records.append(ShoppingRecord.model_validate(item))
        except ValidationError:
            skipped.append(index)
    return records, skipped


class RecordStore:
    """
    Full-collection record store on top of a blob store.

    There is no caching: every call reads the blob again, so the store
    always reflects what is persisted.
    """

    def __init__(
        self,
        blob_store: BlobStoreInterface,
        key: str = DEFAULT_RECORDS_KEY,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._blob_store = blob_store
        self._key = key
        self._activity_logger = activity_logger or ActivityLogger()

    @property
    def key(self) -> str:
        return self._key

    def list_all(self) -> list[ShoppingRecord]:
        """
        All readable records in storage order.

        Empty on any read failure; invalid elements are left out.
        """
        try:
            text = self._blob_store.get(self._key)
        except StorageError as e:
            self._activity_logger.log_store_load_failed(self._key, str(e))
            return []

        if not text:
            return []

        try:
            records, skipped = salvage_records(text)
        except CorruptStoreError as e:
            self._activity_logger.log_store_load_failed(self._key, str(e))
            return []

        if skipped:
            self._activity_logger.log_store_load_failed(
                self._key,
                f"Skipped stored records that failed validation at {skipped}",
            )
        return records

    def get(self, record_id: str) -> Optional[ShoppingRecord]:
        """Look up one record by id."""
        for record in self.list_all():
            if record.id == record_id:
                return record
        return None

    def upsert(self, record: ShoppingRecord) -> list[ShoppingRecord]:
        """
        Insert or replace a record.

        Same id: replaced at its current position, keeping the original
        created_at.
        New id: placed at the front of the collection.

        Raises:
            StorageError: If the blob cannot be read or written
            CorruptStoreError: If the stored blob holds anything invalid
        """
        records = self._read()
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record.model_copy(
                    update={"created_at": existing.created_at}
                )
                break
        else:
            records.insert(0, record)

        self._write(records)
        return records

    def remove(self, record_id: str) -> list[ShoppingRecord]:
        """
        Drop the record with this id, if any.

        Raises:
            StorageError: If the blob cannot be read or written
            CorruptStoreError: If the stored blob holds anything invalid
        """
        records = [record for record in self._read() if record.id != record_id]
        self._write(records)
        return records

    def new_id(self) -> str:
        return new_id()

    def _read(self) -> list[ShoppingRecord]:
        text = self._blob_store.get(self._key)
        if not text:
            return []
        return load_records(text)

    def _write(self, records: list[ShoppingRecord]) -> None:
        self._blob_store.set(self._key, dump_records(records))
