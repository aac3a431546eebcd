"""Decide how a scraped candidate lands in the store.

The reconciler does no I/O: it is handed a lookup function and returns a
ReconcileAction describing the write. Merges only ever add: new orders are
appended by identity key and empty metadata is filled, nothing stored is
overwritten.
"""
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from courtsync.core.exceptions import MissingIdentity
from courtsync.schemas.case_record import MERGEABLE_FIELDS, CaseRecord, NaturalKey, OrderEntry

Lookup = Callable[[NaturalKey], Optional[CaseRecord]]


class ActionKind(str, Enum):
    INSERT = "Insert"
    MERGE = "Merge"


class ReconcileAction(BaseModel):
    kind: ActionKind
    record: CaseRecord
    existing_id: Optional[str] = None
    added_orders: List[OrderEntry] = []
    backfilled_orders: List[OrderEntry] = []
    changed_fields: Dict[str, str] = {}

    @property
    def is_noop(self) -> bool:
        return (
            self.kind == ActionKind.MERGE
            and not self.added_orders
            and not self.backfilled_orders
            and not self.changed_fields
        )


def merge_orders(existing: List[OrderEntry], incoming: List[OrderEntry]) -> Tuple[List[OrderEntry], List[OrderEntry], List[OrderEntry]]:
    """Merge incoming orders into existing ones by identity key.

    Returns (merged, added, backfilled). Existing order order is preserved and
    new orders are appended; an existing order without a document_ref takes
    the incoming one.
    """
    merged = [order.model_copy() for order in existing]
    by_key = {order.identity_key: order for order in merged}
    added = []
    backfilled = []

    for order in incoming:
        key = order.identity_key
        current = by_key.get(key)
        if current is None:
            entry = order.model_copy()
            merged.append(entry)
            by_key[key] = entry
            added.append(entry)
        elif not current.document_ref and order.document_ref:
            current.document_ref = order.document_ref
            backfilled.append(current)

    return merged, added, backfilled


def merge_fields(existing: CaseRecord, candidate: CaseRecord) -> Dict[str, str]:
    """Values from candidate for every mergeable field that is empty on existing"""
    changes = {}
    for field in MERGEABLE_FIELDS:
        current = getattr(existing, field) or ""
        incoming = getattr(candidate, field) or ""
        if not current.strip() and incoming.strip():
            changes[field] = incoming
    # city and district are one location slot; never fill the second
    if existing.location and ("city" in changes or "district" in changes):
        changes.pop("city", None)
        changes.pop("district", None)
    return changes


class RecordReconciler:
    def reconcile(self, candidate: CaseRecord, lookup: Lookup) -> ReconcileAction:
        key = candidate.natural_key
        if not key.is_complete:
            raise MissingIdentity(
                f"record needs a diary number and a court (diary={key.diary_number!r}, court={key.court!r})"
            )

        existing = lookup(key)
        if existing is None:
            orders, _, _ = merge_orders([], candidate.orders)
            record = candidate.model_copy(update={"orders": orders})
            return ReconcileAction(kind=ActionKind.INSERT, record=record, added_orders=orders)

        orders, added, backfilled = merge_orders(existing.orders, candidate.orders)
        changes = merge_fields(existing, candidate)
        record = existing.model_copy(update={**changes, "orders": orders})
        return ReconcileAction(
            kind=ActionKind.MERGE,
            record=record,
            existing_id=existing.id,
            added_orders=added,
            backfilled_orders=backfilled,
            changed_fields=changes,
        )
