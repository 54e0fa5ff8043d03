"""Payment service - records collected payments and derives paid/partial/unpaid"""

import logging
from typing import Iterable

from fastapi import HTTPException

from ..assignment.errors import EntryNotFound
from ..assignment.models import PaymentDetail, ServiceEntry
from ..assignment.schemas import PaymentDetailResponse
from ..assignment.session import ShopSession
from ..assignment.time_calculator import clock_of
from .schemas import EntryPaymentResponse, GroupPaymentSummary, PaymentLineIn

logger = logging.getLogger(__name__)


def payment_status(paid: int, total: int) -> str:
    if paid <= 0:
        return "unpaid"
    if paid >= total:
        return "paid"
    return "partial"


class PaymentService:
    """Service layer for the payment collection modal"""

    def __init__(self, session: ShopSession):
        self.session = session

    def _get_entry(self, entry_id: str) -> ServiceEntry:
        try:
            return self.session.get_entry(entry_id)
        except EntryNotFound:
            raise HTTPException(status_code=404, detail="Service entry not found")

    def _get_group(self, group_number: int) -> list[ServiceEntry]:
        entries = [e for e in self.session.list_entries() if e.group_number == group_number]
        if not entries:
            raise HTTPException(status_code=404, detail="Group not found")
        return entries

    def _build_details(self, entry: ServiceEntry, lines: Iterable[PaymentLineIn]) -> list[PaymentDetail]:
        now = clock_of(self.session.clock())
        details = []
        for line in lines:
            amount = max(0, min(line.amount, entry.price))
            if amount != line.amount:
                logger.warning(
                    f"⚠️ Payment of {line.amount} on entry {entry.id} clamped to {amount}"
                )
            details.append(
                PaymentDetail(
                    method=line.method,
                    amount=amount,
                    verified=True if line.method == "Cash" else line.verified,
                    timestamp=line.timestamp or now,
                    reference=line.reference or None,
                    collected_by=line.collectedBy,
                )
            )
        return details

    def _apply(self, entry: ServiceEntry, lines: Iterable[PaymentLineIn]) -> None:
        entry.payment_details = self._build_details(entry, lines)
        entry.payment_status = payment_status(entry.amount_paid, entry.price)
        if entry.payment_details:
            entry.payment_type = entry.payment_details[0].method

    def _entry_response(self, entry: ServiceEntry) -> EntryPaymentResponse:
        paid = entry.amount_paid
        return EntryPaymentResponse(
            entry_id=entry.id,
            therapist=entry.therapist,
            service=entry.service,
            price=entry.price,
            paid=paid,
            remaining=max(0, entry.price - paid),
            payment_status=entry.payment_status,
            payment_details=[PaymentDetailResponse.model_validate(p) for p in entry.payment_details],
        )

    def collect_entry_payment(self, entry_id: str, lines: list[PaymentLineIn]) -> EntryPaymentResponse:
        """Record the payment lines of a single entry"""
        with self.session.command():
            entry = self._get_entry(entry_id)
            self._apply(entry, lines)
            logger.info(
                f"💰 Entry {entry.id} ({entry.therapist}): {entry.amount_paid}/{entry.price} "
                f"{entry.payment_status}"
            )
            return self._entry_response(entry)

    def collect_group_payment(
        self, group_number: int, payments: dict[str, list[PaymentLineIn]]
    ) -> GroupPaymentSummary:
        """Record payments for several entries of one group; every entry must have ended"""
        with self.session.command():
            entries = self._get_group(group_number)
            open_entries = [e for e in entries if not e.is_completed]
            if open_entries:
                names = ", ".join(e.therapist for e in open_entries)
                logger.warning(f"⚠️ Group {group_number} payment refused, still running: {names}")
                raise HTTPException(
                    status_code=409,
                    detail=f"All services in group {group_number} must be completed before payment",
                )

            by_id = {e.id: e for e in entries}
            unknown = [entry_id for entry_id in payments if entry_id not in by_id]
            if unknown:
                raise HTTPException(
                    status_code=404,
                    detail=f"Entries not in group {group_number}: {', '.join(unknown)}",
                )

            for entry_id, lines in payments.items():
                self._apply(by_id[entry_id], lines)

            summary = self._group_summary(group_number, entries)
            logger.info(
                f"💰 Group {group_number}: {summary.paid}/{summary.total} {summary.payment_status}"
            )
            return summary

    def get_group_summary(self, group_number: int) -> GroupPaymentSummary:
        return self._group_summary(group_number, self._get_group(group_number))

    def _group_summary(self, group_number: int, entries: list[ServiceEntry]) -> GroupPaymentSummary:
        total = sum(e.price for e in entries)
        paid = sum(e.amount_paid for e in entries)
        return GroupPaymentSummary(
            group_number=group_number,
            total=total,
            paid=paid,
            remaining=max(0, total - paid),
            payment_status=payment_status(paid, total),
            all_completed=all(e.is_completed for e in entries),
            entries=[self._entry_response(e) for e in entries],
        )
