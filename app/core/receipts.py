from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from app.core.coercion import utcnow
from app.core.config import settings
from app.schemas.record import Client, Receipt
from app.schemas.report import ReceiptLine, ReceiptSummary

SUGGESTION_MIN_QUERY = 3


def filter_receipts(
    receipts: Iterable[Receipt],
    search: Optional[str] = None,
    payment_method: Optional[str] = None,
    clients: Sequence[Client] = (),
) -> List[Receipt]:
    """
    Receipts matching a free-text search and/or a payment method.
    The search looks at the client name, the CNIC, and the name of the
    registered client whose CNIC appears on the receipt.
    """
    term = (search or "").strip()
    needle = term.lower()
    by_cnic: Dict[str, Client] = {c.cnic: c for c in clients if c.cnic}

    matched = []
    for receipt in receipts:
        if payment_method and receipt.payment_method != payment_method:
            continue
        if term:
            client = by_cnic.get(receipt.client_cnic or "")
            if not (
                needle in (receipt.client_name or "").lower()
                or term in (receipt.client_cnic or "")
                or needle in ((client.name if client else None) or "").lower()
            ):
                continue
        matched.append(receipt)
    return matched


def summarize_receipts(receipts: Sequence[Receipt], now: Optional[datetime] = None) -> ReceiptSummary:
    now = now or utcnow()
    total = sum(r.amount for r in receipts)

    by_method: Dict[str, float] = {}
    for r in receipts:
        method = r.payment_method or "unknown"
        by_method[method] = by_method.get(method, 0) + r.amount

    this_month = [r for r in receipts if (r.date.year, r.date.month) == (now.year, now.month)]

    return ReceiptSummary(
        total_receipts=len(receipts),
        total_revenue=total,
        this_month_count=len(this_month),
        average_amount=round(total / len(receipts)) if receipts else 0,
        by_payment_method=by_method,
        currency=settings.CURRENCY,
    )


def suggest_clients(clients: Iterable[Client], query: str, limit: int = 5) -> List[Client]:
    """Client lookup for the receipt form: CNIC substring or name, case-insensitive."""
    query = (query or "").strip()
    if len(query) < SUGGESTION_MIN_QUERY:
        return []
    needle = query.lower()
    matches = [
        c for c in clients
        if query in (c.cnic or "") or needle in (c.name or "").lower()
    ]
    return matches[:limit]


def receipt_lines(receipts: Iterable[Receipt], limit: int) -> List[ReceiptLine]:
    lines = []
    for r in list(receipts)[:limit]:
        lines.append(ReceiptLine(
            id=r.id,
            date=r.date,
            client_name=r.client_name or "-",
            client_cnic=r.client_cnic or "-",
            payment_method=r.payment_method or "-",
            amount=r.amount,
        ))
    return lines
