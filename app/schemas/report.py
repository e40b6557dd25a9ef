from pydantic import BaseModel, Field
from typing import Dict, List
from datetime import datetime
import uuid

from app.core.coercion import utcnow

class ReceiptSummary(BaseModel):
    total_receipts: int = 0
    total_revenue: float = 0
    this_month_count: int = 0
    average_amount: int = 0
    by_payment_method: Dict[str, float] = Field(default_factory=dict)
    currency: str = "PKR"

class ReceiptLine(BaseModel):
    id: str
    date: datetime
    client_name: str = "-"
    client_cnic: str = "-"
    payment_method: str = "-"
    amount: float = 0

class ReportAudit(BaseModel):
    generated_at: datetime = Field(default_factory=utcnow)
    report_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    data_sources: List[str] = ["Local_Cache", "Realtime_Store"]

class ReceiptStatement(BaseModel):
    tenant_id: str
    summary: ReceiptSummary
    lines: List[ReceiptLine] = []
    audit: ReportAudit = Field(default_factory=ReportAudit)
