from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from typing import List, Optional
import io
from xml.sax.saxutils import escape
import logging
from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib import colors

from app.api.deps import read_hub
from app.core.config import settings
from app.core.receipts import filter_receipts, receipt_lines, suggest_clients, summarize_receipts
from app.core.sync import SyncHub
from app.schemas.report import ReceiptStatement, ReceiptSummary

router = APIRouter()
logger = logging.getLogger(__name__)

def _receipts(hub: SyncHub):
    return hub.get("receipts").view.records

def _clients(hub: SyncHub):
    return hub.get("clients").view.records

@router.get("/receipts", response_model=List[dict])
async def list_receipts(
    search: Optional[str] = None,
    payment_method: Optional[str] = None,
    hub: SyncHub = Depends(read_hub)
):
    matched = filter_receipts(_receipts(hub), search=search, payment_method=payment_method, clients=_clients(hub))
    return [r.to_wire() for r in matched]

@router.get("/receipts/summary", response_model=ReceiptSummary)
async def receipts_summary(hub: SyncHub = Depends(read_hub)):
    return summarize_receipts(_receipts(hub))

@router.get("/clients/suggestions", response_model=List[dict])
async def client_suggestions(q: str = "", hub: SyncHub = Depends(read_hub)):
    return [c.to_wire() for c in suggest_clients(_clients(hub), q)]

def build_statement(hub: SyncHub) -> ReceiptStatement:
    receipts = _receipts(hub)
    return ReceiptStatement(
        tenant_id=hub.tenant_id,
        summary=summarize_receipts(receipts),
        lines=receipt_lines(receipts, settings.REPORT_MAX_ROWS)
    )

def render_statement_pdf(statement: ReceiptStatement) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4)
    styles = getSampleStyleSheet()
    currency = statement.summary.currency
    elements = []

    # 1. Header
    elements.append(Paragraph("Receipts Statement", styles['Title']))
    elements.append(Spacer(1, 12))
    elements.append(Paragraph(f"<b>Tenant ID:</b> {escape(statement.tenant_id)}", styles['Normal']))
    elements.append(Paragraph(f"<b>Generated:</b> {statement.audit.generated_at.strftime('%Y-%m-%d %H:%M:%S')}", styles['Normal']))
    elements.append(Spacer(1, 24))

    # 2. Summary
    summary = statement.summary
    elements.append(Paragraph("Summary", styles['Heading2']))
    summary_data = [
        ["Metric", "Value"],
        ["Total Receipts", str(summary.total_receipts)],
        ["This Month", str(summary.this_month_count)],
        ["Total Revenue", f"{currency} {summary.total_revenue:,.0f}"],
        ["Average Amount", f"{currency} {summary.average_amount:,}"],
    ]
    for method, total in sorted(summary.by_payment_method.items()):
        summary_data.append([f"Paid by {method}", f"{currency} {total:,.0f}"])
    summary_table = Table(summary_data, colWidths=[200, 150])
    summary_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.navy),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey)
    ]))
    elements.append(summary_table)
    elements.append(Spacer(1, 24))

    # 3. Receipt lines, newest first
    if statement.lines:
        elements.append(Paragraph("Receipts", styles['Heading2']))
        rows = [["Date", "Client", "CNIC", "Method", "Amount"]]
        for line in statement.lines:
            rows.append([
                line.date.strftime('%Y-%m-%d'),
                line.client_name,
                line.client_cnic,
                line.payment_method,
                f"{line.amount:,.0f}"
            ])
        lines_table = Table(rows, colWidths=[70, 140, 110, 80, 80])
        lines_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.navy),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('ALIGN', (-1, 1), (-1, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey)
        ]))
        elements.append(lines_table)

    elements.append(Spacer(1, 48))
    footer_text = "Figures reflect the merged local and realtime receipts at generation time."
    elements.append(Paragraph(footer_text, ParagraphStyle(name='Footer', fontSize=8, textColor=colors.grey, alignment=1)))

    doc.build(elements)
    return buffer.getvalue()

@router.get("/receipts/report", response_model=ReceiptStatement)
async def receipts_statement(hub: SyncHub = Depends(read_hub)):
    logger.info(f"JSON statement requested for tenant: {hub.tenant_id}")
    return build_statement(hub)

@router.get("/receipts/report/pdf")
async def receipts_pdf(hub: SyncHub = Depends(read_hub)):
    logger.info(f"PDF statement requested for tenant: {hub.tenant_id}")
    statement = build_statement(hub)

    try:
        pdf_bytes = render_statement_pdf(statement)
    except Exception as e:
        logger.error(f"PDF Build Failed: {e}")
        raise HTTPException(status_code=500, detail="PDF generation failed during document build.")

    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename=Receipts_Statement_{hub.tenant_id[:8]}.pdf",
            "Content-Length": str(len(pdf_bytes))
        }
    )
