"""
Single-page repair invoice rendered with ReportLab.
"""
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from .models import RepairJob

INVOICE_TITLE = "Repair Invoice"
CLOSING_LINE = "Thank you for trusting us!"


def render_invoice(job: RepairJob) -> bytes:
    """Build the invoice for job and return the PDF bytes."""
    buf = BytesIO()
    margin = 40
    doc = SimpleDocTemplate(buf, pagesize=letter, leftMargin=margin, rightMargin=margin,
                            topMargin=margin, bottomMargin=margin, title=INVOICE_TITLE)
    styles = getSampleStyleSheet()
    title = ParagraphStyle("invoice_title", parent=styles["Title"], fontSize=28, leading=34, alignment=0)
    body = ParagraphStyle("invoice_body", parent=styles["Normal"], fontSize=18, leading=24)
    small = ParagraphStyle("invoice_small", parent=styles["Normal"], fontSize=16, leading=20)
    elems = [
        Paragraph(f"<b>{INVOICE_TITLE}</b>", title),
        Spacer(1, 20),
        Paragraph(f"Customer: {escape(job.customer_name)}", body),
        Paragraph(f"Phone: {escape(job.phone)}", body),
        Paragraph(f"Device: {escape(job.model)} (IMEI: {escape(job.imei)})", body),
        Spacer(1, 15),
        Paragraph(f"Issue: {escape(job.problem)}", small),
        Spacer(1, 0.4 * inch),
        Paragraph(CLOSING_LINE, small),
    ]
    doc.build(elems)
    return buf.getvalue()
