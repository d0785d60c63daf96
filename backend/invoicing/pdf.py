# invoicing/pdf.py
"""
A4 invoice PDF rendered with reportlab platypus.

Layout: company block, bill-to and invoice meta side by side, items
table, totals, notes, footer.
"""

import io
from xml.sax.saxutils import escape

from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

ACCENT = colors.HexColor("#1F4E79")
LIGHT = colors.HexColor("#F3F6FA")
CURRENCY_SYMBOLS = {"MYR": "RM"}


def _rm(amount, currency="MYR") -> str:
    return f"{CURRENCY_SYMBOLS.get(currency, currency)} {amount:,.2f}"


def _p(text, style) -> Paragraph:
    return Paragraph(escape(str(text or "")).replace("\n", "<br/>"), style)


def _company_lines(company) -> list[str]:
    lines = []
    if company.registration_number:
        lines.append(f"Reg. No: {company.registration_number}")
    if company.tax_identification_number:
        lines.append(f"TIN: {company.tax_identification_number}")
    if company.sst_registration_number:
        lines.append(f"SST No: {company.sst_registration_number}")

    if company.street or company.city:
        lines.append(company.street)
        lines.append(" ".join(part for part in (company.postcode, company.city) if part))
        lines.append(", ".join(part for part in (company.state, company.country) if part))
    elif company.address:
        lines.append(company.address)

    if company.phone_number:
        lines.append(f"Tel: {company.phone_number}")
    if company.email:
        lines.append(company.email)
    return [line for line in lines if line]


def render_invoice_pdf(invoice) -> bytes:
    """Return the PDF bytes for ``invoice`` (items and customer are read from it)."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=1 * cm,
        leftMargin=1 * cm,
        topMargin=1.5 * cm,
        bottomMargin=1.5 * cm,
        title=invoice.invoice_number,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("InvTitle", parent=styles["Heading1"], fontSize=20, textColor=ACCENT, spaceAfter=4)
    company_style = ParagraphStyle("InvCompany", parent=styles["Heading2"], fontSize=13, spaceAfter=2)
    normal = ParagraphStyle("InvNormal", parent=styles["Normal"], fontSize=9, leading=12)
    bold = ParagraphStyle("InvBold", parent=normal, fontName="Helvetica-Bold")
    small = ParagraphStyle("InvSmall", parent=styles["Italic"], fontSize=8, alignment=1, textColor=colors.grey)

    company = invoice.company
    customer = invoice.customer
    currency = invoice.currency
    story = []

    # Company block
    story.append(_p(company.display_name, company_style))
    for line in _company_lines(company):
        story.append(_p(line, normal))
    story.append(Spacer(1, 0.4 * cm))
    story.append(Paragraph("INVOICE", title_style))

    # Bill-to / meta
    bill_to = [_p("BILL TO", bold), _p(customer.name, normal)]
    for line in (customer.address, customer.phone_number, customer.email):
        if line:
            bill_to.append(_p(line, normal))
    if customer.tin:
        bill_to.append(_p(f"TIN: {customer.tin}", normal))

    meta = [
        _p(f"Invoice No: {invoice.invoice_number}", bold),
        _p(f"Issue Date: {invoice.issue_date:%d %b %Y}", normal),
        _p(f"Due Date: {invoice.due_date:%d %b %Y}", normal),
        _p(f"Status: {invoice.get_status_display()}", normal),
    ]
    header_table = Table([[bill_to, meta]], colWidths=[10 * cm, 9 * cm])
    header_table.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("BACKGROUND", (0, 0), (0, 0), LIGHT),
        ("BOX", (0, 0), (-1, -1), 0.5, colors.grey),
        ("PADDING", (0, 0), (-1, -1), 6),
    ]))
    story.append(header_table)
    story.append(Spacer(1, 0.5 * cm))

    # Items
    rows = [["#", "Description", "Qty", "Unit Price", "Amount"]]
    items = list(invoice.items.select_related("product"))
    for idx, item in enumerate(items, 1):
        description = item.description or (item.product.name if item.product_id else "")
        rows.append([
            str(idx),
            _p(description, normal),
            f"{item.quantity.normalize():f}",
            _rm(item.unit_price, currency),
            _rm(item.amount, currency),
        ])
    items_table = Table(rows, colWidths=[1 * cm, 9 * cm, 2 * cm, 3.5 * cm, 3.5 * cm], repeatRows=1)
    items_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), ACCENT),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT]),
    ]))
    story.append(items_table)
    story.append(Spacer(1, 0.3 * cm))

    # Totals
    totals = [["Subtotal", _rm(invoice.subtotal, currency)]]
    if invoice.tax_amount:
        totals.append([f"Tax ({invoice.tax_rate.normalize():f}%)", _rm(invoice.tax_amount, currency)])
    if invoice.discount_amount:
        totals.append([f"Discount ({invoice.discount_rate.normalize():f}%)", f"-{_rm(invoice.discount_amount, currency)}"])
    totals.append(["Total", _rm(invoice.total, currency)])
    if invoice.paid_amount:
        totals.append(["Paid", _rm(invoice.paid_amount, currency)])
    totals.append(["Balance Due", _rm(invoice.balance_due, currency)])

    totals_table = Table(totals, colWidths=[4.5 * cm, 3.5 * cm], hAlign="RIGHT")
    totals_table.setStyle(TableStyle([
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("LINEABOVE", (0, -1), (-1, -1), 1, colors.black),
        ("BACKGROUND", (0, -1), (-1, -1), LIGHT),
    ]))
    story.append(totals_table)

    if invoice.notes:
        story.append(Spacer(1, 0.5 * cm))
        story.append(_p("Notes", bold))
        story.append(_p(invoice.notes, normal))

    story.append(Spacer(1, 1 * cm))
    story.append(Paragraph(
        f"Generated {timezone.localtime():%Y-%m-%d %H:%M} | {escape(invoice.invoice_number)} | Powered by Invo",
        small,
    ))

    doc.build(story)
    return buffer.getvalue()
