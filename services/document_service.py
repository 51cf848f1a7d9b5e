"""
PDF documents for quotes and invoices, rendered with reportlab.

Both renderers take the dictionaries produced by the repositories, so they
can run after the database session is closed.
"""

import io
import logging
from datetime import datetime
from typing import Dict, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

BRAND_COLOR = colors.HexColor('#1e3a8a')
LABEL_COLOR = colors.HexColor('#666666')


def _text(value, default='N/A'):
    return str(value) if value not in (None, '') else default


def _money(value) -> str:
    return f"${float(value or 0):,.2f}"


def _styles():
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'DocTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=BRAND_COLOR,
        spaceAfter=6,
        alignment=1
    )
    business_style = ParagraphStyle(
        'Business',
        parent=styles['Normal'],
        fontSize=12,
        alignment=1,
        spaceAfter=20
    )
    heading_style = ParagraphStyle(
        'DocHeading',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=BRAND_COLOR,
        spaceAfter=12
    )
    return styles, title_style, business_style, heading_style


def _label_table(rows: List[List[str]]) -> Table:
    table = Table(rows, colWidths=[2 * inch, 4 * inch])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (0, -1), LABEL_COLOR),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
    ]))
    return table


def _line_items_table(items: List[Dict]) -> Table:
    normal = getSampleStyleSheet()['Normal']
    rows = [['Service', 'Quantity', 'Unit Price', 'Total']]
    for item in items:
        rows.append([
            Paragraph(escape(_text(item.get('service_name'))), normal),
            str(item.get('quantity', 1)),
            _money(item.get('price')),
            _money(item.get('line_total')),
        ])

    table = Table(rows, colWidths=[3 * inch, 1 * inch, 1.2 * inch, 1.2 * inch])
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f5f5f5')]),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    return table


def _totals_table(rows: List[List[str]]) -> Table:
    table = Table(rows, colWidths=[5.2 * inch, 1.2 * inch])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 11),
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (0, -1), (-1, -1), 1, BRAND_COLOR),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
    ]))
    return table


def _customer_block(customer: Dict, heading_style) -> list:
    if not customer:
        return []
    return [
        Paragraph("Customer", heading_style),
        _label_table([
            ['Name:', _text(customer.get('name'))],
            ['Email:', _text(customer.get('email'))],
            ['Phone:', _text(customer.get('phone'))],
            ['Address:', _text(customer.get('address'))],
        ]),
        Spacer(1, 0.3 * inch),
    ]


def _build(story: list) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter,
                            topMargin=0.6 * inch, bottomMargin=0.6 * inch)
    doc.build(story)
    buffer.seek(0)
    return buffer.getvalue()


def render_quote_pdf(quote: Dict, business_name: str) -> bytes:
    """Render a quote (as returned by QuoteRepository.get_quote) to PDF bytes."""
    styles, title_style, business_style, heading_style = _styles()
    story = [
        Paragraph("QUOTE", title_style),
        Paragraph(escape(_text(business_name, '')), business_style),
        _label_table([
            ['Quote Number:', quote['id'][:8].upper()],
            ['Date:', datetime.utcnow().strftime('%B %d, %Y')],
            ['Valid Until:', _text(quote.get('valid_until'))],
            ['Status:', _text(quote.get('status', 'draft')).upper()],
        ]),
        Spacer(1, 0.3 * inch),
    ]
    story += _customer_block(quote.get('customer'), heading_style)

    story.append(Paragraph("Services", heading_style))
    story.append(_line_items_table(quote.get('services', [])))
    story.append(Spacer(1, 0.2 * inch))
    story.append(_totals_table([['Total:', _money(quote.get('total_amount'))]]))

    if quote.get('customer_notes'):
        story.append(Spacer(1, 0.3 * inch))
        story.append(Paragraph("Notes", heading_style))
        story.append(Paragraph(escape(quote['customer_notes']), styles['Normal']))

    logger.info(f"Rendered quote PDF {quote['id']}")
    return _build(story)


def render_invoice_pdf(invoice: Dict, business_name: str) -> bytes:
    """Render an invoice (as returned by InvoiceRepository.get_invoice) to PDF bytes."""
    styles, title_style, business_style, heading_style = _styles()
    job = invoice.get('job') or {}

    story = [
        Paragraph("INVOICE", title_style),
        Paragraph(escape(_text(business_name, '')), business_style),
        _label_table([
            ['Invoice Number:', invoice['id'][:8].upper()],
            ['Date:', _text((invoice.get('created_at') or '')[:10])],
            ['Due Date:', _text(invoice.get('due_date'))],
            ['Status:', _text(invoice.get('status')).upper()],
            ['Job:', _text(job.get('title'))],
        ]),
        Spacer(1, 0.3 * inch),
    ]
    story += _customer_block(invoice.get('customer'), heading_style)

    items = job.get('services') or []
    if items:
        story.append(Paragraph("Services", heading_style))
        story.append(_line_items_table(items))
        story.append(Spacer(1, 0.2 * inch))

    story.append(_totals_table([
        ['Total:', _money(invoice.get('total_amount'))],
        ['Paid:', _money(invoice.get('amount_paid'))],
        ['Balance Due:', _money(invoice.get('balance_due'))],
    ]))

    if invoice.get('stripe_payment_link') and invoice.get('balance_due', 0) > 0:
        link = escape(invoice['stripe_payment_link'])
        story.append(Spacer(1, 0.3 * inch))
        story.append(Paragraph(f'Pay online: <link href="{link}">{link}</link>', styles['Normal']))

    if invoice.get('notes'):
        story.append(Spacer(1, 0.3 * inch))
        story.append(Paragraph("Notes", heading_style))
        story.append(Paragraph(escape(invoice['notes']), styles['Normal']))

    logger.info(f"Rendered invoice PDF {invoice['id']}")
    return _build(story)
