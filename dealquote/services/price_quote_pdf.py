"""PDF rendering of persisted price quotes."""

from datetime import datetime
from io import BytesIO
from typing import Any, Dict, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from dealquote.utils.formatters import format_currency, format_date, format_percentage

_HEADER_BLUE = colors.HexColor('#3498DB')
_GRID = colors.HexColor('#BDC3C7')
_ROW_ALT = colors.HexColor('#ECF0F1')

_ESCALATION_COLORS = {
    'ok': colors.HexColor('#27AE60'),
    'warning': colors.HexColor('#F39C12'),
    'blocked': colors.HexColor('#C0392B'),
}


def _data_table_style(money_column: int) -> TableStyle:
    return TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), _HEADER_BLUE),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
        ('ALIGN', (money_column, 1), (money_column, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, _GRID),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, _ROW_ALT]),
    ])


def generate_price_quote_pdf(quote, business_info: Optional[Dict[str, Any]] = None) -> BytesIO:
    """
    Render a persisted quote: header, pricing summary, additional costs and
    the invoice schedule.

    Args:
        quote: PriceQuote model instance
        business_info: optional ``name``, ``address``, ``phone``, ``email``,
            ``currency_symbol`` and ``notes`` for the header and footer
    """
    info = business_info or {}
    symbol = info.get('currency_symbol', '$')

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch,
        title=f"Price quote {quote.name or quote.id}",
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'QuoteTitle',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )
    header_style = ParagraphStyle(
        'QuoteHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )
    section_style = ParagraphStyle(
        'QuoteSection',
        parent=styles['Heading3'],
        textColor=colors.HexColor('#2C3E50'),
        spaceBefore=6,
        spaceAfter=6,
    )

    # 1. Title and business header
    elements.append(Paragraph("PRICE QUOTE", title_style))
    if info.get('name'):
        elements.append(Paragraph(f"<b>{info['name']}</b>", header_style))
    if info.get('address'):
        elements.append(Paragraph(info['address'], header_style))
    contact_parts = []
    if info.get('phone'):
        contact_parts.append(f"Tel: {info['phone']}")
    if info.get('email'):
        contact_parts.append(f"Email: {info['email']}")
    if contact_parts:
        elements.append(Paragraph(" | ".join(contact_parts), header_style))
    elements.append(Spacer(1, 0.3*inch))

    # 2. Quote metadata
    issued = quote.updated_at or quote.created_at or datetime.now()
    meta_data = [
        ['Quote:', quote.name or '-'],
        ['Deal:', quote.deal_id],
        ['Version:', str(quote.version_number)],
        ['Status:', (quote.status or '-').capitalize()],
        ['Issued:', format_date(issued)],
    ]
    meta_table = Table(meta_data, colWidths=[1.6*inch, 4*inch])
    meta_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))
    elements.append(meta_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Pricing summary
    elements.append(Paragraph("Pricing summary", section_style))
    summary_data = [
        ['Concept', 'Value'],
        ['Base minimum price (MP)', format_currency(quote.base_minimum_price_mp, symbol)],
        ['Target markup', format_percentage(quote.target_markup_percentage)],
        ['Total direct cost', format_currency(quote.calculated_total_direct_cost, symbol)],
        ['Target price (TP)', format_currency(quote.calculated_target_price_tp, symbol)],
        ['Full target price (FTP)', format_currency(quote.calculated_full_target_price_ftp, symbol)],
        ['Final offer price (FOP)', format_currency(quote.final_offer_price_fop, symbol)],
        ['Overall discount', format_percentage(quote.overall_discount_percentage)],
        ['Effective markup (FOP over MP)', format_percentage(quote.calculated_effective_markup_fop_over_mp)],
    ]
    summary_table = Table(summary_data, colWidths=[4.2*inch, 2.5*inch])
    summary_table.setStyle(_data_table_style(1))
    elements.append(summary_table)
    elements.append(Spacer(1, 0.15*inch))

    offer_table = Table(
        [['OFFER PRICE:', format_currency(quote.calculated_discounted_offer_price, symbol)]],
        colWidths=[4.2*inch, 2.5*inch],
    )
    status_color = _ESCALATION_COLORS.get(quote.escalation_status, colors.HexColor('#27AE60'))
    offer_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 14),
        ('TEXTCOLOR', (0, 0), (-1, -1), status_color),
        ('BOX', (0, 0), (-1, -1), 2, status_color),
    ]))
    elements.append(offer_table)
    if quote.escalation_status and quote.escalation_status != 'ok':
        reason = (quote.escalation_details or {}).get('reason') or ''
        elements.append(Spacer(1, 0.1*inch))
        elements.append(Paragraph(
            f"<b>Escalation: {quote.escalation_status.upper()}</b> {reason}", styles['Normal']
        ))
    elements.append(Spacer(1, 0.3*inch))

    # 4. Additional costs
    if quote.additional_costs:
        elements.append(Paragraph("Additional costs", section_style))
        cost_data = [['Description', 'Amount']]
        for cost in quote.additional_costs:
            cost_data.append([cost.description, format_currency(cost.amount, symbol)])
        cost_table = Table(cost_data, colWidths=[4.2*inch, 2.5*inch])
        cost_table.setStyle(_data_table_style(1))
        elements.append(cost_table)
        elements.append(Spacer(1, 0.3*inch))

    # 5. Invoice schedule
    elements.append(Paragraph("Invoice schedule", section_style))
    if quote.invoice_schedule_entries:
        schedule_data = [['Due date', 'Type', 'Description', 'Amount']]
        for entry in quote.invoice_schedule_entries:
            schedule_data.append([
                format_date(entry.due_date),
                entry.entry_type.capitalize(),
                entry.description or '',
                format_currency(entry.amount_due, symbol),
            ])
        schedule_table = Table(schedule_data, colWidths=[1.1*inch, 1.1*inch, 2.9*inch, 1.6*inch])
        schedule_table.setStyle(_data_table_style(3))
        elements.append(schedule_table)
    else:
        elements.append(Paragraph("No payments scheduled.", styles['Normal']))
    elements.append(Spacer(1, 0.4*inch))

    footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9, textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER)
    footer_text = "<i>Prices subject to change. This document is not an invoice.</i>"
    if info.get('notes'):
        footer_text += f"<br/><br/><b>Notes:</b> {info['notes']}"
    elements.append(Paragraph(footer_text, footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
