"""
Quote PDF Generator
===================
Renders a backend quote record as a one-or-more page A4 quotation:

  - Letterhead (company name, address, phone, email, VAT no.)
  - QUOTATION block: reference + version, date, valid-until
  - "To:" customer/contact block and "Project:" title
  - Item table with wrapped descriptions, repeated header on each page
  - Subtotal / VAT / TOTAL, then terms and notes

Amounts are GBP. VAT defaults to 20%.
"""

import os
import logging
from datetime import datetime, timedelta
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.colors import Color, HexColor
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from bones.core.settings import company_info
from bones.quotes.filters import customer_name

log = logging.getLogger("bones.quote_pdf")

DEFAULT_VAT_RATE = 0.20
DEFAULT_VALIDITY_DAYS = 30

# ═══════════════════════════════════════════════════════════════════════════════
# COLORS
# ═══════════════════════════════════════════════════════════════════════════════
HEADER_FILL = Color(0.902, 0.918, 0.945)   # #E6EAF1 table header
RULE        = HexColor("#2C3E50")
BLACK       = HexColor("#000000")
GRAY        = HexColor("#555555")
ALT_ROW     = Color(0.97, 0.97, 0.98)


def money(value) -> str:
    return f"£{float(value or 0):,.2f}"


def _parse_date(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        log.debug("Unparseable date %r", value)
        return None


def _fmt_date(value) -> str:
    d = _parse_date(value)
    return d.strftime("%d %b %Y") if d else ""


def line_items(quote: dict) -> list:
    """lineItems from the backend, or the legacy items list."""
    return quote.get("lineItems") or quote.get("items") or []


def line_total(item: dict) -> float:
    if item.get("total") is not None:
        return float(item["total"])
    return float(item.get("quantity") or 0) * float(item.get("unitPrice") or 0)


def generate_quote_pdf(quote: dict, output_path: str, vat_rate: float = DEFAULT_VAT_RATE,
                       company: Optional[dict] = None,
                       validity_days: int = DEFAULT_VALIDITY_DAYS) -> dict:
    """Write the quotation PDF to output_path.

    Returns {"ok", "path", "reference", "subtotal", "vat", "total", "items_count", "pages"}.
    """
    company = company or company_info()
    items = line_items(quote)
    subtotal = quote.get("totalAmount")
    if subtotal is None:
        subtotal = quote.get("value")
    if subtotal is None:
        subtotal = sum(line_total(i) for i in items)
    subtotal = float(subtotal)
    vat = round(subtotal * vat_rate, 2)
    total = round(subtotal + vat, 2)

    reference = quote.get("quoteReference") or quote.get("quoteNumber") or quote.get("id") or ""
    if quote.get("versionNumber"):
        reference = f"{reference} v{quote['versionNumber']}"
    created = _parse_date(quote.get("createdAt") or quote.get("date")) or datetime.now()
    valid_until = _fmt_date(quote.get("validUntil")) or \
        (created + timedelta(days=validity_days)).strftime("%d %b %Y")

    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)

    # ── Page constants ─────────────────────────────────────────────────────────
    W, H = A4
    ML = 40
    MR = W - 40
    UW = MR - ML
    BOTTOM = 70

    c = canvas.Canvas(output_path, pagesize=A4)
    c.setTitle(f"Quotation {reference}")
    c.setAuthor(company.get("name", ""))

    # top-origin y → reportlab y
    def Y(top_y):
        return H - top_y

    def text(x, yt, txt, font="Helvetica", size=9, color=BLACK, align="left"):
        c.setFont(font, size)
        c.setFillColor(color)
        s = str(txt) if txt else ""
        if align == "right":
            c.drawRightString(x, Y(yt), s)
        elif align == "center":
            c.drawCentredString(x, Y(yt), s)
        else:
            c.drawString(x, Y(yt), s)

    page_num = 1

    def footer():
        c.setFillColor(GRAY)
        c.setFont("Helvetica", 8)
        c.drawRightString(MR, 30, f"Page {page_num}")
        c.drawString(ML, 30, f"Quotation {reference}")

    # ══════════════════════════════════════════════════════════════════════════
    # HEADER
    # ══════════════════════════════════════════════════════════════════════════
    text(ML, 60, company.get("name", ""), "Helvetica-Bold", 16, RULE)
    yt = 76
    for line in (company.get("address"),
                 f"Tel: {company['phone']}" if company.get("phone") else "",
                 f"Email: {company['email']}" if company.get("email") else "",
                 f"VAT No: {company['vat']}" if company.get("vat") else ""):
        if line:
            text(ML, yt, line, size=8.5, color=GRAY)
            yt += 11

    text(MR, 60, "QUOTATION", "Helvetica-Bold", 20, RULE, "right")
    text(MR, 78, f"Quote #: {reference}", size=9, align="right")
    text(MR, 90, f"Date: {created.strftime('%d %b %Y')}", size=9, align="right")
    text(MR, 102, f"Valid Until: {valid_until}", size=9, align="right")

    c.setStrokeColor(RULE)
    c.setLineWidth(1.2)
    c.line(ML, Y(max(yt, 112) + 4), MR, Y(max(yt, 112) + 4))

    # ── To / Project ──────────────────────────────────────────────────────────
    yt = max(yt, 112) + 24
    text(ML, yt, "To:", "Helvetica-Bold", 10)
    text(ML + UW / 2, yt, "Project:", "Helvetica-Bold", 10)
    to_lines = [customer_name(quote), quote.get("contactPerson"),
                quote.get("contactEmail"), quote.get("contactPhone")]
    ty = yt + 13
    for line in to_lines:
        if line:
            text(ML, ty, line, size=9)
            ty += 11
    for i, line in enumerate(simpleSplit(str(quote.get("title") or ""), "Helvetica", 9, UW / 2)):
        text(ML + UW / 2, yt + 13 + i * 11, line, size=9)
    yt = max(ty, yt + 24) + 12

    text(ML, yt, "Thank you for your enquiry. We are pleased to submit the following "
                 "quotation for your consideration:", size=9)
    yt += 16

    # ══════════════════════════════════════════════════════════════════════════
    # ITEM TABLE
    # ══════════════════════════════════════════════════════════════════════════
    COLS = [
        ("Item Description", ML,            UW - 250, "left"),
        ("Quantity",         MR - 250,      60,       "center"),
        ("Unit",             MR - 190,      40,       "center"),
        ("Unit Price",       MR - 150,      75,       "right"),
        ("Total",            MR - 75,       75,       "right"),
    ]
    hdr_h = 18

    def table_header(ty):
        c.setFillColor(HEADER_FILL)
        c.rect(ML, Y(ty) - hdr_h, UW, hdr_h, fill=1, stroke=0)
        for name, cx, cw, align in COLS:
            if align == "right":
                text(cx + cw - 4, ty + 12, name, "Helvetica-Bold", 9, align="right")
            elif align == "center":
                text(cx + cw / 2, ty + 12, name, "Helvetica-Bold", 9, align="center")
            else:
                text(cx + 4, ty + 12, name, "Helvetica-Bold", 9)
        return ty + hdr_h

    yt = table_header(yt)
    for idx, item in enumerate(items):
        desc_lines = simpleSplit(str(item.get("description") or ""), "Helvetica", 8.5,
                                 COLS[0][2] - 8) or [""]
        row_h = max(16, len(desc_lines) * 10 + 6)

        if Y(yt) - row_h < BOTTOM:
            footer()
            c.showPage()
            page_num += 1
            yt = table_header(50)

        if idx % 2 == 1:
            c.setFillColor(ALT_ROW)
            c.rect(ML, Y(yt) - row_h, UW, row_h, fill=1, stroke=0)

        base = yt + 11
        for i, dline in enumerate(desc_lines):
            text(ML + 4, base + i * 10, dline, size=8.5)
        text(COLS[1][1] + COLS[1][2] / 2, base, item.get("quantity", ""), size=9, align="center")
        text(COLS[2][1] + COLS[2][2] / 2, base, item.get("unit") or "Unit", size=9, align="center")
        text(COLS[3][1] + COLS[3][2] - 4, base, money(item.get("unitPrice")), size=9, align="right")
        text(COLS[4][1] + COLS[4][2] - 4, base, money(line_total(item)), size=9, align="right")
        yt += row_h

    c.setStrokeColor(RULE)
    c.setLineWidth(0.8)
    c.line(ML, Y(yt), MR, Y(yt))

    # ══════════════════════════════════════════════════════════════════════════
    # TOTALS, TERMS, NOTES
    # ══════════════════════════════════════════════════════════════════════════
    totals = [
        ("Subtotal:", money(subtotal), False),
        (f"VAT ({vat_rate * 100:g}%):", money(vat), False),
        ("TOTAL:", money(total), True),
    ]
    if Y(yt) - 16 * len(totals) - 20 < BOTTOM:
        footer()
        c.showPage()
        page_num += 1
        yt = 50
    yt += 16
    for label, val, bold in totals:
        font = "Helvetica-Bold" if bold else "Helvetica"
        text(MR - 80, yt, label, font, 10, align="right")
        text(MR - 4, yt, val, font, 10, align="right")
        yt += 15

    blocks = []
    terms = quote.get("terms") or f"This quotation is valid for {validity_days} days."
    blocks.append(("Terms", terms))
    if quote.get("notes"):
        blocks.append(("Notes", quote["notes"]))
    yt += 10
    for heading, body in blocks:
        lines = simpleSplit(str(body), "Helvetica", 8.5, UW)
        if Y(yt) - 14 - len(lines) * 10 < BOTTOM:
            footer()
            c.showPage()
            page_num += 1
            yt = 50
        text(ML, yt, heading, "Helvetica-Bold", 9)
        yt += 12
        for line in lines:
            text(ML, yt, line, size=8.5, color=GRAY)
            yt += 10
        yt += 8

    footer()
    c.save()

    log.info("Quote PDF %s: %s total, %d items → %s", reference, money(total),
             len(items), output_path, extra={"quote_id": quote.get("id")})
    return {
        "ok": True,
        "path": output_path,
        "reference": reference,
        "subtotal": subtotal,
        "vat": vat,
        "total": total,
        "items_count": len(items),
        "pages": page_num,
    }
