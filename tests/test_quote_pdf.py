"""
Tests for bones.forms.quote_pdf: totals, pagination, and the text that lands
in the PDF (read back with pypdf).
"""
import os

import pytest
from pypdf import PdfReader

from bones.forms.quote_pdf import generate_quote_pdf, line_total, money

COMPANY = {"name": "Bones Test Ltd", "address": "1 Test Road", "phone": "0100",
           "email": "sales@bones.test", "vat": "GB123"}


def _text(path):
    return "\n".join(page.extract_text() for page in PdfReader(path).pages)


class TestQuotePdf:

    def test_single_page(self, approved_quote, temp_data_dir):
        out = os.path.join(temp_data_dir, "output", "q100.pdf")
        result = generate_quote_pdf(approved_quote, out, company=COMPANY)
        assert result["ok"]
        assert result["pages"] == 1
        assert result["subtotal"] == 1200
        assert result["vat"] == 240
        assert result["total"] == 1440
        assert result["reference"] == "Q-100 v2"
        text = _text(out)
        assert "QUOTATION" in text
        assert "Q-100 v2" in text
        assert "Acme Foods" in text
        assert "Widget" in text
        assert "1,440.00" in text
        assert "Bones Test Ltd" in text

    def test_long_quote_breaks_pages(self, temp_data_dir):
        quote = {"id": "q-big", "quoteReference": "Q-900", "title": "Line refit",
                 "lineItems": [{"description": f"Roller assembly {i}", "quantity": 1,
                                "unitPrice": 10} for i in range(80)]}
        out = os.path.join(temp_data_dir, "big.pdf")
        result = generate_quote_pdf(quote, out, company=COMPANY)
        assert result["pages"] > 1
        assert result["pages"] == len(PdfReader(out).pages)
        assert result["subtotal"] == 800

    def test_custom_vat(self, approved_quote, temp_data_dir):
        out = os.path.join(temp_data_dir, "novat.pdf")
        result = generate_quote_pdf(approved_quote, out, vat_rate=0, company=COMPANY)
        assert result["total"] == 1200

    def test_notes_rendered(self, approved_quote, temp_data_dir):
        out = os.path.join(temp_data_dir, "notes.pdf")
        generate_quote_pdf(approved_quote, out, company=COMPANY)
        assert "loading bay 3" in _text(out)


class TestHelpers:

    def test_money(self):
        assert money(1234.5) == "£1,234.50"
        assert money(None) == "£0.00"

    @pytest.mark.parametrize("item,expected", [
        ({"total": 7}, 7.0),
        ({"quantity": 3, "unitPrice": 2.5}, 7.5),
        ({}, 0.0),
    ])
    def test_line_total(self, item, expected):
        assert line_total(item) == expected
