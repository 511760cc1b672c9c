"""Document generation.

Modules:
    quote_pdf : A4 quotation PDF (reportlab)
"""
