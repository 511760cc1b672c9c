"""HTTP surface.

Modules:
    dashboard : Flask blueprint with the quote lifecycle endpoints
"""
