"""Quote lifecycle.

Modules:
    status        : statuses and the action table
    filters       : in-memory filter/sort of the quote list
    fallback      : locally synthesized orders and their repository
    lifecycle     : QuoteLifecycleManager (edit, clone, convert, save)
    smart_builder : suggestion panels feeding the quote form
"""
