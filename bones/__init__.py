"""
Bones Admin: quotes → orders → jobs client

Packages:
    core/           Shared paths, settings, logging, local key-value store
    integrations/   REST backend client and per-resource API wrappers
    quotes/         Quote lifecycle manager, filters, fallback orders, smart builder
    forms/          Quote PDF generation
    api/            Dashboard routes
"""
