"""
settings.py: Centralized Settings for the Bones client

Single source of truth for every tunable and credential the client reads.
Each entry names its env var, an optional default, and whether the value is
sensitive (never logged in full).

Env vars:
  BONES_API_URL         : Backend base URL (default http://localhost:4000/api)
  BONES_API_TOKEN       : Bearer token used when the local store has none
  BONES_REQUEST_TIMEOUT : Per-request timeout in seconds (default 15)
  DASH_USER / DASH_PASS : Dashboard Basic auth
  BONES_COMPANY_*       : Letterhead used on quote PDFs
  LOG_LEVEL / LOG_FORMAT: Root log level, console format (human or json)
"""

import os
import logging

log = logging.getLogger("bones.settings")

# ─── Setting Definitions ────────────────────────────────────────────────────

_REGISTRY = {
    # Backend
    "api_url": {
        "env": "BONES_API_URL",
        "default": "http://localhost:4000/api",
        "desc": "Backend REST base URL",
    },
    "api_token": {
        "env": "BONES_API_TOKEN",
        "desc": "Bearer token fallback when the local store has no token",
        "sensitive": True,
    },
    "request_timeout": {
        "env": "BONES_REQUEST_TIMEOUT",
        "default": "15",
        "desc": "HTTP timeout in seconds",
    },
    # Logging
    "log_level": {
        "env": "LOG_LEVEL",
        "default": "INFO",
        "desc": "Root log level",
    },
    "log_format": {
        "env": "LOG_FORMAT",
        "default": "human",
        "desc": "Console log format: human or json",
    },
    # Dashboard auth
    "dash_user": {
        "env": "DASH_USER",
        "default": "bones",
        "desc": "Dashboard login username",
        "required": True,
    },
    "dash_pass": {
        "env": "DASH_PASS",
        "desc": "Dashboard login password",
        "required": True,
        "sensitive": True,
    },
    # Letterhead
    "company_name": {
        "env": "BONES_COMPANY_NAME",
        "default": "Bones Conveyor Systems Ltd",
        "desc": "Company name on quote PDFs",
    },
    "company_address": {
        "env": "BONES_COMPANY_ADDRESS",
        "default": "Unit 4, Riverside Industrial Estate",
        "desc": "Company address on quote PDFs",
    },
    "company_phone": {
        "env": "BONES_COMPANY_PHONE",
        "default": "",
        "desc": "Company phone on quote PDFs",
    },
    "company_email": {
        "env": "BONES_COMPANY_EMAIL",
        "default": "",
        "desc": "Company email on quote PDFs",
    },
    "company_vat": {
        "env": "BONES_COMPANY_VAT",
        "default": "",
        "desc": "VAT registration number on quote PDFs",
    },
}


# ─── Public API ──────────────────────────────────────────────────────────────

def get_setting(name: str) -> str:
    """Get a setting value by registry name. Returns empty string if not set."""
    entry = _REGISTRY.get(name)
    if not entry:
        log.warning("Unknown setting requested: %s", name)
        return ""

    val = os.environ.get(entry["env"], "")
    if not val and "default" in entry:
        val = entry["default"]
    return val


def get_timeout() -> float:
    raw = get_setting("request_timeout")
    try:
        return float(raw)
    except ValueError:
        log.warning("Bad BONES_REQUEST_TIMEOUT %r: using 15s", raw)
        return 15.0


def company_info() -> dict:
    """Letterhead block for generated documents."""
    return {
        "name": get_setting("company_name"),
        "address": get_setting("company_address"),
        "phone": get_setting("company_phone"),
        "email": get_setting("company_email"),
        "vat": get_setting("company_vat"),
    }


def mask(value: str) -> str:
    """Mask a secret for safe logging. Shows first 8 chars."""
    if not value:
        return "(not set)"
    if len(value) <= 12:
        return value[:4] + "****"
    return value[:8] + "****" + f"({len(value)} chars)"


def settings_status() -> dict:
    """Which settings are set: safe for health endpoints (values masked)."""
    status = {}
    for name, entry in _REGISTRY.items():
        val = get_setting(name)
        status[name] = {
            "env": entry["env"],
            "set": bool(val),
            "value": mask(val) if entry.get("sensitive") else val,
            "required": entry.get("required", False),
        }
    return status


def validate_settings() -> list:
    """Log and return names of required settings that are missing."""
    missing = [name for name, entry in _REGISTRY.items()
               if entry.get("required") and not get_setting(name)]
    for name in missing:
        log.warning("Required setting %s (%s) is not set",
                    name, _REGISTRY[name]["env"])
    return missing
