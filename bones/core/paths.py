"""
bones/core/paths.py: Centralized Path Configuration

Single source of truth for every directory the client writes to.
Modules import from here instead of computing their own DATA_DIR.

DATA_DIR holds the local store (auth token + fallback orders) and logs.
Set BONES_DATA_DIR to move it, e.g. onto a mounted volume.
"""

import os
import logging

log = logging.getLogger("bones.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))

_DEFAULT_DATA_DIR = os.path.join(PROJECT_ROOT, "data")


def _resolve_data_dir() -> str:
    """BONES_DATA_DIR env → <project>/data."""
    env_dir = os.environ.get("BONES_DATA_DIR", "")
    if env_dir:
        return env_dir
    return _DEFAULT_DATA_DIR


DATA_DIR = _resolve_data_dir()

# ── Derived Directories ──────────────────────────────────────────────────────
OUTPUT_DIR = os.path.join(DATA_DIR, "output")
LOG_DIR = os.path.join(DATA_DIR, "logs")

# ── Key File Paths ───────────────────────────────────────────────────────────
LOCAL_STORE_PATH = os.path.join(DATA_DIR, "local_store.json")


def ensure_dirs(*dirs):
    """Create the given directories (default: all managed dirs)."""
    for d in dirs or (DATA_DIR, OUTPUT_DIR, LOG_DIR):
        os.makedirs(d, exist_ok=True)


def validate_paths() -> dict:
    """Runtime validation: call at app startup to catch path issues early.

    Returns:
        {"ok": bool, "errors": [str], "warnings": [str], "resolved": {name: path}}
    """
    result = {"ok": True, "errors": [], "warnings": [], "resolved": {}}

    checks = {
        "PROJECT_ROOT": (PROJECT_ROOT, True),
        "DATA_DIR": (DATA_DIR, True),
        "OUTPUT_DIR": (OUTPUT_DIR, False),
        "LOCAL_STORE_PATH": (LOCAL_STORE_PATH, False),
    }

    for name, (path, required) in checks.items():
        result["resolved"][name] = path
        if not os.path.exists(path):
            if required:
                result["errors"].append(f"{name} not found: {path}")
                result["ok"] = False
            else:
                result["warnings"].append(f"{name} not found: {path}")

    if os.path.isdir(DATA_DIR):
        test_file = os.path.join(DATA_DIR, ".write_test")
        try:
            with open(test_file, "w") as f:
                f.write("ok")
            os.remove(test_file)
        except OSError as e:
            result["errors"].append(f"DATA_DIR not writable: {e}")
            result["ok"] = False

    if not os.environ.get("BONES_DATA_DIR"):
        result["warnings"].append(
            "BONES_DATA_DIR not set: fallback orders live in the project tree")

    return result
