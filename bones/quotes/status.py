"""
Quote statuses and the actions each one permits.

The backend owns status transitions; the client only decides which actions
it offers for the status a quote is currently in. ALLOWED_ACTIONS is the
single table every caller consults.
"""

DRAFT = "DRAFT"
SENT = "SENT"
PENDING = "PENDING"
APPROVED = "APPROVED"
DECLINED = "DECLINED"
EXPIRED = "EXPIRED"
CONVERTED = "CONVERTED"

VALID_STATUSES = (DRAFT, SENT, PENDING, APPROVED, DECLINED, EXPIRED, CONVERTED)

EDITABLE_STATUSES = frozenset({DRAFT, SENT, PENDING})

# Actions
EDIT = "edit"
CLONE = "clone"
CONVERT = "convert"
PDF = "pdf"
SET_STATUS = "status"

ALLOWED_ACTIONS = {
    DRAFT:     frozenset({EDIT, CLONE, PDF, SET_STATUS}),
    SENT:      frozenset({EDIT, CLONE, PDF, SET_STATUS}),
    PENDING:   frozenset({EDIT, CLONE, PDF, SET_STATUS}),
    APPROVED:  frozenset({CONVERT, CLONE, PDF, SET_STATUS}),
    DECLINED:  frozenset({CLONE, PDF, SET_STATUS}),
    EXPIRED:   frozenset({CLONE, PDF, SET_STATUS}),
    CONVERTED: frozenset({CLONE, PDF}),
}
_UNKNOWN_STATUS_ACTIONS = frozenset({CLONE, PDF})

LABELS = {
    DRAFT: "Draft", SENT: "Sent", PENDING: "Pending", APPROVED: "Approved",
    DECLINED: "Declined", EXPIRED: "Expired", CONVERTED: "Converted",
}


def normalize_status(status) -> str:
    return str(status or "").strip().upper()


def is_allowed(status, action: str) -> bool:
    return action in ALLOWED_ACTIONS.get(normalize_status(status), _UNKNOWN_STATUS_ACTIONS)


def allowed_actions(quote: dict) -> frozenset:
    """Actions offered for this quote. A quote linked to an order never converts."""
    actions = ALLOWED_ACTIONS.get(normalize_status(quote.get("status")),
                                  _UNKNOWN_STATUS_ACTIONS)
    if quote.get("orderId"):
        actions = actions - {CONVERT}
    return actions


def label(status) -> str:
    s = normalize_status(status)
    return LABELS.get(s, s.title() or "Unknown")
