"""
Client-side filtering and ordering of the full quote list.

The list view fetches every version at once and filters in memory, so these
functions must be pure: the same inputs always give the same output.
"""

from bones.quotes.status import normalize_status


def customer_name(quote: dict) -> str:
    """customerName, customer.name, or a plain customer string."""
    if quote.get("customerName"):
        return str(quote["customerName"])
    customer = quote.get("customer")
    if isinstance(customer, dict):
        return str(customer.get("name") or "")
    return str(customer or "")


def _version(quote: dict) -> int:
    try:
        return int(quote.get("versionNumber") or 0)
    except (TypeError, ValueError):
        return 0


def sort_key(quote: dict) -> tuple:
    return (str(quote.get("quoteReference") or ""), _version(quote), str(quote.get("id") or ""))


def sort_quotes(quotes: list) -> list:
    """quoteReference desc, then versionNumber desc, then id desc."""
    return sorted(quotes, key=sort_key, reverse=True)


def matches_search(quote: dict, search: str) -> bool:
    term = (search or "").strip().lower()
    if not term:
        return True
    haystack = (str(quote.get("title") or ""), customer_name(quote),
                str(quote.get("quoteReference") or ""))
    return any(term in field.lower() for field in haystack)


def filter_quotes(quotes: list, status: str = "all", search: str = "",
                  hide_converted: bool = False) -> list:
    """Quotes matching status and search, in sort_quotes order."""
    wanted = normalize_status(status) if status and status.lower() != "all" else None
    result = []
    for q in quotes:
        if hide_converted and q.get("orderId"):
            continue
        if wanted and normalize_status(q.get("status")) != wanted:
            continue
        if not matches_search(q, search):
            continue
        result.append(q)
    return sort_quotes(result)


def latest_versions(quotes: list) -> list:
    """One quote per quoteReference: the flagged latest, else the highest version."""
    best = {}
    for q in quotes:
        ref = q.get("quoteReference") or q.get("id")
        current = best.get(ref)
        if current is None:
            best[ref] = q
        elif q.get("isLatestVersion") and not current.get("isLatestVersion"):
            best[ref] = q
        elif bool(q.get("isLatestVersion")) == bool(current.get("isLatestVersion")) \
                and _version(q) > _version(current):
            best[ref] = q
    return sort_quotes(best.values())
