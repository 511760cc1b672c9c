"""
Smart quote builder: the suggestion panels next to the quote form.

Four independent panels, one visible at a time (switched by tab index):

    0 suggestions  items this customer has bought before
    1 bundles      item groups that sell together
    2 templates    quick-assembly templates for the customer's industry
    3 health       quote-health score for the items selected so far

Each panel fetches its data keyed by customer id and the selected line
items, and accept(index) hands the chosen entry back to the form as
proposed line items through on_items.
"""

import logging
from typing import Callable, Optional

from bones.integrations import intelligence
from bones.integrations.client import ApiClient, ApiError
from bones.quotes.fallback import quote_total

log = logging.getLogger("bones.smart_quote")

TABS = ("suggestions", "bundles", "templates", "health")


def _line_item(entry: dict, quantity=None) -> dict:
    item = {
        "description": entry.get("description") or entry.get("itemName")
                       or entry.get("name") or "Unknown Item",
        "quantity": quantity or entry.get("quantity") or 1,
        "unitPrice": entry.get("unitPrice", entry.get("suggestedPrice", entry.get("price", 0))) or 0,
    }
    if entry.get("materialId"):
        item["materialId"] = entry["materialId"]
    return item


def suggestion_to_items(suggestion: dict) -> list:
    return [_line_item(suggestion)]


def bundle_to_items(bundle: dict) -> list:
    """Bundles and templates both carry an items list."""
    return [_line_item(i) for i in bundle.get("items") or []]


class SmartQuoteBuilder:

    def __init__(self, client: ApiClient, customer_id=None,
                 on_items: Optional[Callable[[list], None]] = None,
                 customer_type: Optional[str] = None):
        self.client = client
        self.customer_id = customer_id
        self.customer_type = customer_type
        self.on_items = on_items or (lambda items: None)
        self.selected = []
        self.active_tab = 0
        self.entries = []
        self.health = None
        self.error = None

    @property
    def tab(self) -> str:
        return TABS[self.active_tab]

    def switch(self, index: int):
        if not 0 <= index < len(TABS):
            raise IndexError(f"No panel at tab {index}")
        self.active_tab = index
        self.entries = []
        self.error = None

    def select_items(self, items: list):
        """Line items currently on the quote form."""
        self.selected = list(items)

    def _selected_names(self) -> list:
        return [i.get("description") for i in self.selected if i.get("description")]

    def load(self) -> list:
        """Fetch the active panel's entries. Failures leave the panel empty."""
        self.error = None
        try:
            if self.tab == "suggestions":
                self.entries = self._customer_call(intelligence.get_customer_suggestions)
            elif self.tab == "bundles":
                self.entries = self._customer_call(intelligence.get_bundle_recommendations)
            elif self.tab == "templates":
                self.entries = intelligence.get_quick_assembly_templates(
                    self.client, self.customer_type)
            else:
                self.health = intelligence.analyze_quote_health(
                    self.client, self.selected,
                    quote_total({"lineItems": self.selected}),
                    customer_id=self.customer_id)
                self.entries = []
        except ApiError as e:
            log.warning("%s panel failed to load: %s", self.tab, e)
            self.error = e.message
            self.entries = []
        return self.entries

    def _customer_call(self, fn) -> list:
        if not self.customer_id:
            return []
        return fn(self.client, self.customer_id, self._selected_names())

    def accept(self, index: int) -> list:
        """Propose the entry at index to the form. Returns the proposed items."""
        if self.tab == "health":
            return []
        entry = self.entries[index]
        if self.tab == "suggestions":
            items = suggestion_to_items(entry)
        else:
            items = bundle_to_items(entry)
        log.info("Proposing %d item(s) from %s panel", len(items), self.tab)
        self.on_items(items)
        return items
