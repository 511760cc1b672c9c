"""Material and supplier endpoints."""

import logging
from typing import Optional

from bones.integrations import normalize
from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.catalog")


def _call(what: str, fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except ApiError as e:
        log.error("Error %s: %s", what, e)
        raise


def _params(**kwargs) -> Optional[dict]:
    params = {k: v for k, v in kwargs.items() if v not in (None, "")}
    return params or None


# ─── Materials ───────────────────────────────────────────────────────────────

def get_materials(client: ApiClient, search: Optional[str] = None,
                  category: Optional[str] = None) -> list:
    body = _call("fetching materials", client.get, "/materials",
                 params=_params(search=search, category=category))
    return normalize.materials_from(body)


def get_material(client: ApiClient, material_id: str) -> dict:
    return _call(f"fetching material {material_id}", client.get, f"/materials/{material_id}")


def create_material(client: ApiClient, material: dict) -> dict:
    return _call("creating material", client.post, "/materials", json=material)


def update_material(client: ApiClient, material_id: str, changes: dict) -> dict:
    return _call(f"updating material {material_id}",
                 client.put, f"/materials/{material_id}", json=changes)


def update_stock(client: ApiClient, material_id: str, quantity: int) -> dict:
    return _call(f"updating stock of {material_id}",
                 client.put, f"/materials/{material_id}/stock", json={"quantity": quantity})


def delete_material(client: ApiClient, material_id: str) -> bool:
    _call(f"deleting material {material_id}", client.delete, f"/materials/{material_id}")
    return True


def get_material_categories(client: ApiClient) -> list:
    body = _call("fetching material categories", client.get, "/materials/categories")
    return normalize.extract_list(body, (None, "categories", "data"), "categories")


# ─── Suppliers ───────────────────────────────────────────────────────────────

def get_suppliers(client: ApiClient, search: Optional[str] = None,
                  status: Optional[str] = None) -> list:
    body = _call("fetching suppliers", client.get, "/suppliers",
                 params=_params(search=search, status=status))
    return normalize.suppliers_from(body)


def get_supplier(client: ApiClient, supplier_id: str) -> dict:
    return _call(f"fetching supplier {supplier_id}", client.get, f"/suppliers/{supplier_id}")


def create_supplier(client: ApiClient, supplier: dict) -> dict:
    return _call("creating supplier", client.post, "/suppliers", json=supplier)


def update_supplier(client: ApiClient, supplier_id: str, changes: dict) -> dict:
    return _call(f"updating supplier {supplier_id}",
                 client.put, f"/suppliers/{supplier_id}", json=changes)


def delete_supplier(client: ApiClient, supplier_id: str) -> bool:
    _call(f"deleting supplier {supplier_id}", client.delete, f"/suppliers/{supplier_id}")
    return True


def get_supplier_performance(client: ApiClient, supplier_id: Optional[str] = None):
    """One supplier's report, or every supplier's when supplier_id is None."""
    path = f"/suppliers/{supplier_id}/performance" if supplier_id else "/suppliers/performance"
    return _call("fetching supplier performance", client.get, path)
