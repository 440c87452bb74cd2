import threading
from typing import Dict, Optional

import pycountry

from odoo_client import OdooClient

COUNTRY_MODEL = "res.country"

_cache: Dict[str, Optional[int]] = {}
_cache_lock = threading.Lock()


def country_code(name: str) -> Optional[str]:
    normalized = (name or "").strip()
    if not normalized:
        return None
    try:
        country = pycountry.countries.lookup(normalized)
    except LookupError:
        matches = []
        try:
            matches = pycountry.countries.search_fuzzy(normalized)
        except LookupError:
            pass
        country = matches[0] if matches else None
    return getattr(country, "alpha_2", None) if country else None


def _lookup_country_id(client: OdooClient, name: str) -> Optional[int]:
    code = country_code(name)
    if code:
        ids = client.search(COUNTRY_MODEL, [["code", "=", code]], limit=1)
        if ids:
            return ids[0]
    ids = client.search(COUNTRY_MODEL, [["name", "ilike", name]], limit=1)
    return ids[0] if ids else None


def resolve_country_id(client: OdooClient, name: Optional[str]) -> Optional[int]:
    key = (name or "").strip().lower()
    if not key:
        return None
    with _cache_lock:
        if key in _cache:
            return _cache[key]
    country_id = _lookup_country_id(client, name.strip())
    with _cache_lock:
        _cache[key] = country_id
    return country_id


def clear_cache() -> None:
    with _cache_lock:
        _cache.clear()
