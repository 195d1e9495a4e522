"""ATTOM property-data helpers: viewport geometry, address matching and parcel mapping."""

import math
import re
import time
from typing import Any, Dict, List, Optional

MIN_RADIUS_MILES = 0.25
MAX_RADIUS_MILES = 20.0
MILES_PER_DEGREE = 69
# Web Mercator tiles stop here; the poles have no tile row
MAX_TILE_LATITUDE = 85.05112878

DAY_MS = 24 * 60 * 60 * 1000
SECTION_TTLS_MS = {
    "valuation": 3 * DAY_MS,
    "equity": 3 * DAY_MS,
    "distress": 3 * DAY_MS,
    "tax": 90 * DAY_MS,
    "ownership": 60 * DAY_MS,
    "mortgage": 60 * DAY_MS,
    "sales": 60 * DAY_MS,
    "physical": 90 * DAY_MS,
}


def normalize_address(value) -> str:
    """Lowercase, keep letters, digits and spaces, collapse whitespace."""
    text = re.sub(r"[^a-z0-9\s]", " ", str(value or "").lower())
    return re.sub(r"\s+", " ", text).strip()


def radius_from_bbox(n: float, s: float, e: float, w: float) -> float:
    """Search radius in miles covering the bbox, clamped to 0.25-20."""
    center_lat = (n + s) / 2
    lat_deg = n - s
    lng_deg = abs(e - w) * math.cos(math.radians(center_lat))
    radius = MILES_PER_DEGREE * 0.5 * max(lat_deg, lng_deg)
    return max(MIN_RADIUS_MILES, min(MAX_RADIUS_MILES, radius))


def lat_lng_to_tile(lat: float, lng: float, zoom: int):
    scale = 2 ** zoom
    lat = max(-MAX_TILE_LATITUDE, min(MAX_TILE_LATITUDE, lat))
    x = math.floor((lng + 180) / 360 * scale)
    lat_rad = math.radians(lat)
    y = math.floor((1 - math.log(math.tan(lat_rad) + 1 / math.cos(lat_rad)) / math.pi) / 2 * scale)
    return min(max(x, 0), scale - 1), min(max(y, 0), scale - 1)


def tile_key_for_center(lat: float, lng: float, zoom: int) -> str:
    x, y = lat_lng_to_tile(lat, lng, zoom)
    return f"{zoom}:{x}:{y}"


def build_section_expiry(now_ms: Optional[int] = None) -> Dict[str, int]:
    """Per-section refresh deadlines (epoch ms) stored with a snapshot."""
    base = int(time.time() * 1000) if now_ms is None else now_ms
    return {section: base + ttl for section, ttl in SECTION_TTLS_MS.items()}


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _number(value) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def map_attom_to_parcel(p: Dict[str, Any], index: int) -> Optional[Dict[str, Any]]:
    """Lightweight map parcel; None when the record has no usable coordinates."""
    addr = p.get("address") or {}
    parts = [
        addr.get("line1") or addr.get("line2"),
        addr.get("locality"),
        addr.get("adminarea") or addr.get("region"),
        addr.get("postal1") or addr.get("postalcode"),
    ]
    parts = [part for part in parts if part]
    address = ", ".join(parts) if parts else "Address unknown"

    location = p.get("location") or {}
    lat = _number(_first(location.get("latitude"), p.get("latitude")))
    lng = _number(_first(location.get("longitude"), p.get("longitude")))
    if lat is None or lng is None:
        return None

    building = p.get("building") or {}
    rooms = building.get("rooms") or building
    size = building.get("size") or building
    identifier = p.get("identifier") or {}
    attom_id = _first(identifier.get("Id"), identifier.get("id"), p.get("id"), p.get("attomId"), f"p-{index}")
    summary = p.get("summary") or {}

    return {
        "address": address,
        "latitude": lat,
        "longitude": lng,
        "attomId": str(attom_id),
        "thumbnail": None,
        "propertyType": summary.get("proptype"),
        "beds": _number(_first(rooms.get("beds"), p.get("beds"))),
        "baths": _number(_first(rooms.get("bathstotal"), p.get("bathstotal"), p.get("baths"))),
        "squareFeet": _number(
            _first(size.get("universalsize"), size.get("buildingSize"), size.get("buildingsize"), p.get("squarefeet"))
        ),
    }


def map_attom_to_address_parcel(p: Dict[str, Any], index: int) -> Optional[Dict[str, Any]]:
    """Map parcel plus valuation and last-sale fields."""
    parcel = map_attom_to_parcel(p, index)
    if parcel is None:
        return None

    avm = p.get("avm") or {}
    avm_amount = avm.get("amount") if isinstance(avm, dict) else None
    avm_amount = avm_amount if isinstance(avm_amount, dict) else avm
    estimate = _first(avm_amount.get("value"), avm_amount.get("amount")) if isinstance(avm_amount, dict) else None

    sale = p.get("sale") or {}
    sale_amount = sale.get("amount") if isinstance(sale.get("amount"), dict) else {}
    sale_amt = _first(sale_amount.get("saleAmt"), sale_amount.get("saleamt"), sale.get("saleamt"), sale.get("saleAmt"))
    sale_date = _first(
        sale.get("saleSearchDate"),
        sale.get("salesearchdate"),
        sale.get("saleTransDate"),
        sale.get("saletransdate"),
    )

    parcel.update({
        "estimate": _number(estimate),
        "lastSalePrice": _number(sale_amt),
        "lastSaleDate": str(sale_date) if sale_date is not None else None,
    })
    return parcel


def _snapshot_records(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        records = _first(data.get("property"), data.get("properties"), [])
    else:
        records = data if data is not None else []
    if not isinstance(records, list):
        records = [records]
    return [record for record in records if isinstance(record, dict)]


def map_snapshot_to_parcels(data: Any) -> List[Dict[str, Any]]:
    """Map an ATTOM snapshot response to parcels, dropping unlocated records."""
    parcels = []
    for index, record in enumerate(_snapshot_records(data)):
        parcel = map_attom_to_address_parcel(record, index)
        if parcel is not None:
            parcels.append(parcel)
    return parcels


def resolve_attom_id_from_snapshot(data: Any, normalized_address: str) -> Optional[Dict[str, Any]]:
    """Pick the parcel whose address contains the normalized query, else the first one."""
    parcels = map_snapshot_to_parcels(data)
    if not parcels:
        return None
    if not normalized_address:
        return parcels[0]
    for parcel in parcels:
        if normalized_address in normalize_address(parcel["address"]):
            return parcel
    return parcels[0]
