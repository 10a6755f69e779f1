"""Normalization of raw Roblox game pass payloads.

Roblox has shipped several revisions of its game pass endpoints and each one
names the same logical fields differently (``displayName`` vs ``name``,
``displayIconImageAssetId`` vs ``iconImageUrl`` ...). Rather than branching on
an explicit API version, every canonical field is described by an ordered
table of ``(field-name, extractor)`` candidates; the first candidate whose
extractor yields a value wins.

Precedence follows the most recent API revision: asset id icons are preferred
over direct image URLs, ``gamePasses`` containers over ``data`` containers.

All functions here are total: any input shape produces a value, never an
exception. Unknown fields are ignored.

Example::

    from gamepass_proxy.normalizer import normalize, unwrap_items

    payload = {"gamePasses": [{"id": 7, "displayName": "VIP",
                               "displayIconImageAssetId": 99}]}
    [normalize(item) for item in unwrap_items(payload)]
    # [GamePass(id=7, name='VIP', icon='rbxassetid://99', description='')]
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from .config import MAX_CHILDREN
from .models import UNKNOWN_NAME, GamePass, PassId

ASSET_URI_PREFIX = "rbxassetid://"

Extractor = Callable[[Any], Optional[Any]]
Candidates = Sequence[Tuple[str, Extractor]]


def _as_id(value: Any) -> Optional[PassId]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, str)):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_child_id(value: Any) -> Optional[PassId]:
    # 0 and "" never name a real universe
    resolved = _as_id(value)
    return resolved if resolved else None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, (dict, list)):
        return None
    return str(value)


def _as_asset_uri(value: Any) -> Optional[str]:
    # 0 / "" mean "no icon uploaded"
    if not value or isinstance(value, (bool, dict, list)):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{ASSET_URI_PREFIX}{value}"


ID_FIELDS: Candidates = (
    ("id", _as_id),
    ("productId", _as_id),
    ("gamePassId", _as_id),
    ("assetId", _as_id),
    ("passId", _as_id),
)

NAME_FIELDS: Candidates = (
    ("displayName", _as_text),
    ("name", _as_text),
)

ICON_FIELDS: Candidates = (
    ("displayIconImageAssetId", _as_asset_uri),
    ("iconImageAssetId", _as_asset_uri),
    ("iconImageUrl", _as_text),
    ("icon", _as_text),
    ("imageUrl", _as_text),
)

DESCRIPTION_FIELDS: Candidates = (
    ("displayDescription", _as_text),
    ("description", _as_text),
)

ITEM_CONTAINERS = ("gamePasses", "data")
CHILD_CONTAINERS = ("data",)
CHILD_ID_FIELDS: Candidates = (
    ("id", _as_child_id),
    ("universeId", _as_child_id),
)


def probe(raw: Any, candidates: Candidates, default: Any = None) -> Any:
    """Return the first extracted value among *candidates*, else *default*.

    A candidate is skipped when the key is missing, its value is ``None`` or
    its extractor rejects the value.
    """
    if not isinstance(raw, Mapping):
        return default
    for name, extract in candidates:
        value = raw.get(name)
        if value is None:
            continue
        extracted = extract(value)
        if extracted is not None:
            return extracted
    return default


def normalize(raw_item: Any) -> GamePass:
    """Map an arbitrary game pass payload onto :class:`GamePass`."""
    return GamePass(
        id=probe(raw_item, ID_FIELDS),
        name=probe(raw_item, NAME_FIELDS, UNKNOWN_NAME),
        icon=probe(raw_item, ICON_FIELDS, ""),
        description=probe(raw_item, DESCRIPTION_FIELDS, ""),
    )


def normalize_all(raw_items: Sequence[Any]) -> List[GamePass]:
    return [normalize(item) for item in raw_items]


def _unwrap(payload: Any, containers: Sequence[str]) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, Mapping):
        return []
    for name in containers:
        value = payload.get(name)
        if value is None:
            continue
        return value if isinstance(value, list) else []
    return []


def unwrap_items(payload: Any) -> List[Any]:
    """Extract the game pass list from an item-enumeration response.

    Accepts ``{"gamePasses": [...]}``, ``{"data": [...]}`` or a bare list.
    """
    return _unwrap(payload, ITEM_CONTAINERS)


def unwrap_children(payload: Any) -> List[Any]:
    """Extract the universe descriptors from a children-enumeration response."""
    return _unwrap(payload, CHILD_CONTAINERS)


def child_id(descriptor: Any) -> Optional[PassId]:
    return probe(descriptor, CHILD_ID_FIELDS)


def select_child_ids(
    descriptors: Sequence[Any], limit: int = MAX_CHILDREN
) -> List[PassId]:
    """Resolve universe ids, drop unresolvable ones and keep the first *limit*."""
    ids = [cid for cid in (child_id(d) for d in descriptors) if cid is not None]
    return ids[:limit]
