"""Core data structures for normalized game pass data.

These lightweight dataclasses are produced by the normalizer and aggregator
and consumed by the cache and the FastAPI layer. They avoid framework
dependencies so they can be cached and serialized easily.

Overview:
        * ``GamePass`` is the canonical record served to callers regardless of
            which Roblox API revision produced the raw payload.
        * ``ChildResult`` captures the outcome of one per-universe fetch inside
            a fan-out, so one failure can be dropped without losing the others.

Typical construction::

        from gamepass_proxy.models import GamePass

        gold = GamePass(id=101, name="Gold", icon="rbxassetid://555")
        payload = gold.to_dict()
        # {'id': 101, 'name': 'Gold', 'icon': 'rbxassetid://555', 'description': ''}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

UNKNOWN_NAME = "Unknown"

PassId = Union[int, str]


@dataclass(frozen=True)
class GamePass:
    """Canonical game pass record.

    Attributes:
        id: Upstream pass identifier; ``None`` when the payload carried none.
        name: Display name, ``"Unknown"`` when missing.
        icon: ``rbxassetid://`` URI or direct image URL; empty when missing.
        description: Display description; empty when missing.
    """

    id: Optional[PassId] = None
    name: str = UNKNOWN_NAME
    icon: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with every key present (``id`` may be ``None``)."""
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "description": self.description,
        }


@dataclass
class ChildResult:
    """Outcome of fetching one universe during a fan-out.

    A failed universe keeps its error for logging and contributes no records.
    """

    child_id: PassId
    records: List[GamePass] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None
