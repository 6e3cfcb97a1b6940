from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from fleet_risk.core.errors import RegistryError

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
SHORT_CODE_LENGTH = 6


@dataclass(frozen=True)
class GroupDescriptor:
    name: str
    short: str
    parent: Optional[str] = None

    @classmethod
    def synthesize(cls, key: str, parent: Optional[str]) -> "GroupDescriptor":
        return cls(name=key, short=key[:SHORT_CODE_LENGTH], parent=parent)


class GroupRegistry:
    """Display names, short codes and parent classification keyed by group name."""

    def __init__(self, descriptors: Iterable[GroupDescriptor] = ()):
        self._by_name: Dict[str, GroupDescriptor] = {}
        for d in descriptors:
            self._by_name[d.name] = d

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, key: object) -> bool:
        return key in self._by_name

    def lookup(self, key: str, parent: Optional[str] = None) -> GroupDescriptor:
        found = self._by_name.get(key)
        if found is not None:
            return found
        logger.debug("Group %r not in registry; synthesizing descriptor", key)
        return GroupDescriptor.synthesize(key, parent)

    @classmethod
    def from_raw(cls, items: Any) -> "GroupRegistry":
        if items is None:
            return cls()
        if not isinstance(items, list):
            raise RegistryError("Group registry must be a list of objects")

        descriptors = []
        for idx, item in enumerate(items):
            if not isinstance(item, dict):
                raise RegistryError(f"Registry entry {idx} is not an object")
            name = str(item.get("name") or "").strip()
            if not name:
                raise RegistryError(f"Registry entry {idx} has no name")
            short = str(item.get("short") or "").strip() or name[:SHORT_CODE_LENGTH]
            parent = item.get("parent")
            descriptors.append(
                GroupDescriptor(
                    name=name,
                    short=short,
                    parent=str(parent).strip() if parent is not None else None,
                )
            )
        return cls(descriptors)


def load_registry(path: Path) -> GroupRegistry:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise RegistryError(f"Cannot read group registry from {path}: {exc}") from exc
    return GroupRegistry.from_raw(raw)
