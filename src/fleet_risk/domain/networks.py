from __future__ import annotations

from enum import Enum


class Network(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"

    @property
    def label(self) -> str:
        return self.value.capitalize()
