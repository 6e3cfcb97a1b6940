from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fleet_risk.core.coerce import parse_timestamp, to_flag, to_number
from fleet_risk.core.errors import UnitRecordError
from fleet_risk.domain.networks import Network

logger = logging.getLogger(__name__)

_NUMERIC_FIELDS = (
    "breakfix",
    "product_compliance",
    "true_policy",
    "raw_policy",
    "vph",
    "asset_count",
)


class NetworkTelemetry(BaseModel):
    """One network's slice of a unit's telemetry. Every metric is optional."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    breakfix: Optional[float] = None
    product_compliance: Optional[float] = None
    true_policy: Optional[float] = None
    raw_policy: Optional[float] = None
    vph: Optional[float] = None
    last_scan: Optional[datetime] = None
    scan_exempt: bool = False
    asset_count: Optional[float] = None

    @field_validator(*_NUMERIC_FIELDS, mode="before")
    @classmethod
    def _coerce_number(cls, v: Any) -> Optional[float]:
        number = to_number(v)
        if number is None and v is not None:
            logger.debug("Treating unusable value %r as not reported", v)
        return number

    @field_validator("last_scan", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> Optional[datetime]:
        return parse_timestamp(v)

    @field_validator("scan_exempt", mode="before")
    @classmethod
    def _coerce_flag(cls, v: Any) -> bool:
        return to_flag(v)

    @property
    def has_presence(self) -> bool:
        return self.last_scan is not None or self.vph is not None or self.asset_count is not None


class FleetUnit(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    full_name: Optional[str] = None
    group: Optional[str] = None
    parent: Optional[str] = None
    single_network_mode: bool = False
    primary: NetworkTelemetry = Field(default_factory=NetworkTelemetry)
    secondary: NetworkTelemetry = Field(default_factory=NetworkTelemetry)
    overdue_tickets: Optional[float] = None

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("full_name", "group", "parent", mode="before")
    @classmethod
    def _coerce_label(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("single_network_mode", mode="before")
    @classmethod
    def _coerce_mode(cls, v: Any) -> bool:
        return to_flag(v)

    @field_validator("primary", "secondary", mode="before")
    @classmethod
    def _coerce_network(cls, v: Any) -> Any:
        if isinstance(v, (NetworkTelemetry, Mapping)):
            return v
        return {}

    @field_validator("overdue_tickets", mode="before")
    @classmethod
    def _coerce_tickets(cls, v: Any) -> Optional[float]:
        return to_number(v)

    def telemetry(self, network: Network) -> NetworkTelemetry:
        return self.primary if network is Network.PRIMARY else self.secondary

    def applicable_networks(self) -> List[Tuple[Network, NetworkTelemetry]]:
        """
        Networks that count for risk; single-network units drop the secondary one.

        Every check follows this list, telemetry presence included. Only the
        scan-exemption flags still read the dropped network.
        """
        networks = [(Network.PRIMARY, self.primary)]
        if not self.single_network_mode:
            networks.append((Network.SECONDARY, self.secondary))
        return networks

    @classmethod
    def from_raw(cls, raw: Any) -> "FleetUnit":
        if isinstance(raw, FleetUnit):
            return raw
        if not isinstance(raw, Mapping):
            raise UnitRecordError(f"Unit record must be an object, got {type(raw).__name__}")
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as exc:
            raise UnitRecordError(f"Invalid unit record {raw.get('name')!r}: {exc}") from exc
