"""Pydantic models for pypwlocal.

``Query`` is what callers hand to the client. The remaining models describe
the JSON documents the gateway returns for the status and components
queries; field names follow the gateway's own camelCase keys.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .constants import EMPTY_VARIABLES


class Query(BaseModel):
    """A known query the gateway can execute.

    The signature is produced with the vendor's private key and is passed
    through untouched; new queries cannot be made without one.

    Attributes:
        query: Query text, sent verbatim
        signature: Pre-computed signature over ``query``
        variables: Optional values interpolated into the query's
            ``$``-variables by the gateway; JSON-encoded on send
    """

    model_config = ConfigDict(frozen=True)

    query: str
    signature: bytes
    variables: Any | None = None

    def encoded_variables(self) -> str:
        """JSON text for the variables field, "{}" when unset.

        Raises:
            TypeError: If the variables are not JSON serializable
            ValueError: If the variables contain circular references
        """
        if self.variables is None:
            return EMPTY_VARIABLES
        return json.dumps(self.variables, separators=(",", ":"))


# ============================================================================
# Status query response (leader)
# ============================================================================


class Alerts(BaseModel):
    active: list[str] | None = None


class BatteryBlock(BaseModel):
    din: str
    disableReasons: list[str] | None = None


class Islanding(BaseModel):
    contactorClosed: bool = False
    customerIslandMode: str | None = None
    disableReasons: list[str] | None = None
    gridOK: bool = False
    microGridOK: bool = False


class MeterAggregate(BaseModel):
    location: str = ""
    realPowerW: float = 0.0


class SiteShutdown(BaseModel):
    isShutDown: bool = False
    reasons: list[str] | None = None


class SystemStatus(BaseModel):
    # Usually integral, occasionally with float noise
    nominalEnergyRemainingWh: float = 0.0
    nominalFullPackEnergyWh: float = 0.0


class Control(BaseModel):
    alerts: Alerts = Field(default_factory=Alerts)
    batteryBlocks: list[BatteryBlock] | None = None
    islanding: Islanding = Field(default_factory=Islanding)
    meterAggregates: list[MeterAggregate] | None = None
    siteShutdown: SiteShutdown = Field(default_factory=SiteShutdown)
    systemStatus: SystemStatus = Field(default_factory=SystemStatus)


class Islander(BaseModel):
    acMeasurements: dict[str, Any] | None = Field(default=None, alias="ISLAND_AcMeasurements")


class EsCanBus(BaseModel):
    islander: Islander = Field(default_factory=Islander, alias="ISLANDER")


class EsCan(BaseModel):
    bus: EsCanBus = Field(default_factory=EsCanBus)


class StatusResponse(BaseModel):
    """Leader status document."""

    control: Control = Field(default_factory=Control)
    esCan: EsCan = Field(default_factory=EsCan)


# ============================================================================
# Components query response (single device)
# ============================================================================


class Signal(BaseModel):
    name: str
    value: float | None = None


class ActiveAlert(BaseModel):
    name: str


class ComponentPart(BaseModel):
    activeAlerts: list[ActiveAlert] | None = None
    signals: list[Signal] | None = None

    def signal_map(self) -> dict[str, float]:
        """Numeric signals by name; signals without a value are skipped."""
        return {s.name: s.value for s in self.signals or [] if s.value is not None}


class Components(BaseModel):
    bms: list[ComponentPart] | None = None
    pch: list[ComponentPart] | None = None


class ComponentsResponse(BaseModel):
    """Per-device components document."""

    components: Components = Field(default_factory=Components)


__all__ = [
    "ComponentPart",
    "ComponentsResponse",
    "Query",
    "Signal",
    "StatusResponse",
]
