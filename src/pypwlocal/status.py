"""Summaries decoded from status and components query answers.

The protocol client returns raw JSON; this module turns the two best-known
answers into compact summaries. Queries and their signatures are supplied
by the caller, exactly as for :meth:`PowerwallClient.query`.

Example:
    ```python
    async with PowerwallClient(secret) as client:
        status = await get_simple_status(client, status_query)
        for din in status.battery_blocks:
            device = await get_simple_device_status(client, components_query, din)
            print(din, device.battery_energy, [m.power for m in device.mppt])
    ```
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, Field, ValidationError

from .exceptions import MalformedResponseError
from .models import ComponentsResponse, StatusResponse

if TYPE_CHECKING:
    from .client import PowerwallClient
    from .models import Query

_LOGGER = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

PHASE_COUNT = 3

# Suffixes A-F; some markets sell three MPPTs that are really pairs at half duty
MPPT_SUFFIXES = "ABCDEF"

METER_BATTERY = "BATTERY"
METER_SITE = "SITE"
METER_LOAD = "LOAD"
METER_SOLAR = "SOLAR"
METER_SOLAR_RGM = "SOLAR_RGM"
METER_GENERATOR = "GENERATOR"
METER_CONDUCTOR = "CONDUCTOR"


class SimplePhase(BaseModel):
    """Frequency (Hz) and line-to-neutral voltage (V) of one phase."""

    freq_load: float = Field(default=0.0, serialization_alias="freqLoad")
    freq_main: float = Field(default=0.0, serialization_alias="freqMain")
    voltage_load: float = Field(default=0.0, serialization_alias="voltageLoad")
    voltage_main: float = Field(default=0.0, serialization_alias="voltageMain")


class SimpleStatus(BaseModel):
    """System-wide summary reported by the leader.

    Energy is in Wh, power in W. Battery power is negative while charging;
    site power is negative while exporting. Dump with ``by_alias=True`` for
    the camelCase JSON keys.
    """

    leader: str = Field(serialization_alias="dinLeader")
    shutdown: bool = False
    island: bool = False
    battery_energy: int = Field(default=0, serialization_alias="battery")
    battery_full_energy: int = Field(default=0, serialization_alias="batteryFull")
    power_battery: float = Field(default=0.0, serialization_alias="powerBattery")
    power_site: float = Field(default=0.0, serialization_alias="powerSite")
    power_load: float = Field(default=0.0, serialization_alias="powerLoad")
    power_solar: float = Field(default=0.0, serialization_alias="powerSolar")
    power_solar_rgm: float = Field(default=0.0, serialization_alias="powerSolarRGM")
    power_generator: float = Field(default=0.0, serialization_alias="powerGenerator")
    power_conductor: float = Field(default=0.0, serialization_alias="powerConductor")
    battery_blocks: list[str] = Field(default_factory=list, serialization_alias="batteryBlocks")
    phases: list[SimplePhase] = Field(default_factory=list, serialization_alias="phase")


class MPPTStatus(BaseModel):
    """One solar input tracker."""

    current: float = Field(default=0.0, serialization_alias="c")
    voltage: float = Field(default=0.0, serialization_alias="v")

    @property
    def power(self) -> float:
        """Input power in W."""
        return self.current * self.voltage


class SimpleDeviceStatus(BaseModel):
    """Summary of a single device (battery and, where fitted, solar inverter)."""

    battery_energy: int = Field(serialization_alias="battery")
    battery_full_energy: int = Field(serialization_alias="batteryFull")
    power_battery: float = Field(default=0.0, serialization_alias="powerBattery")
    power_solar: float = Field(default=0.0, serialization_alias="powerSolar")
    freq: float = 0.0
    voltage: float = 0.0
    mppt: list[MPPTStatus] = Field(default_factory=list)


def _validate(model: type[_ModelT], payload: bytes) -> _ModelT:
    try:
        return model.model_validate_json(payload)
    except ValidationError as err:
        raise MalformedResponseError(
            f"Could not decode {model.__name__}: {err.error_count()} error(s)"
        ) from err


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def parse_simple_status(payload: bytes, leader_din: str) -> SimpleStatus:
    """Build a SimpleStatus from a status query answer.

    Args:
        payload: Raw JSON returned by the status query
        leader_din: DIN of the leader that answered

    Raises:
        MalformedResponseError: If the payload is not a status document
    """
    response = _validate(StatusResponse, payload)
    control = response.control

    meters = {m.location: m.realPowerW for m in control.meterAggregates or []}
    ac = response.esCan.bus.islander.acMeasurements or {}

    phases = [
        SimplePhase(
            freq_load=_number(ac.get(f"ISLAND_FreqL{n}_Load")),
            freq_main=_number(ac.get(f"ISLAND_FreqL{n}_Main")),
            voltage_load=_number(ac.get(f"ISLAND_VL{n}N_Load")),
            voltage_main=_number(ac.get(f"ISLAND_VL{n}N_Main")),
        )
        for n in range(1, PHASE_COUNT + 1)
    ]

    return SimpleStatus(
        leader=leader_din,
        shutdown=control.siteShutdown.isShutDown,
        island=not control.islanding.contactorClosed,
        battery_energy=int(control.systemStatus.nominalEnergyRemainingWh),
        battery_full_energy=int(control.systemStatus.nominalFullPackEnergyWh),
        power_battery=meters.get(METER_BATTERY, 0.0),
        power_site=meters.get(METER_SITE, 0.0),
        power_load=meters.get(METER_LOAD, 0.0),
        power_solar=meters.get(METER_SOLAR, 0.0),
        power_solar_rgm=meters.get(METER_SOLAR_RGM, 0.0),
        power_generator=meters.get(METER_GENERATOR, 0.0),
        power_conductor=meters.get(METER_CONDUCTOR, 0.0),
        battery_blocks=[block.din for block in control.batteryBlocks or []],
        phases=phases,
    )


def scan_mppt(signals: dict[str, float]) -> list[MPPTStatus]:
    """Collect MPPT readings from PCH signals.

    Probes ``PCH_PvCurrentA``/``PCH_PvVoltageA`` onwards and stops at the
    first suffix where both signals are missing.
    """
    trackers: list[MPPTStatus] = []
    for suffix in MPPT_SUFFIXES:
        current = signals.get(f"PCH_PvCurrent{suffix}")
        voltage = signals.get(f"PCH_PvVoltage{suffix}")
        if current is None and voltage is None:
            break
        trackers.append(MPPTStatus(current=current or 0.0, voltage=voltage or 0.0))
    return trackers


def parse_simple_device_status(payload: bytes) -> SimpleDeviceStatus:
    """Build a SimpleDeviceStatus from a components query answer.

    Args:
        payload: Raw JSON returned by the components query

    Raises:
        MalformedResponseError: If BMS data or its energy signals are missing,
            or the device reports more than one PCH
    """
    components = _validate(ComponentsResponse, payload).components

    bms = components.bms or []
    if not bms:
        raise MalformedResponseError("Could not get BMS data from device")

    bms_signals = bms[0].signal_map()
    energy_kwh = bms_signals.get("BMS_nominalEnergyRemaining")
    full_energy_kwh = bms_signals.get("BMS_nominalFullPackEnergy")
    if energy_kwh is None or full_energy_kwh is None:
        raise MalformedResponseError("Could not get battery energy data")

    status = SimpleDeviceStatus(
        battery_energy=int(energy_kwh * 1000.0),
        battery_full_energy=int(full_energy_kwh * 1000.0),
    )

    pch = components.pch or []
    if len(pch) > 1:
        raise MalformedResponseError(f"Got multiple PCH: {len(pch)}")
    if pch:
        signals = pch[0].signal_map()
        status.power_solar = signals.get("PCH_SlowPvPowerSum", 0.0)
        status.power_battery = signals.get("PCH_BatteryPower", 0.0)
        status.freq = signals.get("PCH_AcFrequency", 0.0)
        status.voltage = signals.get("PCH_AcVoltageAB", 0.0)
        status.mppt = scan_mppt(signals)
    else:
        _LOGGER.debug("Device reports no PCH; solar fields left at zero")

    return status


async def get_simple_status(client: PowerwallClient, query: Query) -> SimpleStatus:
    """Query the leader and summarize the system status.

    Args:
        client: Connected client
        query: The signed status query
    """
    payload = await client.query(query)
    return parse_simple_status(payload, await client.get_din())


async def get_simple_device_status(
    client: PowerwallClient, query: Query, din: str
) -> SimpleDeviceStatus:
    """Query one device (through the leader) and summarize it.

    Args:
        client: Connected client
        query: The signed components query
        din: DIN of the device, e.g. from ``SimpleStatus.battery_blocks``
    """
    payload = await client.query_device(query, din)
    return parse_simple_device_status(payload)


__all__ = [
    "MPPTStatus",
    "SimpleDeviceStatus",
    "SimplePhase",
    "SimpleStatus",
    "get_simple_device_status",
    "get_simple_status",
    "parse_simple_device_status",
    "parse_simple_status",
    "scan_mppt",
]
