"""Pytest configuration and fixtures for pypwlocal tests."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest
from aioresponses import aioresponses

from pypwlocal.models import Query
from pypwlocal.protocol import (
    ConfigRecv,
    Envelope,
    Participant,
    QueryRecv,
    TargetMode,
    encode_envelope,
)

# Default gateway address used by the client
BASE_URL = "https://192.168.91.1:443"

SECRET = "ABCDEFGHIJ"
LEADER_DIN = "1707000-11-J--TG0123456789AB"
FOLLOWER_DIN = "1707000-21-K--TG9876543210CD"

DIN_URL = f"{BASE_URL}/tedapi/din"
LEADER_URL = f"{BASE_URL}/tedapi/v1"
FOLLOWER_URL = f"{BASE_URL}/tedapi/device/{FOLLOWER_DIN}/v1"


def reply_frame(
    payload: QueryRecv | ConfigRecv | None,
    *,
    sender: str = LEADER_DIN,
    mode: TargetMode = TargetMode.LEADER,
) -> bytes:
    """Encode a gateway reply frame carrying the given payload."""
    return encode_envelope(
        Envelope(
            sender=Participant.device(sender),
            recipient=Participant.local_client(),
            payload=payload,
            mode=mode,
        )
    )


@pytest.fixture
def mocked_api() -> Generator[aioresponses, None, None]:
    """Create aioresponses mock for HTTP requests.

    This fixture provides a context manager for mocking aiohttp requests
    using the aioresponses library.
    """
    with aioresponses() as m:
        yield m


@pytest.fixture
def signed_query() -> Query:
    """A query with an opaque stand-in signature."""
    return Query(
        query=" query DeviceControllerQuery {\n  control {\n    systemStatus {\n"
        "        nominalFullPackEnergyWh\n        nominalEnergyRemainingWh\n    }\n  }\n}",
        signature=b"0\x81\x86\x02A\x14\xb1\x97\xa5\x7f\xad\xb5\xba\xd1",
    )


@pytest.fixture
def status_payload() -> bytes:
    """Sample answer to the status query."""
    return b"""{
  "control": {
    "alerts": {"active": ["SystemConnectedToGrid", "FWUpdateSucceeded"]},
    "batteryBlocks": [
      {"din": "1707000-11-J--TG0123456789AB", "disableReasons": null},
      {"din": "1707000-21-K--TG9876543210CD", "disableReasons": []}
    ],
    "islanding": {
      "contactorClosed": true,
      "customerIslandMode": "BackupDisabled",
      "disableReasons": [],
      "gridOK": true,
      "microGridOK": true
    },
    "meterAggregates": [
      {"location": "BATTERY", "realPowerW": -2150},
      {"location": "SITE", "realPowerW": 35.5},
      {"location": "LOAD", "realPowerW": 1210.25},
      {"location": "SOLAR", "realPowerW": 3325}
    ],
    "pvInverters": [],
    "siteShutdown": {"isShutDown": false, "reasons": []},
    "systemStatus": {
      "nominalEnergyRemainingWh": 18240.0000000004,
      "nominalFullPackEnergyWh": 27000
    }
  },
  "esCan": {
    "bus": {
      "ISLANDER": {
        "ISLAND_AcMeasurements": {
          "ISLAND_FreqL1_Load": 50.01,
          "ISLAND_FreqL1_Main": 50.02,
          "ISLAND_VL1N_Load": 241.5,
          "ISLAND_VL1N_Main": 241.7,
          "ISLAND_FreqL2_Load": 50.0,
          "ISLAND_VL2N_Load": 239.9,
          "isMIA": false
        }
      }
    }
  }
}"""


@pytest.fixture
def components_payload() -> bytes:
    """Sample answer to the components query for one device."""
    return b"""{
  "components": {
    "bms": [
      {
        "activeAlerts": [],
        "signals": [
          {"name": "BMS_nominalEnergyRemaining", "value": 9.875},
          {"name": "BMS_nominalFullPackEnergy", "value": 13.5},
          {"name": "BMS_isCharging", "value": null, "boolValue": true}
        ]
      }
    ],
    "pch": [
      {
        "activeAlerts": [{"name": "PCH_a001_inverterStandby"}],
        "signals": [
          {"name": "PCH_SlowPvPowerSum", "value": 2860.5},
          {"name": "PCH_BatteryPower", "value": -1200},
          {"name": "PCH_AcFrequency", "value": 50.01},
          {"name": "PCH_AcVoltageAB", "value": 241.2},
          {"name": "PCH_PvCurrentA", "value": 5.0},
          {"name": "PCH_PvVoltageA", "value": 300.0},
          {"name": "PCH_PvCurrentB", "value": 4.0},
          {"name": "PCH_PvVoltageB", "value": 250.0},
          {"name": "PCH_PvVoltageC", "value": 2.5},
          {"name": "PCH_PvCurrentE", "value": 1.0},
          {"name": "PCH_PvVoltageE", "value": 100.0}
        ]
      }
    ]
  }
}"""


def recorded_calls(mocked: aioresponses, method: str, path: str) -> list[Any]:
    """Requests aioresponses saw for a method and URL path, in order."""
    return [
        call
        for (call_method, url), calls in mocked.requests.items()
        if call_method == method and url.path == path
        for call in calls
    ]
