"""Response parsing for the NeoHub TCP module."""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Optional

from .models import NeoHubDeviceInfo, NeoHubInfoResponse, NeoHubReadDcbResponse

_LOGGER = logging.getLogger(__name__)

# JSON keys of the INFO response
KEY_DEVICES = "devices"
KEY_DEVICE_NAME = "device"
KEY_DEVICE_TYPE = "DEVICE_TYPE"
KEY_CURRENT_TEMPERATURE = "CURRENT_TEMPERATURE"
KEY_CURRENT_SET_TEMPERATURE = "CURRENT_SET_TEMPERATURE"
KEY_CURRENT_FLOOR_TEMPERATURE = "CURRENT_FLOOR_TEMPERATURE"
KEY_HEATING = "HEATING"
KEY_STANDBY = "STANDBY"
KEY_AWAY = "AWAY"
KEY_TIMER = "TIMER"
KEY_LOW_BATTERY = "LOW_BATTERY"
KEY_OFFLINE = "OFFLINE"
KEY_MANUAL_OFF = "MANUAL_OFF"

# JSON key of the READ_DCB response
KEY_CORF = "CORF"

# Floor sensors that are not fitted report this sentinel
FLOOR_SENSOR_NOT_FITTED = 255.255


class NeoHubResponseParser:
    """
    Helper class to turn the hub's JSON answers into models.

    INFO response:
        {"devices": [{"device": "Kitchen", "CURRENT_TEMPERATURE": "20.5", ...}, ...]}

    READ_DCB response:
        {"CORF": "C", ...}
    """

    @staticmethod
    def _load_object(raw: str) -> Optional[dict]:
        """Decodes a JSON object, returns None for anything else."""
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as err:
            _LOGGER.debug("Response is not valid JSON: %s", err)
            return None
        if not isinstance(payload, dict):
            _LOGGER.debug("Response is not a JSON object: %r", payload)
            return None
        return payload

    @staticmethod
    def _parse_float(value: Any) -> Optional[float]:
        """Numbers arrive either as JSON numbers or as strings; NaN and infinity become None."""
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None

    @staticmethod
    def _parse_int(value: Any) -> Optional[int]:
        number = NeoHubResponseParser._parse_float(value)
        return int(number) if number is not None else None

    @staticmethod
    def parse_device(record: dict) -> NeoHubDeviceInfo:
        """Parses a single device record of the INFO response."""
        floor = NeoHubResponseParser._parse_float(record.get(KEY_CURRENT_FLOOR_TEMPERATURE))
        if floor is not None and floor >= FLOOR_SENSOR_NOT_FITTED:
            floor = None

        return NeoHubDeviceInfo(
            device_name=str(record.get(KEY_DEVICE_NAME) or ""),
            device_type=NeoHubResponseParser._parse_int(record.get(KEY_DEVICE_TYPE)),
            current_temperature=NeoHubResponseParser._parse_float(record.get(KEY_CURRENT_TEMPERATURE)),
            current_set_temperature=NeoHubResponseParser._parse_float(record.get(KEY_CURRENT_SET_TEMPERATURE)),
            current_floor_temperature=floor,
            heating=bool(record.get(KEY_HEATING, False)),
            standby=bool(record.get(KEY_STANDBY, False)),
            away=bool(record.get(KEY_AWAY, False)),
            timer_on=bool(record.get(KEY_TIMER, False)),
            low_battery=bool(record.get(KEY_LOW_BATTERY, False)),
            offline=bool(record.get(KEY_OFFLINE, False)),
            manual_off=bool(record.get(KEY_MANUAL_OFF, False)),
        )

    @staticmethod
    def create_info_response(raw: str) -> Optional[NeoHubInfoResponse]:
        """
        Creates an INFO response from the raw hub answer.

        Returns:
            None if the answer cannot be parsed. A response whose ``devices``
            is None if the answer carries no device list.
        """
        payload = NeoHubResponseParser._load_object(raw)
        if payload is None:
            return None

        records = payload.get(KEY_DEVICES)
        if not isinstance(records, list):
            return NeoHubInfoResponse(devices=None)

        devices = [
            NeoHubResponseParser.parse_device(record)
            for record in records
            if isinstance(record, dict)
        ]
        return NeoHubInfoResponse(devices=devices)

    @staticmethod
    def create_read_dcb_response(raw: str) -> Optional[NeoHubReadDcbResponse]:
        """Creates a READ_DCB response from the raw hub answer."""
        payload = NeoHubResponseParser._load_object(raw)
        if payload is None:
            return None

        corf = payload.get(KEY_CORF)
        if not isinstance(corf, str) or not corf:
            return NeoHubReadDcbResponse()
        return NeoHubReadDcbResponse(degrees_c_or_f=corf)


def create_info_response(raw: str) -> Optional[NeoHubInfoResponse]:
    return NeoHubResponseParser.create_info_response(raw)


def create_read_dcb_response(raw: str) -> Optional[NeoHubReadDcbResponse]:
    return NeoHubResponseParser.create_read_dcb_response(raw)
