"""Command definitions for the NeoHub TCP module."""

from .const import (
    CMD_CODE_AWAY,
    CMD_CODE_TEMP,
    CMD_CODE_TIMER,
    MAX_SET_TEMPERATURE,
    MIN_SET_TEMPERATURE,
)


def _on_off(on: bool) -> str:
    return "ON" if on else "OFF"


def _format_temperature(temperature: float) -> str:
    """The hub accepts whole degrees as integers and halves as decimals."""
    if float(temperature).is_integer():
        return str(int(temperature))
    return f"{temperature:.1f}"


def validate_device_name(device_name: str) -> None:
    """
    Validates a device name before it is embedded in a command.

    Raises:
        ValueError: If the name is empty or would break the JSON string
    """
    if not device_name:
        raise ValueError("device_name must not be empty")
    if '"' in device_name or "\\" in device_name:
        raise ValueError(f"device_name contains unsupported characters: {device_name!r}")


def create_set_temperature_command(temperature: float, device_name: str) -> str:
    """
    Creates a command to change the set point of a thermostat.

    Args:
        temperature: New set point (5-35 degrees)
        device_name: Name of the thermostat as known to the hub

    Returns:
        JSON command string, e.g. {"SET_TEMP":[21, "Kitchen"]}
    """
    if not MIN_SET_TEMPERATURE <= temperature <= MAX_SET_TEMPERATURE:
        raise ValueError(
            f"temperature must be between {MIN_SET_TEMPERATURE} and {MAX_SET_TEMPERATURE}"
        )
    validate_device_name(device_name)
    return CMD_CODE_TEMP.format(_format_temperature(temperature), device_name)


def create_frost_command(on: bool, device_name: str) -> str:
    """Creates a command to switch frost protection (away mode) on or off."""
    validate_device_name(device_name)
    return CMD_CODE_AWAY.format(_on_off(on), device_name)


def create_timer_command(on: bool, device_name: str) -> str:
    """Creates a command to switch the output of a plug on or off."""
    validate_device_name(device_name)
    return CMD_CODE_TIMER.format(_on_off(on), device_name)
