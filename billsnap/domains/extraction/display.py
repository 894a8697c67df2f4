"""
Purpose display metadata for rendering layers.
"""

from __future__ import annotations

from typing import NamedTuple

from .models import Purpose


class PurposeDisplay(NamedTuple):
    icon: str
    color: str  # rich color name


PURPOSE_DISPLAY: dict[Purpose, PurposeDisplay] = {
    Purpose.CONVEYANCE: PurposeDisplay("🚗", "dark_orange"),
    Purpose.TRAIN: PurposeDisplay("🚆", "blue"),
    Purpose.BUS: PurposeDisplay("🚌", "slate_blue1"),
    Purpose.FOOD: PurposeDisplay("🍽️", "red"),
    Purpose.HOTEL: PurposeDisplay("🏨", "purple"),
    Purpose.PROJECT_EXPENSE: PurposeDisplay("💼", "cyan"),
    Purpose.OTHER: PurposeDisplay("📋", "grey50"),
}

_missing = set(Purpose) - PURPOSE_DISPLAY.keys()
if _missing:
    raise RuntimeError(f"No display metadata for: {sorted(p.value for p in _missing)}")


def purpose_label(purpose: Purpose) -> str:
    """Rich markup label, e.g. "[dark_orange]🚗 Conveyance[/dark_orange]"."""
    display = PURPOSE_DISPLAY[purpose]
    return f"[{display.color}]{display.icon} {purpose.value}[/{display.color}]"
