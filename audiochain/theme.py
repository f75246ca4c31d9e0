"""Colours, fonts and the small drawing decisions of the dark window theme."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

Point = tuple[float, float]

CTA_MIN_WIDTH = 150
CLOSE_BUTTON_TEXT = "X"
MINIMIZE_BUTTON_TEXT = "\u2212"
ICON_INSET = 6.0
STOP_ICON_INSET = 4.0
PLAY_ICON_SCALE = 0.6


def _to_byte(value: float) -> int:
    """Truncate a float channel value to a byte."""
    return max(0, min(255, int(value)))


@dataclass(frozen=True)
class Colour:
    """A 32-bit ARGB colour."""

    argb: int

    def __post_init__(self) -> None:
        if not 0 <= self.argb <= 0xFFFFFFFF:
            raise ValueError(f"colour value out of range: {self.argb:#x}")

    @classmethod
    def from_rgba(cls, red: int, green: int, blue: int, alpha: int = 255) -> Colour:
        for channel in (red, green, blue, alpha):
            if not 0 <= channel <= 255:
                raise ValueError(f"channel value out of range: {channel}")
        return cls((alpha << 24) | (red << 16) | (green << 8) | blue)

    @property
    def alpha(self) -> int:
        return (self.argb >> 24) & 0xFF

    @property
    def red(self) -> int:
        return (self.argb >> 16) & 0xFF

    @property
    def green(self) -> int:
        return (self.argb >> 8) & 0xFF

    @property
    def blue(self) -> int:
        return self.argb & 0xFF

    @property
    def float_alpha(self) -> float:
        return self.alpha / 255.0

    def brighter(self, amount: float = 0.4) -> Colour:
        """A lighter version of this colour; larger amounts move further towards white."""
        if amount < 0:
            raise ValueError("amount must not be negative")
        factor = 1.0 / (1.0 + amount)
        return Colour.from_rgba(
            _to_byte(255 - factor * (255 - self.red)),
            _to_byte(255 - factor * (255 - self.green)),
            _to_byte(255 - factor * (255 - self.blue)),
            self.alpha,
        )

    def darker(self, amount: float = 0.4) -> Colour:
        """A darker version of this colour; larger amounts move further towards black."""
        if amount < 0:
            raise ValueError("amount must not be negative")
        factor = 1.0 / (1.0 + amount)
        return Colour.from_rgba(
            _to_byte(factor * self.red),
            _to_byte(factor * self.green),
            _to_byte(factor * self.blue),
            self.alpha,
        )

    def with_alpha(self, alpha: float) -> Colour:
        """The same colour with an opacity from 0.0 to 1.0 (clamped)."""
        byte = int(math.floor(min(1.0, max(0.0, alpha)) * 255.0 + 0.5))
        return Colour.from_rgba(self.red, self.green, self.blue, byte)


WHITE = Colour(0xFFFFFFFF)
BLACK = Colour(0xFF000000)


@dataclass(frozen=True)
class Font:
    """A font request: point size and weight."""

    size: float
    bold: bool = False


@dataclass(frozen=True)
class Palette:
    """The colours of the dark theme."""

    window_background: Colour = Colour(0xFF0F0F0F)
    combo_background: Colour = Colour(0xFF141414)
    combo_text: Colour = Colour(0xFFE0E0E0)
    combo_outline: Colour = Colour(0xFF303030)
    combo_button: Colour = Colour(0xFF1A1A1A)
    combo_arrow: Colour = WHITE
    combo_gradient_top: Colour = Colour(0xFF1A1A1A)
    combo_gradient_bottom: Colour = Colour(0xFF141414)
    combo_focus_outline: Colour = WHITE
    popup_background: Colour = Colour(0xFF1E1E1E)
    popup_text: Colour = Colour(0xFFE0E0E0)
    popup_highlighted_background: Colour = WHITE.with_alpha(0.15)
    popup_highlighted_text: Colour = WHITE
    popup_header_text: Colour = WHITE
    popup_border: Colour = WHITE.with_alpha(0.2)
    button_border: Colour = WHITE.with_alpha(0.4)
    button_glow: Colour = WHITE.with_alpha(0.2)

    def combo_arrow_colour(self, enabled: bool) -> Colour:
        """Arrow colour of a combo box, dimmed when it is disabled."""
        return WHITE.with_alpha(0.9 if enabled else 0.3)


def is_cta_button(width: float) -> bool:
    """Wide buttons are drawn as call-to-action buttons."""
    return width > CTA_MIN_WIDTH


def text_button_font(text: str, width: float) -> Font:
    """The font for a text button with the given caption and width."""
    if text in (CLOSE_BUTTON_TEXT, MINIMIZE_BUTTON_TEXT):
        return Font(18.0, True)
    if is_cta_button(width):
        return Font(16.0, True)
    return Font(14.0)


def button_gradient(base: Colour, highlighted: bool, down: bool) -> tuple[Colour, Colour]:
    """Top and bottom colours of a call-to-action button's vertical gradient."""
    if down:
        return base.darker(0.2), base.brighter(0.1)
    if highlighted:
        return base.brighter(0.2), base.darker(0.1)
    return base.brighter(0.1), base.darker(0.1)


class IconShape(Enum):
    PLAY = "play"
    STOP = "stop"


@dataclass(frozen=True)
class Icon:
    """A filled icon polygon drawn in black on the processing button."""

    shape: IconShape
    points: tuple[Point, ...]
    colour: Colour = BLACK


def processing_icon(active: bool, width: float, height: float) -> Optional[Icon]:
    """The play or stop icon for a square processing button; None if it is not square."""
    if width != height:
        return None
    x = y = ICON_INSET
    w = max(0.0, width - 2 * ICON_INSET)
    h = max(0.0, height - 2 * ICON_INSET)

    if active:
        left, top = x + STOP_ICON_INSET, y + STOP_ICON_INSET
        right = left + max(0.0, w - 2 * STOP_ICON_INSET)
        bottom = top + max(0.0, h - 2 * STOP_ICON_INSET)
        return Icon(IconShape.STOP, ((left, top), (right, top), (right, bottom), (left, bottom)))

    cx, cy = x + w / 2, y + h / 2
    half = w * PLAY_ICON_SCALE / 2
    return Icon(
        IconShape.PLAY,
        ((cx - half, cy - half), (cx - half, cy + half), (cx + half, cy)),
    )


def combo_arrow_points(width: float, height: float) -> tuple[Point, Point, Point]:
    """The three points of the downward chevron drawn near a combo box's right edge."""
    zone_x, zone_width = width - 30, 20
    arrow_x = zone_x + zone_width / 2
    arrow_y = height / 2 - 1
    return (
        (arrow_x - 4.0, arrow_y - 2.0),
        (arrow_x, arrow_y + 2.0),
        (arrow_x + 4.0, arrow_y - 2.0),
    )