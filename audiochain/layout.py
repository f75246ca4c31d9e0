"""Geometry of the main window: rectangles, control placement and level-meter mapping."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterator, Optional

from .dsp import gain_to_decibels

HEADER_HEIGHT = 110
WINDOW_CONTROLS_HEIGHT = 30
DEVICE_AREA_HEIGHT = 70
PROCESSING_BUTTON_SIZE = 30
STATUS_INDICATOR_SIZE = 10
METER_WIDTH = 25
METER_SPACING = 10
METER_AREA_WIDTH = 80
METER_FLOOR_DB = -60.0

WHITE = 0xFFFFFFFF
METER_DANGER = 0xFFFF6666
METER_WARNING = 0xFFCCCCCC
METER_MODERATE = 0xFFAAAAAA

METER_SCALE_MARKS_DB = (-60.0, -40.0, -20.0, -10.0, -5.0, 0.0)


def _half(value: int) -> int:
    """Integer halving that truncates towards zero."""
    return int(value / 2)


@dataclass
class Rect:
    """An integer rectangle. The ``remove_from_*`` methods shrink it in place."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def centre(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def copy(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def remove_from_top(self, amount: int) -> Rect:
        """Cut a strip off the top and return it."""
        amount = max(0, min(amount, self.height))
        removed = Rect(self.x, self.y, self.width, amount)
        self.y += amount
        self.height -= amount
        return removed

    def remove_from_bottom(self, amount: int) -> Rect:
        """Cut a strip off the bottom and return it."""
        amount = max(0, min(amount, self.height))
        removed = Rect(self.x, self.bottom - amount, self.width, amount)
        self.height -= amount
        return removed

    def remove_from_left(self, amount: int) -> Rect:
        """Cut a strip off the left and return it."""
        amount = max(0, min(amount, self.width))
        removed = Rect(self.x, self.y, amount, self.height)
        self.x += amount
        self.width -= amount
        return removed

    def remove_from_right(self, amount: int) -> Rect:
        """Cut a strip off the right and return it."""
        amount = max(0, min(amount, self.width))
        removed = Rect(self.right - amount, self.y, amount, self.height)
        self.width -= amount
        return removed

    def reduced(self, dx: int, dy: Optional[int] = None) -> Rect:
        """A copy shrunk by ``dx`` on the left and right and ``dy`` on top and bottom."""
        if dy is None:
            dy = dx
        return Rect(
            self.x + dx,
            self.y + dy,
            max(0, self.width - 2 * dx),
            max(0, self.height - 2 * dy),
        )

    def with_size_keeping_centre(self, width: int, height: int) -> Rect:
        return Rect(
            self.x + _half(self.width - width),
            self.y + _half(self.height - height),
            width,
            height,
        )

    def with_trimmed_left(self, amount: int) -> Rect:
        new_left = self.x + amount
        return Rect(new_left, self.y, max(0, self.right - new_left), self.height)

    def with_width(self, width: int) -> Rect:
        return Rect(self.x, self.y, max(0, width), self.height)

    def translated(self, dx: int, dy: int) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def contains(self, x: float, y: float) -> bool:
        """True if the point lies inside; the right and bottom edges are outside."""
        return self.x <= x < self.right and self.y <= y < self.bottom


@dataclass
class Layout:
    """Where every control and drawn element of the main window goes."""

    header: Rect
    title: Rect
    close_button: Rect
    minimize_button: Rect
    input_label: Rect
    input_combo: Rect
    input_status: Rect
    output_label: Rect
    output_combo: Rect
    output_status: Rect
    processing_button: Rect
    plugin_chain: Rect
    left_label: Rect
    right_label: Rect
    left_meter: Rect
    right_meter: Rect

    def __iter__(self) -> Iterator[tuple[str, Rect]]:
        for f in fields(self):
            yield f.name, getattr(self, f.name)


def compute_layout(width: int, height: int) -> Layout:
    """Place the window's controls for a window of the given size."""
    area = Rect(0, 0, width, height)

    header_area = area.remove_from_top(HEADER_HEIGHT)
    header = header_area.copy()
    header_area.remove_from_top(WINDOW_CONTROLS_HEIGHT)

    title = Rect(10, 5, 200, 25)
    close_button = Rect(width - 45, 5, 35, 25)
    minimize_button = Rect(width - 85, 5, 35, 25)

    device_area = header_area.remove_from_top(DEVICE_AREA_HEIGHT)
    device_area.remove_from_top(5)

    processing_area = device_area.remove_from_right(PROCESSING_BUTTON_SIZE + 10)
    input_area = device_area.remove_from_left(device_area.width // 2)
    output_area = device_area

    def device_section(section: Rect) -> tuple[Rect, Rect, Rect]:
        label = section.remove_from_top(25).reduced(5, 0)
        control = section.remove_from_top(35)
        combo = control.remove_from_left(control.width - 25).reduced(5, 0)
        status = control.reduced(5).with_size_keeping_centre(
            STATUS_INDICATOR_SIZE, STATUS_INDICATOR_SIZE
        )
        return label, combo, status

    input_label, input_combo, input_status = device_section(input_area)
    output_label, output_combo, output_status = device_section(output_area)

    processing_area.remove_from_top(25)
    processing_control = processing_area.remove_from_top(35)
    processing_button = processing_control.with_size_keeping_centre(
        PROCESSING_BUTTON_SIZE, PROCESSING_BUTTON_SIZE
    )

    content = area.remove_from_bottom(area.height - 10)
    content = content.remove_from_left(content.width - 15)
    meter_area = content.remove_from_right(METER_AREA_WIDTH)
    plugin_chain = content

    total_meter_width = METER_WIDTH * 2 + METER_SPACING
    centre_offset = _half(meter_area.width - total_meter_width)
    centred = meter_area.with_trimmed_left(centre_offset).with_width(total_meter_width)

    label_area = centred.remove_from_top(20)
    left_label = label_area.remove_from_left(METER_WIDTH + METER_SPACING // 2)
    right_label = label_area.remove_from_left(METER_WIDTH + METER_SPACING // 2)

    left_meter_area = centred.remove_from_left(METER_WIDTH)
    centred.remove_from_left(METER_SPACING)
    left_meter_area.remove_from_bottom(10)
    right_meter_area = centred.remove_from_left(METER_WIDTH)
    right_meter_area.remove_from_bottom(10)

    return Layout(
        header=header,
        title=title,
        close_button=close_button,
        minimize_button=minimize_button,
        input_label=input_label,
        input_combo=input_combo,
        input_status=input_status,
        output_label=output_label,
        output_combo=output_combo,
        output_status=output_status,
        processing_button=processing_button,
        plugin_chain=plugin_chain,
        left_label=left_label,
        right_label=right_label,
        left_meter=left_meter_area.reduced(2),
        right_meter=right_meter_area.reduced(2),
    )


def normalized_meter_level(level: float) -> float:
    """Map a linear level onto 0..1 over the -60 dB to 0 dB range of the meters."""
    if level <= 0.0:
        return 0.0
    level_db = gain_to_decibels(level, METER_FLOOR_DB)
    normalized = (level_db - METER_FLOOR_DB) / (0.0 - METER_FLOOR_DB)
    return min(1.0, max(0.0, normalized))


def meter_colour(normalized: float) -> int:
    """ARGB colour of a meter bar filled to ``normalized`` of its height."""
    if normalized > 0.85:
        return METER_DANGER
    if normalized > 0.7:
        return METER_WARNING
    if normalized > 0.5:
        return METER_MODERATE
    return WHITE


def starts_window_drag(layout: Layout, x: float, y: float) -> bool:
    """True if a click at (x, y) lands in the header but on none of its controls."""
    if not layout.header.contains(x, y):
        return False
    controls = (
        layout.input_combo,
        layout.output_combo,
        layout.processing_button,
        layout.close_button,
        layout.minimize_button,
        layout.input_status,
        layout.output_status,
    )
    return not any(control.contains(x, y) for control in controls)