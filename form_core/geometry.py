"""
Placement geometry - classify a pointer over a target into a drop intent.

Pure functions over already-measured numbers. Nothing here knows about the
component tree or about which drops are legal; that is the job of
`form_core.constraints`.

Zones, in priority order (defaults shown):

    +------+-------------------------+------+
    |      |      before (30%)       |      |
    | left +-------------------------+ right|
    | 25%  |         inside          | 25%  |
    |      +-------------------------+      |
    |      |      after (30%)        |      |
    +------+-------------------------+------+
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import DEFAULT_THRESHOLDS, PlacementThresholds
from .models import DropIntent


@dataclass(frozen=True)
class Point:
    """A pointer position in canvas coordinates."""
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """
    A measured bounding box in canvas coordinates.

    Example:
        >>> Rect(10, 20, 100, 50).right
        110
    """
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def relative(self, point: Point) -> Point:
        """Translate an absolute point into this box's coordinates."""
        return Point(point.x - self.left, point.y - self.top)

    def contains(self, point: Point, margin: float = 0.0) -> bool:
        """Check whether the point lies inside the box grown by `margin`."""
        return (
            self.left - margin <= point.x <= self.right + margin
            and self.top - margin <= point.y <= self.bottom + margin
        )


def classify(
    pointer_x: float,
    pointer_y: float,
    width: float,
    height: float,
    thresholds: PlacementThresholds = DEFAULT_THRESHOLDS,
    allow_horizontal: bool = True,
    allow_vertical: bool = True,
) -> DropIntent:
    """
    Classify a pointer position relative to a target box.

    Args:
        pointer_x: Pointer x, relative to the target's left edge
        pointer_y: Pointer y, relative to the target's top edge
        width: Target width
        height: Target height
        thresholds: Edge zone sizes
        allow_horizontal: Offer left/right zones
        allow_vertical: Offer before/after zones

    Returns:
        The raw drop intent. A box with no area classifies as INSIDE.
    """
    if width <= 0 or height <= 0:
        return DropIntent.INSIDE

    if allow_horizontal:
        if pointer_x < width * thresholds.horizontal:
            return DropIntent.LEFT
        if pointer_x > width * (1 - thresholds.horizontal):
            return DropIntent.RIGHT

    if allow_vertical:
        if pointer_y < height * thresholds.vertical:
            return DropIntent.BEFORE
        if pointer_y > height * (1 - thresholds.vertical):
            return DropIntent.AFTER

    return DropIntent.INSIDE


def classify_in_rect(
    point: Point,
    rect: Rect,
    thresholds: PlacementThresholds = DEFAULT_THRESHOLDS,
    allow_horizontal: bool = True,
    allow_vertical: bool = True,
) -> DropIntent:
    """Classify an absolute pointer position against a measured box."""
    local = rect.relative(point)
    return classify(
        local.x,
        local.y,
        rect.width,
        rect.height,
        thresholds=thresholds,
        allow_horizontal=allow_horizontal,
        allow_vertical=allow_vertical,
    )
