"""
Configuration for the placement engine and builder.

Both dataclasses are immutable and validate themselves on construction, so an
invalid configuration fails at startup rather than during a drag.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# Default drop zone sizes, as fractions of the target's width/height
DEFAULT_HORIZONTAL_THRESHOLD = 0.25
DEFAULT_VERTICAL_THRESHOLD = 0.30

# Horizontal group capacity
MIN_GROUP_CHILDREN = 2
MAX_GROUP_CHILDREN = 4

DEFAULT_MAX_HISTORY = 100
DEFAULT_ADD_COOLDOWN_SECONDS = 0.3
DEFAULT_DRAG_DELETE_MARGIN = 50.0


@dataclass(frozen=True)
class PlacementThresholds:
    """
    Edge zones used to classify a pointer over a target.

    Attributes:
        horizontal: Fraction of the width treated as the left/right zones
        vertical: Fraction of the height treated as the before/after zones

    Example:
        >>> PlacementThresholds(horizontal=0.2).vertical
        0.3
    """

    horizontal: float = DEFAULT_HORIZONTAL_THRESHOLD
    vertical: float = DEFAULT_VERTICAL_THRESHOLD

    def __post_init__(self) -> None:
        if not 0 < self.horizontal < 0.5:
            raise ValueError(f"horizontal threshold must be in (0, 0.5): {self.horizontal}")
        if not 0 < self.vertical < 0.5:
            raise ValueError(f"vertical threshold must be in (0, 0.5): {self.vertical}")


DEFAULT_THRESHOLDS = PlacementThresholds()


@dataclass(frozen=True)
class BuilderConfig:
    """
    Configuration for the form builder (immutable).

    Attributes:
        thresholds: Drop zone sizes for pointer classification
        allow_horizontal: Whether side-by-side drops are offered at all
        allow_vertical: Whether before/after drops are offered at all
        min_group_children: Smallest legal horizontal group
        max_group_children: Largest legal horizontal group
        max_history: Number of undo steps kept
        add_cooldown_seconds: Window in which a repeated add is coalesced
        drag_delete_margin: Distance outside the canvas (px) that counts as
            dragging a component off the form
    """

    thresholds: PlacementThresholds = field(default_factory=PlacementThresholds)
    allow_horizontal: bool = True
    allow_vertical: bool = True
    min_group_children: int = MIN_GROUP_CHILDREN
    max_group_children: int = MAX_GROUP_CHILDREN
    max_history: int = DEFAULT_MAX_HISTORY
    add_cooldown_seconds: float = DEFAULT_ADD_COOLDOWN_SECONDS
    drag_delete_margin: float = DEFAULT_DRAG_DELETE_MARGIN

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.min_group_children < 2:
            raise ValueError(f"min_group_children must be at least 2: {self.min_group_children}")
        if self.max_group_children < self.min_group_children:
            raise ValueError("max_group_children must not be below min_group_children")
        if self.max_history < 1:
            raise ValueError(f"max_history must be positive: {self.max_history}")
        if self.add_cooldown_seconds < 0:
            raise ValueError(f"add_cooldown_seconds must not be negative: {self.add_cooldown_seconds}")
        if self.drag_delete_margin < 0:
            raise ValueError(f"drag_delete_margin must not be negative: {self.drag_delete_margin}")


DEFAULT_CONFIG = BuilderConfig()
