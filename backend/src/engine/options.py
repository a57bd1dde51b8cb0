"""Sort options: schema, defaults and one-shot resolution.

resolve_options() is the single validation gate. Everything it returns is
frozen, and all derived state (per-axis thresholds, mask range) is computed
here once rather than on every access.
"""

import enum
import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any

from engine.color_mask import MaskRange, mask_range
from errors import InvalidOptionError, UnsupportedSortKey
from security import validate_workers
from sorting.keys import SortKey

logger = logging.getLogger(__name__)


class Direction(enum.Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    BOTH = "both"


PARAMS: dict = {
    "direction": {
        "type": "choice",
        "choices": [d.value for d in Direction],
        "default": "horizontal",
        "label": "Direction",
        "description": "Sort rows, columns, or columns then rows",
    },
    "invertDirection": {
        "type": "bool",
        "default": False,
        "label": "Invert",
        "description": "Sort descending (per zone when zoning is on)",
    },
    "sortBy": {
        "type": "choice",
        "choices": [k.value for k in SortKey],
        "default": "sum",
        "label": "Sort By",
    },
    "zones": {
        "type": "bool",
        "default": True,
        "label": "Zones",
        "description": "Sort runs of similar brightness independently",
    },
    "zoneThreshold": {
        "type": "float | {x, y}",
        "min": 0.0,
        "default": {"x": 50, "y": 50},
        "label": "Zone Threshold",
        "description": "Max brightness-sum step inside a zone, per axis",
    },
    "colorMask": {
        "type": "group",
        "default": {"color": "01336a", "variation": 100, "enabled": True},
        "label": "Color Mask",
        "fields": {
            "color": {"type": "hex", "label": "Color"},
            "variation": {
                "type": "float",
                "min": 0.0,
                "max": 100.0,
                "unit": "%",
                "label": "Variation",
            },
            "enabled": {"type": "bool", "label": "Enabled"},
        },
    },
    "rejectAlpha": {
        "type": "bool",
        "default": True,
        "label": "Ignore Alpha",
        "description": "Leave alpha out of sort and zone comparisons",
    },
    "seed": {
        "type": "int | None",
        "default": None,
        "label": "Seed",
        "description": "Fixes the random sort key",
    },
    "workers": {
        "type": "int",
        "min": 1,
        "default": 1,
        "label": "Workers",
    },
}

DEFAULTS: dict = {name: spec["default"] for name, spec in PARAMS.items()}


@dataclass(frozen=True)
class ZoneThreshold:
    x: float
    y: float


@dataclass(frozen=True)
class ColorMaskSpec:
    color: str
    variation: float
    enabled: bool


@dataclass(frozen=True)
class ResolvedOptions:
    direction: Direction
    invert: bool
    sort_key: SortKey
    zones: bool
    threshold: ZoneThreshold
    color_mask: ColorMaskSpec
    mask: MaskRange | None
    reject_alpha: bool = True
    seed: int | None = None
    workers: int = 1


def _finite_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidOptionError(f"'{name}' must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidOptionError(f"'{name}' must be finite")
    return value


def _threshold_value(value: Any, name: str) -> float:
    value = _finite_number(value, name)
    if value < 0:
        raise InvalidOptionError(f"'{name}' must be >= 0, got {value}")
    return value


def _resolve_threshold(value: Any) -> ZoneThreshold:
    """Scalar applies to both axes; a mapping gives x and y separately."""
    if isinstance(value, dict):
        missing = {"x", "y"} - set(value)
        if missing:
            raise InvalidOptionError(f"zoneThreshold missing keys: {sorted(missing)}")
        return ZoneThreshold(
            _threshold_value(value["x"], "zoneThreshold.x"),
            _threshold_value(value["y"], "zoneThreshold.y"),
        )
    t = _threshold_value(value, "zoneThreshold")
    return ZoneThreshold(t, t)


def _resolve_direction(value: Any) -> Direction:
    if isinstance(value, Direction):
        return value
    try:
        return Direction(str(value).lower())
    except ValueError:
        raise InvalidOptionError(
            f"unknown direction {value!r}, expected one of "
            f"{PARAMS['direction']['choices']}"
        ) from None


def _resolve_sort_key(value: Any) -> SortKey:
    try:
        return SortKey.parse(value)
    except UnsupportedSortKey as e:
        logger.warning("%s; defaulting to sum sorting", e)
        return SortKey.SUM


def _resolve_color_mask(value: Any) -> tuple[ColorMaskSpec, MaskRange | None]:
    if not isinstance(value, dict):
        raise InvalidOptionError("'colorMask' must be a dict")
    merged = {**DEFAULTS["colorMask"], **value}
    enabled = bool(merged["enabled"])
    variation = _finite_number(merged["variation"], "colorMask.variation")
    if not 0.0 <= variation <= 100.0:
        raise InvalidOptionError(
            f"colorMask.variation must be in [0, 100], got {variation}"
        )
    spec = ColorMaskSpec(str(merged["color"]), variation, enabled)
    if not enabled:
        # Color is never parsed for a disabled mask
        return spec, None
    return spec, mask_range(spec.color, spec.variation)


def _resolve_seed(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidOptionError(f"'seed' must be an int or None, got {value!r}")
    return int(value)


def resolve_options(params: dict | ResolvedOptions | None = None) -> ResolvedOptions:
    """Merge params over DEFAULTS and validate.

    Raises:
        InvalidOptionError: Bad direction, threshold, variation, seed or workers.
        InvalidColorFormat: Mask enabled with a malformed color.
    """
    if isinstance(params, ResolvedOptions):
        return params
    params = params or {}
    unknown = set(params) - set(PARAMS)
    if unknown:
        logger.debug("Ignoring unknown option keys: %s", sorted(unknown))

    merged = {**DEFAULTS, **params}

    workers = merged["workers"]
    errors = validate_workers(workers)
    if errors:
        raise InvalidOptionError("; ".join(errors))

    color_mask, mask = _resolve_color_mask(merged["colorMask"])

    return ResolvedOptions(
        direction=_resolve_direction(merged["direction"]),
        invert=bool(merged["invertDirection"]),
        sort_key=_resolve_sort_key(merged["sortBy"]),
        zones=bool(merged["zones"]),
        threshold=_resolve_threshold(merged["zoneThreshold"]),
        color_mask=color_mask,
        mask=mask,
        reject_alpha=bool(merged["rejectAlpha"]),
        seed=_resolve_seed(merged["seed"]),
        workers=int(workers),
    )
