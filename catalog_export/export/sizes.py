"""
Normalization of the catalog's heterogeneous "sizes" field.

The catalog stores sizes as free-form JSON in one of three shapes:

    [{"size": "38", "count": 2}, ...]   -> SizePairs   -> "38(2), 39(1)"
    ["38", "39"]                        -> SizeLabels  -> "38, 39"
    {"38": true, "39": false}           -> SizeFlags   -> "38"

Anything else is UnrecognizedSizes and renders as "". classify_sizes and
format_sizes never raise.
"""

from dataclasses import dataclass
from numbers import Number
from typing import Any, Tuple, Union

from catalog_export.core.logging import setup_logger

logger = setup_logger("INFO")

SEPARATOR = ", "


def _label(value: Any) -> str:
    # Whole floats come back from JSON as 38.0; keep them as "38"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, str) or _is_number(value)


def _pair_size(value: Any) -> str:
    return _label(value) if _is_scalar(value) else ""


def _pair_count(value: Any) -> Any:
    # Only numeric counts are shown
    return value if _is_number(value) else None


@dataclass(frozen=True)
class SizePairs:
    """Sizes with optional stock counts; a pair without a size label is not rendered."""
    pairs: Tuple[Tuple[str, Any], ...]

    def render(self) -> str:
        return SEPARATOR.join(
            f"{size}({_label(count)})" if count else size
            for size, count in self.pairs
            if size
        )


@dataclass(frozen=True)
class SizeLabels:
    """Bare size labels."""
    labels: Tuple[str, ...]

    def render(self) -> str:
        return SEPARATOR.join(self.labels)


@dataclass(frozen=True)
class SizeFlags:
    """Size label -> availability flag."""
    flags: Tuple[Tuple[str, bool], ...]

    def render(self) -> str:
        return SEPARATOR.join(label for label, available in self.flags if available)


@dataclass(frozen=True)
class UnrecognizedSizes:
    raw_type: str = "NoneType"

    def render(self) -> str:
        return ""


SizesValue = Union[SizePairs, SizeLabels, SizeFlags, UnrecognizedSizes]


def classify_sizes(value: Any) -> SizesValue:
    """Map a raw sizes value onto one of the known variants."""
    if value is None:
        return UnrecognizedSizes()

    if _is_scalar(value):
        # A single bare size is still a label list
        return SizeLabels((_label(value),))

    if isinstance(value, (list, tuple)):
        if not value:
            return UnrecognizedSizes(type(value).__name__)
        if all(isinstance(item, dict) and "size" in item for item in value):
            return SizePairs(tuple(
                (_pair_size(item.get("size")), _pair_count(item.get("count")))
                for item in value
            ))
        if all(_is_scalar(item) for item in value):
            return SizeLabels(tuple(_label(item) for item in value))
        return UnrecognizedSizes(type(value).__name__)

    if isinstance(value, dict):
        return SizeFlags(tuple(
            (str(label), flag is True or (flag == 1 and not isinstance(flag, bool)))
            for label, flag in value.items()
        ))

    return UnrecognizedSizes(type(value).__name__)


def format_sizes(value: Any) -> str:
    """Render any raw sizes value as a comma-separated string ("" if unknown)."""
    try:
        return classify_sizes(value).render()
    except Exception as e:
        logger.warning(f"⚠️ Unrenderable sizes value ({type(value).__name__}): {str(e)}")
        return ""
