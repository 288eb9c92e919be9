from typing import Any, Dict, Tuple

CANONICAL_POSITIONS: Tuple[str, ...] = tuple(
    f"dynamicSections{n}" for n in range(1, 8)
)
DEFAULT_POSITION = "dynamicSections7"

# Legacy tokens are matched after trimming and lower-casing.
LEGACY_POSITIONS: Dict[str, str] = {
    "top": "dynamicSections1",
    "middle": "dynamicSections3",
    "bottom": "dynamicSections7",
    "dynamicsectionstop": "dynamicSections1",
    "dynamicsectionsmiddle": "dynamicSections3",
    "dynamicsections": "dynamicSections7",
    **{slot.lower(): slot for slot in CANONICAL_POSITIONS},
}


def normalize_position(value: Any) -> str:
    """
    Map a raw or legacy position value onto one of the seven canonical slots.

    Unknown, empty and non-string values fall back to the lowest-priority
    slot. Canonical input is returned unchanged, so the mapping is idempotent.
    """
    if not isinstance(value, str):
        return DEFAULT_POSITION

    trimmed = value.strip()
    if trimmed in CANONICAL_POSITIONS:
        return trimmed

    return LEGACY_POSITIONS.get(trimmed.lower(), DEFAULT_POSITION)


def is_canonical_position(value: Any) -> bool:
    return value in CANONICAL_POSITIONS
