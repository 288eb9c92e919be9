import re
import time
from typing import Callable, Optional

_NON_WORD = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-{2,}")

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def slugify_heading(text: Optional[str]) -> str:
    """
    Derive a URL-safe anchor from heading text.

    "Meet Our Team!!" -> "meet-our-team"
    """
    if not text:
        return ""
    slug = _NON_WORD.sub("", text.lower()).strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def time_suffix(clock_ns: Callable[[], int] = time.time_ns) -> str:
    """Short, time-derived disambiguation suffix."""
    return _base36(clock_ns())[-6:]


def fallback_anchor(clock: Callable[[], float] = time.time) -> str:
    return f"section-{int(clock() * 1000)}"


def generate_nav_anchor(
    store,
    *,
    page_key: str,
    heading: Optional[str],
    requested: Optional[str] = None,
    exclude_id: Optional[str] = None,
    suffix: Callable[[], str] = time_suffix,
) -> str:
    """
    Build a navigation anchor unique within page_key.

    The existence probe is best effort: two writers can both pass it, so the
    (page_key, nav_anchor) unique constraint remains the final authority.
    """
    base = slugify_heading(requested) if requested else ""
    base = base or slugify_heading(heading) or fallback_anchor()

    if not store.exists(page_key=page_key, nav_anchor=base, exclude_id=exclude_id):
        return base

    return f"{base}-{suffix()}"
