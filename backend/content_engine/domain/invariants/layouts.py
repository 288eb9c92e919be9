import json
import re
from typing import Any, Dict, List, Optional

from .exceptions import InvariantViolation

LIST_TYPES = ("unordered", "ordered")
TEAM_MEMBER_OPTIONAL_FIELDS = ("role", "quote", "image")

_VIDEO_URL = re.compile(
    r"^(/videos/[^/]+|https://[^/\s]+/\S+)\.(mp4|webm|ogg)$", re.IGNORECASE
)


def _load_json_object(body: Optional[str], layout: str) -> Dict[str, Any]:
    if not body:
        raise InvariantViolation(
            f"{layout} sections require a JSON body", reason="malformed_body"
        )
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise InvariantViolation(
            f"{layout} body is not valid JSON", reason="malformed_body"
        ) from exc
    if not isinstance(payload, dict):
        raise InvariantViolation(
            f"{layout} body must be a JSON object", reason="malformed_body"
        )
    return payload


def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def assert_list_body(body: Optional[str]) -> None:
    payload = _load_json_object(body, "list")
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise InvariantViolation("list body needs a non-empty items array", reason="malformed_body")
    if not all(_non_empty_string(item) for item in items):
        raise InvariantViolation("list items must be non-empty strings", reason="malformed_body")
    if payload.get("listType", "unordered") not in LIST_TYPES:
        raise InvariantViolation(
            f"listType must be one of {LIST_TYPES}", reason="malformed_body"
        )
    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        raise InvariantViolation("list description must be a string", reason="malformed_body")


def assert_testimonial_body(body: Optional[str]) -> None:
    payload = _load_json_object(body, "testimonial")
    for field in ("quote", "author"):
        if not _non_empty_string(payload.get(field)):
            raise InvariantViolation(
                f"testimonial body requires {field}", reason="malformed_body"
            )
    for field in ("role", "company"):
        value = payload.get(field)
        if value is not None and not isinstance(value, str):
            raise InvariantViolation(
                f"testimonial {field} must be a string", reason="malformed_body"
            )
    rating = payload.get("rating")
    if rating is not None:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise InvariantViolation(
                "testimonial rating must be an integer between 1 and 5",
                reason="malformed_body",
            )


def assert_video_body(body: Optional[str]) -> None:
    payload = _load_json_object(body, "video")
    url = payload.get("videoUrl")
    if not isinstance(url, str) or not _VIDEO_URL.match(url.strip()):
        raise InvariantViolation(
            "video body requires a videoUrl ending in .mp4, .webm or .ogg",
            reason="malformed_body",
        )


STRUCTURED_BODY_VALIDATORS = {
    "list": assert_list_body,
    "testimonial": assert_testimonial_body,
    "video": assert_video_body,
}


def normalize_team_members(raw: Any) -> Optional[List[Dict[str, str]]]:
    """
    Accept a list of members or its JSON encoding (multipart forms send
    strings) and return trimmed member dicts.
    """
    if raw is None or raw == "":
        return None

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise InvariantViolation(
                "team must be a JSON array", reason="invalid_team_member"
            ) from exc

    if not isinstance(raw, list):
        raise InvariantViolation("team must be an array", reason="invalid_team_member")

    members = []
    for index, member in enumerate(raw):
        if not isinstance(member, dict):
            raise InvariantViolation(
                f"team member {index} must be an object", reason="invalid_team_member"
            )
        name = member.get("name")
        bio = member.get("bio")
        if not _non_empty_string(name) or not _non_empty_string(bio):
            raise InvariantViolation(
                f"team member {index} requires a name and bio",
                reason="invalid_team_member",
            )
        cleaned = {"name": name.strip(), "bio": bio.strip()}
        for field in TEAM_MEMBER_OPTIONAL_FIELDS:
            value = member.get(field)
            if _non_empty_string(value):
                cleaned[field] = value.strip()
        members.append(cleaned)

    return members
