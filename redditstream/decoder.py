from __future__ import annotations

"""
Turns raw Reddit JSON bodies into typed records.

Every listing endpoint returns the same envelope:

    {"kind": "Listing",
     "data": {"children": [{"kind": "t3", "data": {...}}, ...],
              "after": "t3_xyz" | null,
              "before": "t3_abc" | null}}

The decoder is the only place that knows about that envelope; the
listing and stream engines work with `Page` and `Item` only.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from .errors import APIError, DecodeError
from .models import Comment, FlairChoice, FlairList, Item, Message, Post, SubredditAbout, UserAbout


logger = logging.getLogger(__name__)

RawBody = Union[bytes, str]
T = TypeVar("T", UserAbout, SubredditAbout)


@dataclass(frozen=True)
class Cursor:
    """
    Position in a listing. Both anchors are fullnames.

    An empty cursor means "from the start" before the first fetch;
    after a fetch, `after is None` means there is nothing further.
    """

    after: Optional[str] = None
    before: Optional[str] = None

    @classmethod
    def start(cls) -> "Cursor":
        return cls()

    def as_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.after is not None:
            params["after"] = self.after
        if self.before is not None:
            params["before"] = self.before
        return params


@dataclass(frozen=True)
class Page:
    items: Tuple[Item, ...]
    after: Optional[str] = None
    before: Optional[str] = None

    @property
    def exhausted(self) -> bool:
        return not self.items or self.after is None

    @property
    def next_cursor(self) -> Optional[Cursor]:
        if self.exhausted:
            return None
        return Cursor(after=self.after)


Decoder = Callable[[RawBody], Page]


# -------------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------------


def decode_listing(raw: RawBody) -> Page:
    envelope = _load(raw)
    data = _listing_data(envelope)
    items = _decode_children(data["children"])
    return Page(items=tuple(items), after=data.get("after"), before=data.get("before"))


def decode_comment_tree(raw: RawBody) -> Page:
    """
    Decode /comments/{id}, which is a JSON array of two listings:
    the post itself and the top-level comments.

    Comments come back flattened depth-first (parent before its
    replies), in a single page that never continues.
    """
    payload = _load(raw)
    if not isinstance(payload, list) or len(payload) != 2:
        raise DecodeError("comment tree: expected a two-element array of listings")

    data = _listing_data(payload[1])
    flat: List[Item] = []
    for comment in _decode_children(data["children"]):
        flat.extend(_walk(comment))
    return Page(items=tuple(flat), after=None, before=None)


def decode_thing(raw: RawBody, model: Type[T]) -> T:
    """
    Decode a single `{"kind": ..., "data": {...}}` thing such as
    /user/{name}/about or /r/{name}/about.
    """
    payload = _load(raw)
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise DecodeError(f"{model.__name__}: expected a thing with a data object")

    data = payload["data"]
    try:
        if model is UserAbout:
            return UserAbout(
                id=data["id"],
                name=data["name"],
                created_utc=float(data["created_utc"]),
                link_karma=int(data.get("link_karma", 0)),
                comment_karma=int(data.get("comment_karma", 0)),
                is_gold=bool(data.get("is_gold", False)),
                is_mod=bool(data.get("is_mod", False)),
                has_verified_email=bool(data.get("has_verified_email", False)),
            )
        return SubredditAbout(
            id=data["id"],
            name=data["name"],
            display_name=data["display_name"],
            title=data.get("title", ""),
            created_utc=float(data["created_utc"]),
            public_description=data.get("public_description", ""),
            subscribers=int(data.get("subscribers") or 0),
            over18=bool(data.get("over18", False)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DecodeError(f"{model.__name__}: {exc!r}") from exc


def decode_action(raw: RawBody) -> Dict[str, Any]:
    """
    Check the `{"json": {"errors": [...], "data": {...}}}` body returned
    by api_type=json actions. Bodies without that wrapper (vote, hide,
    ...) return an empty dict.
    """
    if not raw or not raw.strip():
        return {}

    payload = _load(raw)
    if not isinstance(payload, dict) or "json" not in payload:
        return {}

    body = payload["json"] or {}
    if not isinstance(body, dict):
        raise DecodeError("action response: 'json' is not an object")

    errors = body.get("errors") or []
    if not isinstance(errors, list):
        raise DecodeError("action response: 'errors' is not an array")
    if errors:
        raise APIError([_error_triple(e) for e in errors])

    data = body.get("data") or {}
    if not isinstance(data, dict):
        raise DecodeError("action response: 'data' is not an object")
    return data


def decode_thing_list(data: Mapping[str, Any]) -> List[Item]:
    """
    Decode the `things` array carried in an action's `data`, e.g. the
    new comment returned by /api/comment.
    """
    things = data.get("things")
    if not isinstance(things, list):
        raise DecodeError("action data: expected a 'things' array")
    return _decode_children(things)


def decode_flair_choices(raw: RawBody) -> FlairList:
    """
    Decode /r/{name}/api/flairselector:

        {"current": {...}, "choices": [{"flair_template_id": ..., ...}]}
    """
    payload = _load(raw)
    if not isinstance(payload, dict) or not isinstance(payload.get("choices"), list):
        raise DecodeError("flair selector: expected a 'choices' array")

    choices: List[FlairChoice] = []
    for entry in payload["choices"]:
        if not isinstance(entry, dict):
            raise DecodeError("flair selector: choice is not an object")
        try:
            choices.append(
                FlairChoice(
                    flair_template_id=entry["flair_template_id"],
                    flair_text=entry.get("flair_text") or "",
                    flair_css_class=entry.get("flair_css_class") or "",
                    flair_text_editable=bool(entry.get("flair_text_editable", False)),
                    flair_position=entry.get("flair_position") or "right",
                )
            )
        except KeyError as exc:
            raise DecodeError(f"flair selector: missing field {exc!r}") from exc
    return FlairList(choices=tuple(choices))


# -------------------------------------------------------------------------
# Internal: envelope handling
# -------------------------------------------------------------------------


def _load(raw: RawBody) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"response is not valid JSON: {exc}") from exc


def _listing_data(envelope: Any) -> Dict[str, Any]:
    if not isinstance(envelope, dict) or envelope.get("kind") != "Listing":
        raise DecodeError("expected a Listing envelope")
    data = envelope.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("children"), list):
        raise DecodeError("Listing has no children array")
    return data


def _decode_children(children: List[Any]) -> List[Item]:
    items: List[Item] = []
    for child in children:
        if not isinstance(child, dict) or not isinstance(child.get("data"), dict):
            raise DecodeError("listing child is not a thing")

        kind = child.get("kind")
        if kind == "more":
            # "load more comments" stub; not an item
            logger.debug("Skipping 'more' stub with %d ids", len(child["data"].get("children", [])))
            continue

        builder = _BUILDERS.get(kind)
        if builder is None:
            raise DecodeError(f"unsupported thing kind {kind!r}")

        try:
            items.append(builder(child["data"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(f"{kind}: missing or invalid field {exc!r}") from exc
    return items


def _walk(comment: Item) -> List[Item]:
    out: List[Item] = [comment]
    if isinstance(comment, Comment):
        for reply in comment.replies:
            out.extend(_walk(reply))
    return out


def _error_triple(entry: Any) -> Tuple[str, str, Optional[str]]:
    if isinstance(entry, (list, tuple)) and len(entry) >= 2:
        field_name = entry[2] if len(entry) > 2 else None
        return str(entry[0]), str(entry[1]), field_name
    return "UNKNOWN", str(entry), None


# -------------------------------------------------------------------------
# Internal: per-kind builders
# -------------------------------------------------------------------------


def _edited(value: Any) -> Union[bool, float]:
    if isinstance(value, bool) or value is None:
        return bool(value)
    return float(value)


def _post(data: Dict[str, Any]) -> Post:
    return Post(
        id=data["id"],
        name=data["name"],
        title=data["title"],
        author=data.get("author") or "[deleted]",
        subreddit=data.get("subreddit", ""),
        created_utc=float(data["created_utc"]),
        selftext=data.get("selftext") or "",
        url=data.get("url"),
        permalink=data.get("permalink", ""),
        score=int(data.get("score", 0)),
        num_comments=int(data.get("num_comments", 0)),
        over_18=bool(data.get("over_18", False)),
        is_self=bool(data.get("is_self", False)),
        stickied=bool(data.get("stickied", False)),
        locked=bool(data.get("locked", False)),
        hidden=bool(data.get("hidden", False)),
        distinguished=data.get("distinguished"),
        link_flair_text=data.get("link_flair_text"),
        edited=_edited(data.get("edited")),
    )


def _comment(data: Dict[str, Any]) -> Comment:
    replies: Tuple[Comment, ...] = ()
    raw_replies = data.get("replies")
    # Reddit sends "" instead of an empty listing
    if isinstance(raw_replies, dict):
        children = _listing_data(raw_replies)["children"]
        replies = tuple(c for c in _decode_children(children) if isinstance(c, Comment))

    return Comment(
        id=data["id"],
        name=data["name"],
        body=data["body"],
        author=data.get("author") or "[deleted]",
        subreddit=data.get("subreddit", ""),
        created_utc=float(data["created_utc"]),
        link_id=data.get("link_id", ""),
        parent_id=data.get("parent_id", ""),
        score=int(data.get("score", 0)),
        permalink=data.get("permalink", ""),
        edited=_edited(data.get("edited")),
        distinguished=data.get("distinguished"),
        replies=replies,
    )


def _message(data: Dict[str, Any]) -> Message:
    return Message(
        id=data["id"],
        name=data["name"],
        author=data.get("author"),
        subject=data.get("subject", ""),
        body=data["body"],
        created_utc=float(data["created_utc"]),
        context=data.get("context", ""),
        first_message_name=data.get("first_message_name"),
        parent_id=data.get("parent_id"),
        subreddit=data.get("subreddit"),
        was_comment=bool(data.get("was_comment", False)),
        new=bool(data.get("new", False)),
    )


_BUILDERS: Dict[str, Callable[[Dict[str, Any]], Item]] = {
    "t1": _comment,
    "t3": _post,
    "t4": _message,
}
