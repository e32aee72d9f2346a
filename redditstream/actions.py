from __future__ import annotations

import logging
from typing import Any, Dict, Literal

from .clients.reddit_client import Transport
from .decoder import decode_action, decode_flair_choices, decode_thing_list
from .errors import DecodeError
from .models import Comment, FlairList, Item


logger = logging.getLogger(__name__)


class ThingActions:
    """
    Write operations on a post, comment or message, addressed by fullname.

    Records returned by listings are immutable snapshots; these calls
    change state on Reddit and do not update any record already held.
    """

    def __init__(self, transport: Transport, fullname: str) -> None:
        self._transport = transport
        self.fullname = fullname

    def __repr__(self) -> str:
        return f"ThingActions({self.fullname!r})"

    # ---------- voting ----------

    def upvote(self) -> None:
        self._vote(1)

    def downvote(self) -> None:
        self._vote(-1)

    def clear_vote(self) -> None:
        self._vote(0)

    # ---------- content ----------

    def reply(self, text: str) -> Item:
        """Post a comment under this thing and return the new comment."""
        data = self._post(
            "/api/comment",
            {"api_type": "json", "text": text, "thing_id": self.fullname},
        )
        things = decode_thing_list(data)
        if not things or not isinstance(things[0], Comment):
            raise DecodeError("reply: response did not contain the new comment")
        return things[0]

    def edit(self, text: str) -> None:
        self._post(
            "/api/editusertext",
            {"api_type": "json", "text": text, "thing_id": self.fullname},
        )

    def delete(self) -> None:
        self._post("/api/del", {"id": self.fullname})

    def report(self, reason: str) -> None:
        self._post(
            "/api/report",
            {"api_type": "json", "thing_id": self.fullname, "reason": reason},
        )

    # ---------- visibility / post state ----------

    def hide(self) -> None:
        self._post("/api/hide", {"id": self.fullname})

    def unhide(self) -> None:
        self._post("/api/unhide", {"id": self.fullname})

    def lock(self) -> None:
        self._post("/api/lock", {"id": self.fullname})

    def unlock(self) -> None:
        self._post("/api/unlock", {"id": self.fullname})

    def mark_nsfw(self) -> None:
        self._post("/api/marknsfw", {"id": self.fullname})

    def unmark_nsfw(self) -> None:
        self._post("/api/unmarknsfw", {"id": self.fullname})

    # ---------- moderation ----------

    def approve(self) -> None:
        self._post("/api/approve", {"id": self.fullname})

    def remove(self, spam: bool = False) -> None:
        self._post("/api/remove", {"id": self.fullname, "spam": _flag(spam)})

    def distinguish(self, how: Literal["yes", "no", "admin", "special"] = "yes") -> None:
        self._post(
            "/api/distinguish",
            {"api_type": "json", "how": how, "id": self.fullname},
        )

    def sticky(self, state: bool = True) -> None:
        self._post(
            "/api/set_subreddit_sticky",
            {"api_type": "json", "id": self.fullname, "state": _flag(state)},
        )

    def ignore_reports(self) -> None:
        self._post("/api/ignore_reports", {"id": self.fullname})

    def unignore_reports(self) -> None:
        self._post("/api/unignore_reports", {"id": self.fullname})

    # ---------- flair ----------

    def flair_options(self, subreddit: str) -> FlairList:
        """Link flair templates this post can take in `subreddit`."""
        raw = self._transport.post(f"/r/{subreddit}/api/flairselector", {"link": self.fullname})
        return decode_flair_choices(raw)

    def flair(self, subreddit: str, template: str) -> None:
        self._post(
            f"/r/{subreddit}/api/selectflair",
            {"api_type": "json", "link": self.fullname, "flair_template_id": template},
        )

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _vote(self, direction: int) -> None:
        self._post("/api/vote", {"dir": direction, "id": self.fullname})

    def _post(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug("POST %s for %s", path, self.fullname)
        return decode_action(self._transport.post(path, data))


def _flag(value: bool) -> str:
    return "true" if value else "false"
