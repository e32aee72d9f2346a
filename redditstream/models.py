from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Tuple, Union


@dataclass(frozen=True)
class Post:
    """
    A link post or self post (kind `t3`).

    `name` is the fullname (e.g. t3_abc123) and is what Reddit uses
    for pagination cursors and for every action endpoint.
    """

    id: str  # base-36 id without kind prefix
    name: str  # fullname, t3_<id>
    title: str
    author: str  # "[deleted]" when the account is gone
    subreddit: str  # without 'r/'
    created_utc: float  # Unix timestamp
    selftext: str = ""
    url: Optional[str] = None
    permalink: str = ""
    score: int = 0
    num_comments: int = 0
    over_18: bool = False
    is_self: bool = False
    stickied: bool = False
    locked: bool = False
    hidden: bool = False
    distinguished: Optional[str] = None
    link_flair_text: Optional[str] = None
    edited: Union[bool, float] = False  # False, or edit timestamp
    kind: Literal["t3"] = "t3"


@dataclass(frozen=True)
class Comment:
    """
    A comment (kind `t1`). Replies are only populated when the comment
    comes from a comment tree, never from flat listings.
    """

    id: str
    name: str
    body: str
    author: str
    subreddit: str
    created_utc: float
    link_id: str = ""  # fullname of the post the comment belongs to
    parent_id: str = ""  # fullname of the parent post or comment
    score: int = 0
    permalink: str = ""
    edited: Union[bool, float] = False
    distinguished: Optional[str] = None
    replies: Tuple["Comment", ...] = ()
    kind: Literal["t1"] = "t1"


@dataclass(frozen=True)
class Message:
    """
    A private message (kind `t4`) from the inbox.
    """

    id: str
    name: str
    author: Optional[str]  # None for system messages
    subject: str
    body: str
    created_utc: float
    context: str = ""
    first_message_name: Optional[str] = None
    parent_id: Optional[str] = None
    subreddit: Optional[str] = None
    was_comment: bool = False
    new: bool = False
    kind: Literal["t4"] = "t4"


# Closed set of records a listing can yield.
Item = Union[Post, Comment, Message]


def item_key(item: Item) -> str:
    """
    Identifier used for de-duplication.

    Fullnames are unique across kinds, so mixed listings such as the
    inbox (comments and messages) never collide.
    """
    return item.name


@dataclass(frozen=True)
class UserAbout:
    """Account details from /user/{name}/about (kind `t2`)."""

    id: str
    name: str
    created_utc: float
    link_karma: int = 0
    comment_karma: int = 0
    is_gold: bool = False
    is_mod: bool = False
    has_verified_email: bool = False


@dataclass(frozen=True)
class SubredditAbout:
    """Community details from /r/{name}/about (kind `t5`)."""

    id: str
    name: str  # fullname, t5_<id>
    display_name: str
    title: str
    created_utc: float
    public_description: str = ""
    subscribers: int = 0
    over18: bool = False


@dataclass(frozen=True)
class FlairChoice:
    """One selectable flair template from /r/{name}/api/flairselector."""

    flair_template_id: str
    flair_text: str
    flair_css_class: str = ""
    flair_text_editable: bool = False
    flair_position: str = "right"


@dataclass(frozen=True)
class FlairList:
    """Flair templates available for a post or user in one subreddit."""

    choices: Tuple[FlairChoice, ...] = ()

    def find_text(self, text: str) -> Optional[str]:
        """Template id of the first choice whose text is `text`."""
        for choice in self.choices:
            if choice.flair_text == text:
                return choice.flair_template_id
        return None
