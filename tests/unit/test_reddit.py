from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from redditstream.config import AppConfig, StreamConfig
from redditstream.errors import APIError
from redditstream.models import Comment, Post
from redditstream.reddit import LazySubmission, Reddit


def post_child(post_id: str) -> Dict[str, Any]:
    return {
        "kind": "t3",
        "data": {
            "id": post_id,
            "name": f"t3_{post_id}",
            "title": f"title {post_id}",
            "author": "test_user",
            "subreddit": "test",
            "created_utc": 1700000000.0,
        },
    }


def comment_child(comment_id: str, replies: Any = "") -> Dict[str, Any]:
    return {
        "kind": "t1",
        "data": {
            "id": comment_id,
            "name": f"t1_{comment_id}",
            "body": f"body {comment_id}",
            "author": "commenter",
            "subreddit": "test",
            "created_utc": 1700000000.0,
            "replies": replies,
        },
    }


def listing(*children: Dict[str, Any], after: Optional[str] = None) -> Dict[str, Any]:
    return {"kind": "Listing", "data": {"children": list(children), "after": after, "before": None}}


class RecordingTransport:
    """Serves one canned body per path and records every call."""

    def __init__(self, gets: Optional[Mapping[str, Any]] = None, posts: Optional[Mapping[str, Any]] = None) -> None:
        self._gets = dict(gets or {})
        self._posts = dict(posts or {})
        self.fetches: List[Tuple[str, Dict[str, Any]]] = []
        self.posts: List[Tuple[str, Dict[str, Any]]] = []

    def fetch(self, path: str, params: Optional[Mapping[str, Any]] = None) -> bytes:
        self.fetches.append((path, dict(params or {})))
        return json.dumps(self._gets[path]).encode("utf-8")

    def post(self, path: str, data: Optional[Mapping[str, Any]] = None) -> bytes:
        self.posts.append((path, dict(data or {})))
        return json.dumps(self._posts.get(path, {})).encode("utf-8")


def make_reddit(transport: RecordingTransport, **stream_options: Any) -> Reddit:
    config = AppConfig(stream=StreamConfig(**stream_options))
    return Reddit(transport=transport, config=config)


def test_subreddit_listings_hit_sorted_endpoints() -> None:
    transport = RecordingTransport(
        gets={
            "/r/test/top": listing(post_child("a")),
            "/r/test/hot": listing(post_child("b")),
        }
    )
    sub = make_reddit(transport).subreddit("test")

    assert [p.id for p in sub.top("week", limit=10)] == ["a"]
    assert [p.id for p in sub.hot()] == ["b"]
    assert transport.fetches == [
        ("/r/test/top", {"t": "week", "limit": 10}),
        ("/r/test/hot", {}),
    ]


def test_configured_page_limit_is_used_by_default() -> None:
    transport = RecordingTransport(gets={"/user/someone/comments": listing(comment_child("c"))})
    reddit = make_reddit(transport)
    reddit.config.listing.page_limit = 50

    list(reddit.user("someone").comments())

    assert transport.fetches == [("/user/someone/comments", {"limit": 50})]


def test_subreddit_stream_polls_newest_page_and_skips_baseline() -> None:
    transport = RecordingTransport(gets={"/r/test/new": listing(post_child("a"), post_child("b"), after="t3_b")})
    reddit = make_reddit(transport, poll_limit=2, poll_interval_seconds=0.0)

    stream = reddit.subreddit("test").stream_submissions()

    assert stream.poll_once() == []
    assert stream.poll_once() == []
    # one page per poll even though the listing has an after cursor
    assert transport.fetches == [("/r/test/new", {"limit": 2})] * 2


def test_stream_options_override_config() -> None:
    transport = RecordingTransport(gets={"/r/test/comments": listing(comment_child("c1"))})
    reddit = make_reddit(transport, skip_existing=True)

    stream = reddit.subreddit("test").stream_comments(skip_existing=False, interval=0)

    assert [c.id for c in stream.poll_once()] == ["c1"]


def test_submit_self_post() -> None:
    transport = RecordingTransport(
        posts={"/api/submit": {"json": {"errors": [], "data": {"name": "t3_new", "id": "new"}}}}
    )
    submission = make_reddit(transport).subreddit("test").submit("Title", text="Body")

    assert isinstance(submission, LazySubmission)
    assert submission.id == "new"
    assert transport.posts == [
        (
            "/api/submit",
            {"api_type": "json", "sr": "test", "title": "Title", "kind": "self", "text": "Body"},
        )
    ]


def test_submit_requires_exactly_one_of_text_or_url() -> None:
    sub = make_reddit(RecordingTransport()).subreddit("test")

    with pytest.raises(ValueError):
        sub.submit("Title")
    with pytest.raises(ValueError):
        sub.submit("Title", text="a", url="https://example.com")


def test_submit_errors_raise_api_error() -> None:
    transport = RecordingTransport(
        posts={"/api/submit": {"json": {"errors": [["SUBREDDIT_NOEXIST", "that subreddit doesn't exist", "sr"]]}}}
    )

    with pytest.raises(APIError):
        make_reddit(transport).subreddit("nope").submit("Title", url="https://example.com")


def test_lazy_submission_get_and_comment_tree() -> None:
    transport = RecordingTransport(
        gets={
            "/by_id/t3_abc": listing(post_child("abc")),
            "/comments/abc": [
                listing(post_child("abc")),
                listing(comment_child("c1", replies=listing(comment_child("c2"))), comment_child("c3")),
            ],
        }
    )
    submission = make_reddit(transport).submission("t3_abc")

    post = submission.get()
    comments = list(submission.comments())

    assert isinstance(post, Post)
    assert post.name == "t3_abc"
    assert [c.id for c in comments] == ["c1", "c2", "c3"]
    assert transport.fetches[1] == ("/comments/abc", {"sort": "confidence"})


def test_reply_stream_polls_newest_comments() -> None:
    tree_v1 = [listing(post_child("abc")), listing(comment_child("c1"))]
    transport = RecordingTransport(gets={"/comments/abc": tree_v1})
    stream = make_reddit(transport, poll_limit=25).submission("abc").reply_stream(interval=0)

    assert stream.poll_once() == []
    transport._gets["/comments/abc"] = [listing(post_child("abc")), listing(comment_child("c2"), comment_child("c1"))]
    assert [c.id for c in stream.poll_once()] == ["c2"]
    assert transport.fetches[0] == ("/comments/abc", {"sort": "new", "limit": 25})


def test_thing_actions_post_to_api_endpoints() -> None:
    new_comment = comment_child("r1")
    transport = RecordingTransport(
        posts={"/api/comment": {"json": {"errors": [], "data": {"things": [new_comment]}}}}
    )
    thing = make_reddit(transport).thing("t3_abc")

    thing.upvote()
    thing.clear_vote()
    thing.remove(spam=True)
    thing.sticky(False)
    reply = thing.reply("nice")

    assert isinstance(reply, Comment)
    assert reply.id == "r1"
    assert transport.posts == [
        ("/api/vote", {"dir": 1, "id": "t3_abc"}),
        ("/api/vote", {"dir": 0, "id": "t3_abc"}),
        ("/api/remove", {"id": "t3_abc", "spam": "true"}),
        ("/api/set_subreddit_sticky", {"api_type": "json", "id": "t3_abc", "state": "false"}),
        ("/api/comment", {"api_type": "json", "text": "nice", "thing_id": "t3_abc"}),
    ]


def test_inbox_operations() -> None:
    transport = RecordingTransport(gets={"/message/unread": listing()})
    inbox = make_reddit(transport).inbox()

    assert list(inbox.unread()) == []
    inbox.mark_read("t4_a", "t1_b")
    inbox.mark_read()
    inbox.compose("someone", "hello", "text")

    assert transport.posts == [
        ("/api/read_message", {"id": "t4_a,t1_b"}),
        ("/api/compose", {"api_type": "json", "to": "someone", "subject": "hello", "text": "text"}),
    ]


def test_user_about() -> None:
    transport = RecordingTransport(
        gets={
            "/user/someone/about": {
                "kind": "t2",
                "data": {"id": "u1", "name": "someone", "created_utc": 1.0, "link_karma": 5},
            }
        }
    )

    about = make_reddit(transport).user("someone").about()

    assert about.name == "someone"
    assert about.link_karma == 5


def test_by_id_joins_fullnames() -> None:
    transport = RecordingTransport(gets={"/by_id/t3_a,t3_b": listing(post_child("a"), post_child("b"))})

    assert [p.id for p in make_reddit(transport).by_id("t3_a", "t3_b")] == ["a", "b"]

    with pytest.raises(ValueError):
        make_reddit(transport).by_id()


FLAIR_CHOICES = {
    "choices": [
        {"flair_template_id": "tpl1", "flair_text": "tutorial", "flair_css_class": "tut"},
        {"flair_template_id": "tpl2", "flair_text": "question"},
    ]
}


def test_moderation_report_handling() -> None:
    transport = RecordingTransport()
    thing = make_reddit(transport).thing("t3_abc")

    thing.ignore_reports()
    thing.unignore_reports()

    assert transport.posts == [
        ("/api/ignore_reports", {"id": "t3_abc"}),
        ("/api/unignore_reports", {"id": "t3_abc"}),
    ]


def test_post_flair_is_chosen_from_the_subreddit_templates() -> None:
    """
    Look the template up by its text, then select it; both calls go to
    the subreddit's flair endpoints and name the post with `link`.
    """
    transport = RecordingTransport(posts={"/r/test/api/flairselector": FLAIR_CHOICES})
    thing = make_reddit(transport).submission("abc").actions()

    flairs = thing.flair_options("test")
    template = flairs.find_text("tutorial")
    assert template == "tpl1"
    assert flairs.find_text("meme") is None

    thing.flair("test", template)

    assert transport.posts == [
        ("/r/test/api/flairselector", {"link": "t3_abc"}),
        ("/r/test/api/selectflair", {"api_type": "json", "link": "t3_abc", "flair_template_id": "tpl1"}),
    ]


def test_user_flair_uses_the_user_name() -> None:
    transport = RecordingTransport(posts={"/r/test/api/flairselector": FLAIR_CHOICES})
    user = make_reddit(transport).user("someone")

    flairs = user.flair_options("test")
    user.flair("test", flairs.find_text("question"))

    assert [c.flair_text for c in flairs.choices] == ["tutorial", "question"]
    assert transport.posts == [
        ("/r/test/api/flairselector", {"user": "someone"}),
        ("/r/test/api/selectflair", {"api_type": "json", "user": "someone", "flair_template_id": "tpl2"}),
    ]


def test_flair_selection_errors_raise_api_error() -> None:
    transport = RecordingTransport(
        posts={"/r/test/api/selectflair": {"json": {"errors": [["BAD_FLAIR_TEMPLATE_ID", "invalid", "flair_template_id"]]}}}
    )

    with pytest.raises(APIError):
        make_reddit(transport).user("someone").flair("test", "nope")
