from __future__ import annotations

"""
CLI entrypoint for following a subreddit.

Usage (from repo root):

    python -m redditstream.run_stream python
    python -m redditstream.run_stream python --comments --interval 10

This will:
- Authenticate from REDDIT_* env vars if present (anonymous otherwise)
- Poll r/<subreddit>/new (or /comments) every --interval seconds
- Print each post/comment the first time it shows up
- Stop on Ctrl-C
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import get_config
from .models import Comment, Item, Post
from .reddit import Reddit
from .stream import PollFailed


def _format(item: Item) -> str:
    if isinstance(item, Post):
        return f"[post] r/{item.subreddit} u/{item.author}: {item.title}"
    if isinstance(item, Comment):
        body = item.body.replace("\n", " ")
        if len(body) > 120:
            body = body[:117] + "..."
        return f"[comment] r/{item.subreddit} u/{item.author}: {body}"
    return f"[message] {item.author}: {item.subject}"


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print new posts or comments of a subreddit as they appear.")
    parser.add_argument("subreddit", help="subreddit name without 'r/'")
    parser.add_argument("--comments", action="store_true", help="follow comments instead of posts")
    parser.add_argument("--interval", type=float, default=None, help="seconds between polls")
    parser.add_argument("--limit", type=int, default=None, help="stop after this many items")
    parser.add_argument(
        "--include-existing",
        action="store_true",
        help="also print items already present on the first poll",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def _report_failure(event: PollFailed) -> None:
    print(f"[stream] poll {event.tick} failed: {event.error}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = get_config()
    reddit = Reddit.from_env(config=cfg)
    sub = reddit.subreddit(args.subreddit)

    options = {
        "interval": args.interval,
        "skip_existing": not args.include_existing,
        "on_error": _report_failure,
    }
    stream = sub.stream_comments(**options) if args.comments else sub.stream_submissions(**options)

    kind = "comments" if args.comments else "posts"
    print(f"[stream] Following new {kind} in r/{args.subreddit} (Ctrl-C to stop)...", flush=True)

    count = 0
    try:
        for item in stream:
            print(_format(item), flush=True)
            count += 1
            if args.limit is not None and count >= args.limit:
                stream.cancel()
    except KeyboardInterrupt:
        stream.cancel()

    print(f"[stream] Stopped after {stream.polls} polls, {count} items.")


if __name__ == "__main__":
    main()
