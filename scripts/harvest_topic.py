#!/usr/bin/env python3
"""
Harvest a topic and print the filtered view.

Examples:
    python scripts/harvest_topic.py https://forum.example.com/topic/123-name/page/4/ --author id:42
    python scripts/harvest_topic.py https://forum.example.com/topic/123-name/ --keywords "urgent, fix"
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import httpx

from topic_harvest.config import get_config, load_config_from_yaml
from topic_harvest.core import (
    HarvestSession,
    NavigationContext,
    ViewStatus,
    create_extractor,
)
from topic_harvest.logger import setup_logger


def fetch_landing_page(url: str) -> str:
    """Fetch the page the harvest starts from."""
    config = get_config().fetcher
    with httpx.Client(
        timeout=config.timeout_seconds,
        headers={"User-Agent": config.user_agent},
        follow_redirects=config.follow_redirects,
    ) as client:
        response = client.get(url)
        response.raise_for_status()
        return response.text


def main() -> int:
    """Run a one-off harvest."""
    import argparse

    parser = argparse.ArgumentParser(description="Harvest a topic and filter its items")
    parser.add_argument("url", help="Address of any page of the topic")
    parser.add_argument("--author", help="Author key to keep (e.g. id:42 or name:alice)")
    parser.add_argument("--keywords", help="Comma-separated keywords to match")
    parser.add_argument("--page", type=int, default=1, help="View page to print")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds to wait for the harvest")
    args = parser.parse_args()

    if args.config:
        load_config_from_yaml(args.config)

    setup_logger()

    try:
        content = fetch_landing_page(args.url)
    except httpx.HTTPError as e:
        print(f"Could not fetch {args.url}: {e}", file=sys.stderr)
        return 1

    session = HarvestSession(
        NavigationContext(url=args.url, content=content),
        create_extractor(),
        mode="corpus",
    )

    try:
        if args.author:
            session.select_author(args.author)
        if args.keywords:
            session.apply_keywords(args.keywords)
        if not args.author and not args.keywords:
            if session.harvest_corpus() is None:
                print("Could not determine the pages of this topic.", file=sys.stderr)
                return 1

        if not session.wait(args.timeout):
            print("Harvest did not finish in time; showing partial results.", file=sys.stderr)

        if not args.author and not args.keywords:
            authors = session.corpus.authors()
            print(f"{len(session.corpus)} items by {len(authors)} authors")
            for key, name in sorted(authors.items(), key=lambda entry: entry[1].lower()):
                count = len(session.corpus.items(author_key=key))
                print(f"  {key:<24} {name} ({count})")
            return 0

        view = session.goto_page(args.page) or session.refresh()
        print(view.message)
        if view.status == ViewStatus.ERROR:
            return 1
        for item in view.page_items:
            print(f"[page {item.page_number}] {item.author_name}: {item.searchable_text[:120]}")
        return 0
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
