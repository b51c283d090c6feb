from __future__ import annotations

import html
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from .content import is_content_file, load_document
from .render import render_markdown, summarize
from .tree import content_url
from .utils import join_url, rfc822_date

CATEGORY_SEPARATOR = "/"


@dataclass(frozen=True)
class FeedItem:
    title: str
    description: str
    url: str
    pub_date: str
    category: str


def walk_files(directory: Path) -> Iterator[Path]:
    with os.scandir(directory) as entries:
        ordered = sorted(entries, key=lambda entry: entry.name)
    for entry in ordered:
        if entry.name.startswith("."):
            continue
        if entry.is_dir(follow_symlinks=False):
            yield from walk_files(Path(entry.path))
        elif entry.is_file() and is_content_file(entry.name):
            yield Path(entry.path)


def feed_item(path: Path, content_dir: Path, base_url: str, ignored: Iterable[str] = ()) -> FeedItem:
    doc = load_document(path, content_dir, ignored)
    description = str(doc.meta.get("description") or "").strip()
    if not description:
        description = summarize(render_markdown(doc.text))
    category = CATEGORY_SEPARATOR.join(path.relative_to(content_dir).parent.parts)
    return FeedItem(
        title=doc.title,
        description=description,
        url=join_url(base_url, content_url(doc.rel_path)),
        pub_date=doc.date,
        category=category,
    )


def build_feed(content_dir: Path, base_url: str, ignored: Iterable[str] = ()) -> list[FeedItem]:
    return [feed_item(path, content_dir, base_url, ignored) for path in walk_files(content_dir)]


def render_rss(items: list[FeedItem], title: str, link: str, description: str) -> str:
    entries = []
    for item in items:
        lines = [
            "<item>",
            f"<title>{html.escape(item.title)}</title>",
            f"<link>{html.escape(item.url)}</link>",
            f'<guid isPermaLink="true">{html.escape(item.url)}</guid>',
        ]
        pub_date = rfc822_date(item.pub_date)
        if pub_date:
            lines.append(f"<pubDate>{pub_date}</pubDate>")
        lines.append(f"<description>{html.escape(item.description)}</description>")
        if item.category:
            lines.append(f"<category>{html.escape(item.category)}</category>")
        lines.append("</item>")
        entries.append("\n".join(lines))
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0">',
            "<channel>",
            f"<title>{html.escape(title)}</title>",
            f"<link>{html.escape(link)}</link>",
            f"<description>{html.escape(description)}</description>",
            *entries,
            "</channel>",
            "</rss>",
        ]
    )
