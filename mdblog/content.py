from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import yaml

from .utils import format_date, timestamp_date

logger = logging.getLogger(__name__)

CONTENT_EXTENSIONS = {".md", ".txt"}
FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(?P<header>.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
FENCE_RE = re.compile(r"^[ \t]{0,3}(`{3,}|~{3,})")
ATX_RE = re.compile(r"^[ \t]{0,3}(?P<level>#{1,6})(?:[ \t]+|$)")
SETEXT_H1_RE = re.compile(r"^[ \t]{0,3}=+[ \t]*$")
SETEXT_H2_RE = re.compile(r"^[ \t]{0,3}-+[ \t]*$")
SEPARATOR_RE = re.compile(r"[-_]+")


@dataclass
class Document:
    path: Path
    rel_path: str
    meta: dict = field(default_factory=dict)
    body: str = ""
    text: str = ""
    title: str = ""
    date: str = ""


def is_content_file(name: str) -> bool:
    return Path(name).suffix.lower() in CONTENT_EXTENSIONS


def humanize(name: str) -> str:
    stem = Path(name).stem if is_content_file(name) else name
    words = SEPARATOR_RE.sub(" ", stem).split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def parse_front_matter(text: str) -> tuple[dict, str]:
    clean_text = text.lstrip("\ufeff")
    match = FRONT_MATTER_RE.match(clean_text)
    if not match:
        return {}, clean_text
    body = clean_text[match.end() :]
    try:
        meta = yaml.safe_load(match.group("header"))
    except yaml.YAMLError as exc:
        logger.warning("Ignoring malformed front matter: %s", exc)
        return {}, body
    if meta is None:
        return {}, body
    if not isinstance(meta, dict):
        logger.warning("Ignoring front matter that is not a mapping (%s)", type(meta).__name__)
        return {}, body
    meta = {str(key).strip().lower(): value for key, value in meta.items()}
    if "date" in meta:
        meta["date"] = format_date(meta["date"])
    return meta, body


def has_title_heading(body: str) -> bool:
    """True when a level-1 heading appears before the first level-2 heading."""
    in_fence = False
    fence_marker = ""
    previous = ""
    for line in body.splitlines():
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if not in_fence:
                in_fence = True
                fence_marker = marker[0] * 3
            elif marker.startswith(fence_marker):
                in_fence = False
            previous = ""
            continue
        if in_fence:
            continue
        atx = ATX_RE.match(line)
        if atx:
            level = len(atx.group("level"))
            if level == 1:
                return True
            if level == 2:
                return False
        elif previous.strip():
            if SETEXT_H1_RE.match(line):
                return True
            if SETEXT_H2_RE.match(line) and not ATX_RE.match(previous):
                return False
        previous = line
    return False


def needs_title(body: str, name: str, ignored: Iterable[str] = ()) -> bool:
    if Path(name).stem.lower() in ignored:
        return False
    return not has_title_heading(body)


def file_date(path: Path) -> str:
    return timestamp_date(path.stat().st_mtime)


def resolve_metadata(meta: dict, path: Path) -> dict:
    resolved = dict(meta)
    if not resolved.get("date"):
        resolved["date"] = file_date(path)
    return resolved


def read_content(path: Path) -> str:
    """Read a content file, replacing undecodable bytes with U+FFFD."""
    return path.read_text(encoding="utf-8", errors="replace")


def relative_path(path: Path, content_dir: Path) -> str:
    return path.relative_to(content_dir).as_posix()


def load_document(path: Path, content_dir: Path, ignored: Iterable[str] = ()) -> Document:
    meta, text = parse_front_matter(read_content(path))
    meta = resolve_metadata(meta, path)
    title = str(meta.get("title") or "").strip() or humanize(path.name)
    body = text
    if needs_title(text, path.name, ignored):
        body = f"# {humanize(path.name)}\n\n{text}"
    return Document(
        path=path,
        rel_path=relative_path(path, content_dir),
        meta=meta,
        body=body,
        text=text,
        title=title,
        date=meta["date"],
    )
