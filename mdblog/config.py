from __future__ import annotations

import json
import logging
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_NAME = "Mike Wazowski"
DEFAULT_CONTENT_DIR = "contents"


@dataclass(frozen=True)
class SocialLink:
    icon: str
    href: str


@dataclass(frozen=True)
class SiteConfig:
    """Process-wide settings, built once at startup and never mutated."""

    content_dir: Path
    name: str = DEFAULT_NAME
    image: str = ""
    social_links: tuple[SocialLink, ...] = ()
    source: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    ignored_files: frozenset[str] = field(default_factory=frozenset)
    site_url: str = ""
    description: str = ""
    cache_tree: bool = False


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be an object: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def parse_social_links(values: Iterable[object]) -> tuple[SocialLink, ...]:
    """Parse ``icon:url`` tokens, skipping malformed ones."""
    links = []
    for value in values:
        token = str(value).strip()
        icon, sep, href = token.partition(":")
        if not sep or not icon or not href:
            logger.error("Invalid format for --social: %s", token)
            continue
        links.append(SocialLink(icon=icon, href=href))
    return tuple(links)


def normalize_ignored(values: Optional[Iterable[object]]) -> frozenset[str]:
    if not values:
        return frozenset()
    return frozenset(Path(str(value)).stem.lower() for value in values if str(value).strip())
