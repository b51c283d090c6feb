from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .app import create_app
from .config import (
    DEFAULT_CONTENT_DIR,
    DEFAULT_HOST,
    DEFAULT_NAME,
    DEFAULT_PORT,
    SiteConfig,
    load_config,
    normalize_ignored,
    parse_social_links,
)
from .utils import parse_bool, parse_int

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def as_list(value: object) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return str(value).split()


def build_parser(config: dict, config_path: str) -> argparse.ArgumentParser:
    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        return str(cfg_value(key, default))

    parser = argparse.ArgumentParser(description="Serve a directory of Markdown files as a blog.")
    parser.add_argument("--config", default=config_path, help="Path to config file (TOML/YAML/JSON).")
    parser.add_argument(
        "-d",
        "--datadir",
        default=cfg_str("datadir", DEFAULT_CONTENT_DIR),
        help="Directory containing the Markdown contents.",
    )
    parser.add_argument("-a", "--address", default=cfg_str("address", DEFAULT_HOST), help="Host address to bind.")
    parser.add_argument(
        "-p",
        "--port",
        default=parse_int(config.get("port"), DEFAULT_PORT),
        type=int,
        help="Port number to listen on.",
    )
    parser.add_argument(
        "-n",
        "--name",
        nargs="+",
        default=as_list(cfg_value("name", DEFAULT_NAME)),
        help="Name displayed on the blog (may be several words).",
    )
    parser.add_argument("--image", default=cfg_str("image", ""), help="Path to the profile picture.")
    parser.add_argument(
        "--social",
        nargs="+",
        action="extend",
        default=None,
        metavar="ICON:URL",
        help="Social links, e.g. --social fa-github:https://github.com/username",
    )
    parser.add_argument("--source", default=cfg_str("source", ""), help="Link to the source repository.")
    parser.add_argument(
        "--site-url",
        default=cfg_str("site_url", ""),
        help="Public base URL used for feed links (defaults to the request host).",
    )
    parser.add_argument(
        "--description",
        default=cfg_str("description", ""),
        help="Feed channel description.",
    )
    parser.add_argument(
        "--ignore",
        nargs="+",
        action="extend",
        default=None,
        metavar="NAME",
        help="File names (case-insensitive, extension optional) hidden from navigation and auto-titling.",
    )
    parser.add_argument(
        "--cache-tree",
        action=argparse.BooleanOptionalAction,
        default=parse_bool(config.get("cache_tree")),
        help="Reuse the navigation tree until the content directory changes.",
    )
    parser.add_argument(
        "--log-level",
        default=cfg_str("log_level", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging verbosity.",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default="mdblog.toml")
    pre_args, _ = pre_parser.parse_known_args(argv)
    config = load_config(Path(pre_args.config))
    args = build_parser(config, pre_args.config).parse_args(argv)
    if args.social is None:
        args.social = as_list(config.get("social"))
    if args.ignore is None:
        args.ignore = as_list(config.get("ignore"))
    return args


def site_config(args: argparse.Namespace) -> SiteConfig:
    return SiteConfig(
        content_dir=Path(args.datadir).expanduser().resolve(),
        name=" ".join(args.name) or DEFAULT_NAME,
        image=args.image,
        social_links=parse_social_links(args.social),
        source=args.source,
        host=args.address,
        port=args.port,
        ignored_files=normalize_ignored(args.ignore),
        site_url=args.site_url,
        description=args.description,
        cache_tree=args.cache_tree,
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)
    config = site_config(args)
    if not config.content_dir.is_dir():
        print(f"Content directory not found: {config.content_dir}", file=sys.stderr)
        sys.exit(1)
    app = create_app(config)
    logging.getLogger(__name__).info("Running on http://%s:%s", config.host, config.port)
    app.run(host=config.host, port=config.port, threaded=True)
