from __future__ import annotations

import logging
import mimetypes
import os
from pathlib import Path
from typing import Optional

from flask import Flask, Response, redirect, render_template, request, send_file, url_for
from werkzeug.exceptions import HTTPException
from werkzeug.security import safe_join

from .cache import TreeCache
from .config import SiteConfig
from .content import is_content_file, load_document
from .errors import GENERIC_MESSAGE, NotFound, SiteError, ValidationFailure
from .feed import build_feed, render_rss
from .render import HIGHLIGHT_STYLES, highlight_css, render_document, render_markdown
from .tree import content_url, folder_structure

logger = logging.getLogger(__name__)

INDEX_FILE = "index.md"
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico"}
MISSING_ERRORS = (FileNotFoundError, NotADirectoryError, IsADirectoryError)


def is_ajax() -> bool:
    return request.headers.get("X-Requested-With", "").lower() == "xmlhttprequest"


def error_status(err: Exception) -> tuple[int, str]:
    if isinstance(err, SiteError):
        return err.status, err.message_md
    if isinstance(err, MISSING_ERRORS):
        return NotFound.status, NotFound.message_md
    if isinstance(err, HTTPException):
        code = err.code or 500
        if code == NotFound.status:
            return code, NotFound.message_md
        if code == ValidationFailure.status:
            return code, ValidationFailure.message_md
        return code, GENERIC_MESSAGE
    return 500, GENERIC_MESSAGE


def first_content_file(directory: Path, ignored: frozenset[str]) -> Optional[str]:
    with os.scandir(directory) as entries:
        names = sorted(
            entry.name
            for entry in entries
            if entry.is_file()
            and not entry.name.startswith(".")
            and is_content_file(entry.name)
            and Path(entry.name).stem.lower() not in ignored
        )
    return names[0] if names else None


def create_app(config: SiteConfig) -> Flask:
    app = Flask(__name__)
    app.config["SITE"] = config
    tree_cache = TreeCache() if config.cache_tree else None

    def navigation() -> str:
        def build() -> str:
            return folder_structure(config.content_dir, config.ignored_files)

        if tree_cache is None:
            return build()
        return tree_cache.get(config.content_dir, build)

    def render_page(content: str, folder_html: str, status: int = 200):
        page = render_template(
            "index.html",
            site=config,
            folder_structure=folder_html,
            initial_content=content,
        )
        return page, status

    def resolve(subpath: str) -> Path:
        joined = safe_join(str(config.content_dir), subpath)
        if joined is None:
            raise NotFound(f"Path escapes the content directory: {subpath}")
        return Path(joined)

    def show(path: Path):
        doc = load_document(path, config.content_dir, config.ignored_files)
        fragment = render_document(doc)
        if is_ajax():
            return Response(fragment, mimetype="text/html")
        return render_page(fragment, navigation())

    @app.before_request
    def log_request() -> None:
        logger.debug("Incoming request: %s %s", request.method, request.full_path)

    @app.route("/")
    def index():
        index_path = config.content_dir / INDEX_FILE
        if index_path.is_file():
            return show(index_path)
        first = first_content_file(config.content_dir, config.ignored_files)
        if first is None:
            raise NotFound(f"No content files in {config.content_dir}")
        return redirect(content_url(first))

    @app.route("/content/<path:subpath>")
    def content(subpath: str):
        suffix = Path(subpath).suffix.lower()
        path = resolve(subpath)
        if suffix in IMAGE_EXTENSIONS:
            if not path.is_file():
                raise NotFound(f"Image not found: {subpath}")
            mimetype, _ = mimetypes.guess_type(path.name)
            return send_file(path, mimetype=mimetype)
        if not is_content_file(subpath):
            raise ValidationFailure(f"Unsupported file extension for: {subpath}")
        return show(path)

    @app.route("/download/<path:subpath>")
    def download(subpath: str):
        if not is_content_file(subpath):
            raise ValidationFailure(f"Unsupported file extension for download: {subpath}")
        path = resolve(subpath)
        if not path.is_file():
            raise NotFound(f"Download not found: {subpath}")
        return send_file(path, as_attachment=True, download_name=path.name)

    @app.route("/profile-pic")
    def profile_pic():
        if not config.image:
            raise NotFound("Profile picture not specified")
        mimetype, _ = mimetypes.guess_type(config.image)
        if not mimetype or not mimetype.startswith("image/"):
            raise NotFound(f"Profile picture is not an image: {config.image}")
        try:
            data = Path(config.image).read_bytes()
        except OSError as exc:
            raise NotFound(f"Profile picture unreadable: {config.image}") from exc
        return Response(data, mimetype=mimetype)

    @app.route("/highlight/<theme>.css")
    def theme_stylesheet(theme: str):
        if theme not in HIGHLIGHT_STYLES:
            raise NotFound(f"Unknown highlight theme: {theme}")
        return Response(highlight_css(theme), mimetype="text/css")

    @app.route("/favicon.ico")
    def favicon():
        return redirect(url_for("static", filename="favicon.svg"), code=301)

    @app.route("/rss.xml")
    def rss():
        base_url = (config.site_url or request.host_url).rstrip("/")
        items = build_feed(config.content_dir, base_url, config.ignored_files)
        xml = render_rss(
            items,
            title=config.name,
            link=f"{base_url}/",
            description=config.description or config.name,
        )
        return Response(xml, mimetype="application/rss+xml")

    @app.errorhandler(Exception)
    def handle_error(err: Exception):
        status, message = error_status(err)
        if status >= 500:
            logger.error("Error handling %s: %s", request.path, err, exc_info=err)
        else:
            logger.warning("%s on %s: %s", status, request.path, err)
        try:
            folder_html = navigation()
        except Exception:
            logger.exception("Navigation tree unavailable while rendering error page")
            folder_html = ""
        return render_page(render_markdown(message), folder_html, status)

    return app
