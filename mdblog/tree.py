from __future__ import annotations

import html
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import quote

from .content import (
    humanize,
    is_content_file,
    parse_front_matter,
    read_content,
    relative_path,
    resolve_metadata,
)

DIRECTORY = "directory"
FILE = "file"


@dataclass(frozen=True)
class TreeNode:
    name: str
    rel_path: str
    kind: str
    date: Optional[str] = None
    children: tuple[TreeNode, ...] = ()

    @property
    def is_directory(self) -> bool:
        return self.kind == DIRECTORY


def content_url(rel_path: str) -> str:
    return "/content/" + quote(rel_path)


def entry_date(path: Path) -> str:
    meta, _ = parse_front_matter(read_content(path))
    return resolve_metadata(meta, path)["date"]


def sort_nodes(nodes: list[TreeNode]) -> list[TreeNode]:
    """Dated files newest first, then undated files, then directories."""
    files = [node for node in nodes if not node.is_directory]
    directories = [node for node in nodes if node.is_directory]
    dated = sorted((node for node in files if node.date), key=lambda n: n.name.casefold())
    dated.sort(key=lambda n: n.date, reverse=True)
    undated = sorted((node for node in files if not node.date), key=lambda n: n.name.casefold())
    directories.sort(key=lambda n: n.name.casefold())
    return dated + undated + directories


def build_tree(directory: Path, content_dir: Path, ignored: Iterable[str] = ()) -> list[TreeNode]:
    ignored = set(ignored)
    nodes = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.name.startswith("."):
                continue
            if Path(entry.name).stem.lower() in ignored:
                continue
            path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                children = build_tree(path, content_dir, ignored)
                if not children:
                    continue
                nodes.append(
                    TreeNode(
                        name=entry.name,
                        rel_path=relative_path(path, content_dir),
                        kind=DIRECTORY,
                        children=tuple(children),
                    )
                )
            elif entry.is_file() and is_content_file(entry.name):
                nodes.append(
                    TreeNode(
                        name=entry.name,
                        rel_path=relative_path(path, content_dir),
                        kind=FILE,
                        date=entry_date(path),
                    )
                )
    return sort_nodes(nodes)


def render_nodes(nodes: Iterable[TreeNode], head: str = "") -> str:
    parts = ["<ul>", head]
    for node in nodes:
        label = html.escape(humanize(node.name))
        if node.is_directory:
            parts.append(
                f'<li class="folder open"><span><i class="fas fa-folder-open"></i> {label}</span>'
                f"{render_nodes(node.children)}</li>"
            )
        else:
            date = f' <span class="file-date">{html.escape(node.date)}</span>' if node.date else ""
            parts.append(f'<li><a href="{html.escape(content_url(node.rel_path))}">{label}</a>{date}</li>')
    parts.append("</ul>")
    return "".join(parts)


def render_tree(nodes: Iterable[TreeNode]) -> str:
    return render_nodes(nodes, head='<li><a href="/" class="home-link">Home</a></li>')


def folder_structure(content_dir: Path, ignored: Iterable[str] = ()) -> str:
    return render_tree(build_tree(content_dir, content_dir, ignored))
