"""Shared fixtures: a small content tree on disk and a Flask test client"""

import datetime as dt
import os
from pathlib import Path

import pytest

from mdblog.app import create_app
from mdblog.config import SiteConfig

# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d49484452000000010000000108060000001f15c489"
    "0000000d49444154789c6360000002000001e221bc330000000049454e44ae426082"
)


def set_mtime(path: Path, year: int, month: int, day: int) -> None:
    ts = dt.datetime(year, month, day, 12, tzinfo=dt.timezone.utc).timestamp()
    os.utime(path, (ts, ts))


@pytest.fixture
def content_dir(tmp_path):
    """a.md (mtime 2024-01-01), b.md (front matter date), notes/c.txt and some noise."""
    root = tmp_path / "contents"
    root.mkdir()

    a = root / "a.md"
    a.write_text("Plain post about apples.\n", encoding="utf-8")
    set_mtime(a, 2024, 1, 1)

    b = root / "b.md"
    b.write_text(
        "---\ntitle: Bananas\nauthor: Mike\ndate: 2024-03-01\ndescription: All about bananas\n---\n"
        "# Bananas\n\nYellow fruit.\n",
        encoding="utf-8",
    )
    set_mtime(b, 2023, 6, 1)

    notes = root / "notes"
    notes.mkdir()
    c = notes / "c.txt"
    c.write_text("Some notes.\n", encoding="utf-8")
    set_mtime(c, 2024, 2, 1)

    (root / "empty").mkdir()
    (root / "pdfs").mkdir()
    (root / "pdfs" / "paper.pdf").write_bytes(b"%PDF-1.4")
    (root / ".hidden.md").write_text("secret\n", encoding="utf-8")
    (root / "image.png").write_bytes(PNG_BYTES)
    (root / "report.pdf").write_bytes(b"%PDF-1.4")
    return root


@pytest.fixture
def site_config(content_dir):
    return SiteConfig(content_dir=content_dir, name="Test Blog", site_url="https://blog.example.com")


@pytest.fixture
def client(site_config):
    return create_app(site_config).test_client()
