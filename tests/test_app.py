import dataclasses
import logging
import os

import pytest

from conftest import PNG_BYTES
from mdblog import app as app_module
from mdblog.app import create_app

AJAX = {"X-Requested-With": "XMLHttpRequest"}


def make_client(site_config, **changes):
    return create_app(dataclasses.replace(site_config, **changes)).test_client()


def test_index_redirects_to_first_file(client):
    response = client.get("/")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/content/a.md")


def test_index_renders_index_md_inline(client, content_dir):
    (content_dir / "index.md").write_text("Welcome home.\n", encoding="utf-8")
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Welcome home." in body
    assert 'class="folder-structure"' in body


def test_index_without_content_is_404(site_config, tmp_path):
    empty = tmp_path / "blank"
    empty.mkdir()
    response = make_client(site_config, content_dir=empty).get("/")
    assert response.status_code == 404


def test_content_full_page(client):
    response = client.get("/content/b.md")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "<html" in body
    assert "Test Blog" in body
    assert '<span class="meta-author author">Mike</span>' in body
    assert body.index("/content/b.md") < body.index("/content/a.md")


def test_content_ajax_returns_fragment(client):
    response = client.get("/content/a.md", headers=AJAX)
    assert response.status_code == 200
    assert response.mimetype == "text/html"
    body = response.get_data(as_text=True)
    assert body.startswith('<div class="metadata">')
    assert "<html" not in body
    assert "folder-structure" not in body
    assert "Plain post about apples." in body


def test_nested_content(client):
    response = client.get("/content/notes/c.txt", headers=AJAX)
    assert response.status_code == 200
    assert "<h1" in response.get_data(as_text=True)


def test_missing_content_is_404_page(client, caplog):
    caplog.set_level(logging.WARNING, logger="mdblog.app")
    response = client.get("/content/missing.md")
    assert response.status_code == 404
    body = response.get_data(as_text=True)
    assert "not found" in body.lower()
    assert "/content/b.md" in body
    (record,) = [r for r in caplog.records if r.name == "mdblog.app"]
    assert record.levelno == logging.WARNING
    assert "/content/missing.md" in record.getMessage()


def test_unsupported_extension_is_400(client):
    response = client.get("/content/report.pdf")
    assert response.status_code == 400
    assert "/content/b.md" in response.get_data(as_text=True)


def test_image_passthrough(client):
    response = client.get("/content/image.png")
    assert response.status_code == 200
    assert response.mimetype == "image/png"
    assert response.data == PNG_BYTES


def test_missing_image_is_404(client):
    assert client.get("/content/nope.png").status_code == 404


def test_directory_as_content_is_404(client, content_dir):
    (content_dir / "folder.md").mkdir()
    assert client.get("/content/folder.md").status_code == 404


def test_download(client):
    response = client.get("/download/notes/c.txt")
    assert response.status_code == 200
    assert "attachment" in response.headers["Content-Disposition"]
    assert "c.txt" in response.headers["Content-Disposition"]
    assert response.data == b"Some notes.\n"


def test_download_errors(client):
    assert client.get("/download/image.png").status_code == 400
    assert client.get("/download/missing.md").status_code == 404


def test_profile_pic(site_config, content_dir):
    client = make_client(site_config, image=str(content_dir / "image.png"))
    response = client.get("/profile-pic")
    assert response.status_code == 200
    assert response.mimetype == "image/png"
    assert response.data == PNG_BYTES


@pytest.mark.parametrize("image", ["", "b.md", "missing.png"])
def test_profile_pic_not_found(site_config, content_dir, image):
    client = make_client(site_config, image=str(content_dir / image) if image else "")
    assert client.get("/profile-pic").status_code == 404


def test_page_shows_profile_and_social_links(site_config, content_dir):
    from mdblog.config import SocialLink

    client = make_client(
        site_config,
        image=str(content_dir / "image.png"),
        social_links=(SocialLink("fa-github", "https://github.com/someone"),),
        source="https://example.com/repo",
    )
    body = client.get("/content/a.md").get_data(as_text=True)
    assert 'src="/profile-pic"' in body
    assert 'href="https://github.com/someone"' in body
    assert "fa-github" in body
    assert 'href="https://example.com/repo"' in body


def test_rss(client):
    response = client.get("/rss.xml")
    assert response.status_code == 200
    assert response.mimetype == "application/rss+xml"
    xml = response.get_data(as_text=True)
    assert "<title>Test Blog</title>" in xml
    assert "<link>https://blog.example.com/content/notes/c.txt</link>" in xml
    assert "<category>notes</category>" in xml


def test_rss_uses_request_host_without_site_url(site_config):
    client = make_client(site_config, site_url="")
    xml = client.get("/rss.xml").get_data(as_text=True)
    assert "<link>http://localhost/content/a.md</link>" in xml


def test_unmatched_route_is_404_page(client):
    response = client.get("/no/such/route")
    assert response.status_code == 404
    body = response.get_data(as_text=True)
    assert "not found" in body.lower()
    assert 'class="home-link"' in body


def test_internal_error_is_500_page(client, monkeypatch, caplog):
    caplog.set_level(logging.WARNING, logger="mdblog.app")
    def explode(doc):
        raise RuntimeError("renderer crashed")

    monkeypatch.setattr(app_module, "render_document", explode)
    response = client.get("/content/a.md")
    assert response.status_code == 500
    body = response.get_data(as_text=True)
    assert "Oops!" in body
    assert 'class="home-link"' in body
    (record,) = [r for r in caplog.records if r.name == "mdblog.app"]
    assert record.levelno == logging.ERROR
    assert "renderer crashed" in record.getMessage()
    assert record.exc_info is not None


def test_error_page_without_tree_when_root_missing(site_config, tmp_path):
    client = make_client(site_config, content_dir=tmp_path / "vanished")
    response = client.get("/content/a.md")
    assert response.status_code == 404
    body = response.get_data(as_text=True)
    assert '<nav class="folder-structure"></nav>' in body
    assert "not found" in body.lower()


def test_cached_tree_follows_changes(site_config, content_dir):
    client = make_client(site_config, cache_tree=True)
    assert "/content/new.md" not in client.get("/content/a.md").get_data(as_text=True)
    (content_dir / "new.md").write_text("fresh\n", encoding="utf-8")
    assert "/content/new.md" in client.get("/content/a.md").get_data(as_text=True)


def test_undecodable_file_does_not_break_pages(client, content_dir):
    (content_dir / "legacy.txt").write_bytes("caf\xe9 menu".encode("latin-1"))
    response = client.get("/content/a.md")
    assert response.status_code == 200
    assert "/content/legacy.txt" in response.get_data(as_text=True)
    legacy = client.get("/content/legacy.txt", headers=AJAX)
    assert legacy.status_code == 200
    assert "caf\ufffd menu" in legacy.get_data(as_text=True)
    assert client.get("/rss.xml").status_code == 200


def test_directory_link_loop_does_not_break_pages(client, content_dir):
    os.symlink(content_dir, content_dir / "notes" / "loop")
    response = client.get("/content/a.md")
    assert response.status_code == 200
    assert "/content/notes/loop" not in response.get_data(as_text=True)
    assert client.get("/rss.xml").status_code == 200
    assert client.get("/").status_code == 302


def test_rss_description_omits_injected_title(client):
    xml = client.get("/rss.xml").get_data(as_text=True)
    assert "<description>Plain post about apples.</description>" in xml


def test_page_shell_has_theme_and_sidebar_controls(client):
    body = client.get("/content/a.md").get_data(as_text=True)
    assert '<body class="dark-theme">' in body
    assert 'id="themeToggleIcon"' in body
    assert 'aria-label="Toggle theme"' in body
    assert 'title="Toggle Theme"' in body
    assert 'id="collapseSidebar"' in body
    assert 'aria-label="Collapse sidebar"' in body
    assert body.index('class="container"') < body.index('class="sidebar"') < body.index('class="main"')
    assert body.index('class="main"') < body.index('id="file-content"')
    assert 'id="highlightjs-dark"' in body
    light = body[body.index('id="highlightjs-light"'):]
    assert light[: light.index(">")].endswith("disabled")
    assert 'rel="icon"' in body


@pytest.mark.parametrize("theme", ["dark", "light"])
def test_theme_stylesheets(client, theme):
    response = client.get(f"/highlight/{theme}.css")
    assert response.status_code == 200
    assert response.mimetype == "text/css"
    assert ".highlight" in response.get_data(as_text=True)


def test_theme_stylesheets_differ(client):
    assert client.get("/highlight/dark.css").data != client.get("/highlight/light.css").data


def test_unknown_theme_stylesheet_is_404(client):
    assert client.get("/highlight/neon.css").status_code == 404


def test_favicon(client):
    response = client.get("/favicon.ico")
    assert response.status_code == 301
    assert response.headers["Location"].endswith("/static/favicon.svg")
    icon = client.get("/static/favicon.svg")
    assert icon.status_code == 200
    assert b"<svg" in icon.data
    icon.close()
