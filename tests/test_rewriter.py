"""Tests for pageforge.build.rewriter — base URL rewrite and cleanup."""

from unittest.mock import patch

import pytest
from conftest import write

from pageforge.build.rewriter import (
    cleanup_artifacts,
    empty_out_dir,
    ensure_global_stylesheet,
    normalize_base,
    rewrite_asset_urls,
    rewrite_build_output,
)
from pageforge.models import BuildArtifactSet

STATIC = ("assets", "imgs", "fonts")


class TestRewriteAssetUrls:
    def test_dot_slash_to_base(self):
        html = '<script src="./assets/app.js"></script>'
        out = rewrite_asset_urls(html, "https://cdn.example.com", STATIC)
        assert out == '<script src="https://cdn.example.com/assets/app.js"></script>'

    def test_bare_dir_to_base(self):
        html = "<img src='imgs/logo.png'>"
        out = rewrite_asset_urls(html, "https://cdn.example.com", STATIC)
        assert out == "<img src='https://cdn.example.com/imgs/logo.png'>"

    def test_trailing_slash_stripped(self):
        out = rewrite_asset_urls('<link href="./fonts/a.woff2">', "https://cdn.example.com/", STATIC)
        assert 'href="https://cdn.example.com/fonts/a.woff2"' in out

    def test_spaces_around_equals(self):
        out = rewrite_asset_urls('<img src = "./imgs/a.png">', "https://x", STATIC)
        assert out == '<img src="https://x/imgs/a.png">'

    def test_no_base_leaves_relative(self):
        html = '<script src="./assets/app.js"></script>'
        assert rewrite_asset_urls(html, "", STATIC) == html

    def test_other_dirs_untouched(self):
        html = '<a href="./docs/x.html"></a><img src="/imgs/a.png">'
        assert rewrite_asset_urls(html, "https://x", STATIC) == html


class TestEnsureGlobalStylesheet:
    def test_appended_when_missing(self, site):
        out = ensure_global_stylesheet("<head></head>", "https://x/", site)
        assert '<link rel="stylesheet" crossorigin href="https://x/assets/global-style.css">' in out

    def test_relative_without_base(self, site):
        out = ensure_global_stylesheet("<head></head>", "", site)
        assert 'href="./assets/global-style.css"' in out

    def test_not_duplicated(self, site):
        html = '<head><link href="./assets/global-style.css"></head>'
        assert ensure_global_stylesheet(html, "https://x", site) == html


def test_normalize_base():
    assert normalize_base("https://x/") == "https://x"
    assert normalize_base("") == ""


class TestRewriteBuildOutput:
    def test_moves_pages_to_top_level(self, site):
        write(site.bundled_pages_root / "index.html", '<head></head><script src="./assets/app.js">')
        written = rewrite_build_output(site, "https://cdn.example.com")
        assert written == [site.out_root / "index.html"]
        html = written[0].read_text()
        assert "https://cdn.example.com/assets/app.js" in html
        assert "https://cdn.example.com/assets/global-style.css" in html

    def test_without_base(self, site):
        write(site.bundled_pages_root / "about.html", '<head></head><script src="./assets/app.js">')
        (out,) = rewrite_build_output(site, "")
        assert 'src="./assets/app.js"' in out.read_text()

    def test_uses_site_base_by_default(self, site):
        site = site.with_overrides(base_url="https://site.example")
        write(site.bundled_pages_root / "index.html", '<img src="./imgs/a.png">')
        (out,) = rewrite_build_output(site)
        assert "https://site.example/imgs/a.png" in out.read_text()

    def test_no_bundled_pages(self, site):
        assert rewrite_build_output(site, "") == []


class TestCleanupArtifacts:
    def test_removes_tmp_roots(self, site):
        write(site.tmp_root / "index.html", "x")
        write(site.bundled_pages_root / "index.html", "x")
        extra = site.root / "extra-tmp"
        write(extra / "a.html", "x")
        cleanup_artifacts(site, BuildArtifactSet(tmp_roots=[extra]))
        assert not site.tmp_root.exists()
        assert not site.bundled_pages_root.exists()
        assert not extra.exists()

    def test_nothing_to_remove(self, site):
        cleanup_artifacts(site)

    def test_errors_swallowed(self, site):
        write(site.tmp_root / "index.html", "x")
        with patch("pageforge.build.rewriter.shutil.rmtree", side_effect=OSError("busy")):
            cleanup_artifacts(site)
        assert site.tmp_root.exists()


class TestEmptyOutDir:
    def test_removes_previous_build(self, site):
        write(site.out_root / "stale.html", "old")
        write(site.out_root / "assets/main-deadbeef.js", "old")
        empty_out_dir(site)
        assert not site.out_root.exists()

    def test_missing_out_dir(self, site):
        empty_out_dir(site)
        assert not site.out_root.exists()

    def test_refuses_project_root(self, site):
        site = site.with_overrides(out_dir=".")
        with pytest.raises(ValueError, match="contains the project"):
            empty_out_dir(site)
        assert site.layout_file.exists()
