"""Tests for pageforge.config: site conventions and the variable tree."""

import json

import pytest

from pageforge.config import ConfigTree, SiteConfig, load_site_config


class TestLoadSiteConfig:
    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PROD_URL", raising=False)
        monkeypatch.delenv("PAGEFORGE_PORT", raising=False)
        site = load_site_config(tmp_path)
        assert site.root == tmp_path.resolve()
        assert site.pages_dir == "src/app"
        assert site.home_page == "home"
        assert site.root_route == "index"
        assert site.base_url == ""
        assert site.dev_port == 3000

    def test_yaml_overrides(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PROD_URL", raising=False)
        (tmp_path / "pageforge.yaml").write_text(
            "pages_dir: site/pages\n"
            "out_dir: build\n"
            "static_dirs: [assets, media]\n"
        )
        site = load_site_config(tmp_path)
        assert site.pages_dir == "site/pages"
        assert site.out_dir == "build"
        assert site.static_dirs == ("assets", "media")

    def test_explicit_path(self, tmp_path):
        cfg = tmp_path / "custom.yaml"
        cfg.write_text("component_namespace: shared\n")
        site = load_site_config(tmp_path, cfg)
        assert site.component_namespace == "shared"

    def test_unknown_key_raises(self, tmp_path):
        (tmp_path / "pageforge.yaml").write_text("pagez_dir: typo\n")
        with pytest.raises(ValueError, match="Unknown keys"):
            load_site_config(tmp_path)

    def test_non_mapping_raises(self, tmp_path):
        (tmp_path / "pageforge.yaml").write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_site_config(tmp_path)

    def test_empty_file_uses_defaults(self, tmp_path):
        (tmp_path / "pageforge.yaml").write_text("")
        assert load_site_config(tmp_path).pages_dir == "src/app"

    def test_prod_url_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PROD_URL", "https://cdn.example.com/")
        site = load_site_config(tmp_path)
        assert site.base_url == "https://cdn.example.com/"

    def test_port_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PAGEFORGE_PORT", "4000")
        assert load_site_config(tmp_path).dev_port == 4000


class TestSiteConfig:
    def test_paths(self, tmp_path):
        site = SiteConfig(root=tmp_path)
        assert site.pages_root == tmp_path / "src/app"
        assert site.layout_file == tmp_path / "src/app/layout.html"
        assert site.tmp_root == tmp_path / "pages"
        assert site.bundled_pages_root == tmp_path / "dist" / "pages"
        assert site.global_style_file == "global-style.css"

    def test_component_url(self, tmp_path):
        site = SiteConfig(root=tmp_path)
        assert site.component_url("common/navbar", "style.scss") == "/src/common/navbar/style.scss"

    def test_with_overrides_skips_none(self, tmp_path):
        site = SiteConfig(root=tmp_path, base_url="https://a")
        same = site.with_overrides(base_url=None, out_dir="out")
        assert same.base_url == "https://a"
        assert same.out_dir == "out"


class TestConfigTree:
    def test_lookup(self):
        tree = ConfigTree({"SITE": {"title": "Acme"}})
        assert tree.lookup("SITE.title") == (True, "Acme")
        assert tree.lookup("SITE.nope") == (False, None)

    def test_read_only(self):
        tree = ConfigTree({"SITE": {"title": "Acme"}})
        with pytest.raises(TypeError):
            tree["SITE"] = {}
        tree["SITE"]["title"] = "changed"
        assert tree.lookup("SITE.title") == (True, "Acme")

    def test_source_mutation_does_not_leak(self):
        data = {"SITE": {"title": "Acme"}}
        tree = ConfigTree(data)
        data["SITE"]["title"] = "changed"
        assert tree.lookup("SITE.title") == (True, "Acme")

    def test_from_file(self, tmp_path):
        path = tmp_path / "vars.json"
        path.write_text(json.dumps({"SITE": {"title": "Acme"}}))
        tree = ConfigTree.from_file(path)
        assert len(tree) == 1
        assert "SITE" in tree

    def test_from_missing_file_is_empty(self, tmp_path):
        assert len(ConfigTree.from_file(tmp_path / "nope.json")) == 0

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "vars.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid JSON"):
            ConfigTree.from_file(path)

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "vars.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            ConfigTree.from_file(path)
