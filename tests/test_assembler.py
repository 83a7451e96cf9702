"""Tests for pageforge.assembler: the full page pipeline."""

import pytest
from conftest import write

from pageforge.assembler import assemble_page, assemble_page_file
from pageforge.layout import LayoutNotFoundError
from pageforge.registry import make_page


class TestAssemblePage:
    def test_home_page(self, site, tree):
        page = make_page("home", site)
        html = assemble_page_file(page, site, tree)
        assert "<title>Acme</title>" in html
        assert "<h1>Acme</h1>" in html
        assert html.count("<a>Acme</a>") == 2
        assert "{{" not in html
        assert '<link rel="stylesheet" href="/src/common/navbar/style.scss">' in html
        assert 'src="/src/app/home/main.ts"' in html

    def test_deterministic(self, site, tree):
        page = make_page("home", site)
        first = assemble_page_file(page, site, tree)
        second = assemble_page_file(page, site, tree)
        assert first == second

    def test_component_with_repeat_fully_expanded(self, site, tree):
        write(site.root / "src/common/grid/index.html", "{{repeat 3}}<i></i>{{/repeat}}")
        html = assemble_page("<div>{{common/grid}}</div>", "about", site, tree)
        assert "<div><i></i><i></i><i></i></div>" in html
        assert "repeat" not in html

    def test_repeat_around_component(self, site, tree):
        write(site.root / "src/common/card/index.html", "<article></article>")
        html = assemble_page("{{repeat 2}}{{common/card}}{{/repeat}}", "about", site, tree)
        assert html.count("<article></article>") == 2

    def test_layout_variables_resolved(self, site, tree):
        html = assemble_page("<p>x</p>", "about", site, tree)
        assert "<title>Acme</title>" in html

    def test_variable_from_config_inside_repeat(self, site, tree):
        html = assemble_page("{{repeat 2}}{{SITE.title}}{{/repeat}}", "about", site, tree)
        assert "AcmeAcme" in html

    def test_missing_component_still_assembles(self, site, tree):
        html = assemble_page("<p>a</p>{{common/ghost}}<p>b</p>", "about", site, tree)
        assert "<p>a</p><p>b</p>" in html
        assert "ghost" not in html

    def test_missing_layout_soft(self, site, tree):
        site.layout_file.unlink()
        html = assemble_page("{{repeat 2}}x{{/repeat}}{{SITE.title}}", "about", site, tree)
        assert html == "xxAcme"

    def test_missing_layout_strict(self, site, tree):
        site.layout_file.unlink()
        with pytest.raises(LayoutNotFoundError):
            assemble_page("<p>x</p>", "about", site, tree, strict_layout=True)

    def test_missing_fragment_raises(self, site, tree):
        page = make_page("nope", site)
        with pytest.raises(FileNotFoundError):
            assemble_page_file(page, site, tree)
