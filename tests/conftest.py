"""Shared fixtures: a small throwaway project tree."""

import json
from pathlib import Path

import pytest

from pageforge.config import ConfigTree, SiteConfig

LAYOUT = """<!DOCTYPE html>
<html>
<head>
    <title>{{SITE.title}}</title>
</head>
<body>
    <main id="app">layout placeholder</main>
</body>
</html>
"""

HOME_PAGE = """<head>
<link rel="stylesheet" href="./style.css">
<script type="module" src="./main.ts"></script>
</head>
<h1>{{SITE.title}}</h1>
{{common/navbar}}
"""

NAVBAR = "<nav>{{repeat 2}}<a>{{SITE.title}}</a>{{/repeat}}</nav>\n"

NAVBAR_SCRIPT = """document.addEventListener("DOMContentLoaded", () => {
  console.log("navbar");
});
"""

VARIABLES = {"SITE": {"title": "Acme", "links": ["a", "b"]}}


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def make_project(root: Path) -> SiteConfig:
    write(root / "src/app/layout.html", LAYOUT)
    write(root / "src/app/home/page.html", HOME_PAGE)
    write(root / "src/app/home/main.ts", "// regenerated at build time\n")
    write(root / "src/app/home/style.css", "h1 { color: red; }\n")
    write(root / "src/app/about/page.html", "<p>About {{SITE.title}}</p>\n")
    (root / "src/app/drafts").mkdir(parents=True)
    write(root / "src/common/navbar/index.html", NAVBAR)
    write(root / "src/common/navbar/style.scss", "nav { display: flex; }\n")
    write(root / "src/common/navbar/script.ts", NAVBAR_SCRIPT)
    write(root / "src/constants/index.json", json.dumps(VARIABLES))
    write(root / "src/styles/global.css", "body { margin: 0; }\n")
    write(root / "public/imgs/logo.svg", "<svg></svg>\n")
    return SiteConfig(root=root, global_stylesheet="src/styles/global.css")


@pytest.fixture
def site(tmp_path):
    return make_project(tmp_path)


@pytest.fixture
def tree():
    return ConfigTree(VARIABLES)
