"""Tests for tabby.theme — template directory resolution."""

from pathlib import Path

from tabby.config import TabbyConfig
from tabby.theme import get_template_dirs


class TestTemplateDirs:
    def test_user_dir_first(self, tmp_path: Path) -> None:
        config = TabbyConfig(root=tmp_path, templates_dir="layouts")
        dirs = get_template_dirs(config)
        assert dirs[0] == tmp_path / "layouts"
        assert len(dirs) == 2

    def test_bundled_post_template(self, tmp_path: Path) -> None:
        bundled = get_template_dirs(TabbyConfig(root=tmp_path))[-1]
        html = (bundled / "post.html").read_text()
        assert "{{ content | safe }}" in html
        assert "</body>" in html
