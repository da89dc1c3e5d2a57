"""
Tests for the template catalog.
"""

import pytest

from conftest import write_yaml
from relaybox.catalog.templates import FileTemplateCatalog
from relaybox.models.template import MessageTemplate, MessageType


class TestFileTemplateCatalog:
    """Tests for FileTemplateCatalog."""

    def test_get(self, templates):
        template = templates.get("/T1.yaml")

        assert template.payload_text == "Hello"
        assert template.message_type == MessageType.TEXT

    def test_get_without_leading_slash(self, templates):
        assert templates.get("T1.yaml").payload_text == "Hello"

    def test_get_returns_fresh_instances(self, templates):
        assert templates.get("/T1.yaml") is not templates.get("/T1.yaml")

    @pytest.mark.parametrize("path", ["/missing.yaml", "/orders", "/../outside.yaml"])
    def test_get_missing(self, templates, path):
        assert templates.get(path) is None

    def test_get_ignores_other_suffixes(self, templates, templates_dir):
        (templates_dir / "notes.txt").write_text("payload_text: x", encoding="utf-8")
        assert templates.get("/notes.txt") is None

    def test_get_folder_recursive_and_sorted(self, templates):
        entries = templates.get_folder("orders")

        assert [name for name, _ in entries] == ["orders/a.yaml", "orders/sub/b.yaml"]
        assert [t.payload_text for _, t in entries] == ["A", "B"]

    def test_get_folder_missing(self, templates):
        assert templates.get_folder("nowhere") is None

    def test_get_empty_folder(self, templates):
        assert templates.get_folder("empty") == []

    def test_folder_outside_root(self, templates, tmp_path):
        write_yaml(tmp_path / "elsewhere" / "x.yaml", {"payload_text": "x"})
        assert templates.get_folder("../elsewhere") is None

    def test_list_names(self, templates):
        assert templates.list_names() == [
            "/T1.yaml",
            "/batch.yaml",
            "/order.yaml",
            "/orders/a.yaml",
            "/orders/sub/b.yaml",
            "/row.yaml",
        ]

    def test_list_names_without_root(self, tmp_path):
        assert FileTemplateCatalog(tmp_path / "none").list_names() == []

    def test_save_and_reload(self, templates):
        template = MessageTemplate(
            message_type="MAP",
            payload_map={"k": "v"},
            properties={"source": "tests"},
            priority=8,
        )

        path = templates.save("/new/map.yaml", template)

        assert path.is_file()
        assert templates.get("/new/map.yaml") == template

    def test_save_outside_root(self, templates):
        with pytest.raises(ValueError):
            templates.save("/../escape.yaml", MessageTemplate(payload_text="x"))

    def test_empty_file_is_default_template(self, templates, templates_dir):
        (templates_dir / "blank.yaml").write_text("", encoding="utf-8")
        assert templates.get("/blank.yaml") == MessageTemplate()
