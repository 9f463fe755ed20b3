"""
Tests for the compose file image tag rewriter.
"""
import logging

from conftest import COMPOSE_TEXT
from adapters.compose_file import image_reference, render_image_tags, rewrite_image_tags

IMAGES = ("aws-app-web", "aws-app-backend")


class TestRenderImageTags:
    """Tests for the pure string substitution."""

    def test_replaces_both_tags(self):
        text, counts = render_image_tags(COMPOSE_TEXT, version="7-deadbee", images=IMAGES)

        assert "image: aws-app-web:7-deadbee" in text
        assert "image: aws-app-backend:7-deadbee" in text
        assert counts == {"aws-app-web": 1, "aws-app-backend": 1}

    def test_keeps_indentation_and_other_lines(self):
        text, _ = render_image_tags(COMPOSE_TEXT, version="V", images=IMAGES)

        before = COMPOSE_TEXT.splitlines()
        after = text.splitlines()
        changed = [(b, a) for b, a in zip(before, after) if b != a]
        assert len(before) == len(after)
        assert changed == [
            ("    image: aws-app-web:1-0000000", "    image: aws-app-web:V"),
            ("    image: aws-app-backend:1-0000000", "    image: aws-app-backend:V"),
        ]

    def test_similar_image_names_are_not_matched(self):
        """`aws-app-web-worker` is a different image."""
        source = "  image: aws-app-web-worker:1\n  image: aws-app-web:1\n"
        text, counts = render_image_tags(source, version="2", images=("aws-app-web",))

        assert text == "  image: aws-app-web-worker:1\n  image: aws-app-web:2\n"
        assert counts["aws-app-web"] == 1

    def test_registry_prefix_is_replaced(self):
        source = "    image: old.registry/aws-app-web:1\n"
        text, _ = render_image_tags(source, version="2", images=("aws-app-web",), registry="new.registry/")

        assert text == "    image: new.registry/aws-app-web:2\n"

    def test_local_rewrite_ignores_registry_qualified_lines(self):
        source = "    image: some.registry/aws-app-web:1\n"
        text, counts = render_image_tags(source, version="2", images=("aws-app-web",))

        assert text == source
        assert counts["aws-app-web"] == 0

    def test_crlf_line_endings_survive(self):
        source = "services:\r\n  web:\r\n    image: aws-app-web:1\r\n"
        text, _ = render_image_tags(source, version="2", images=("aws-app-web",))

        assert text == "services:\r\n  web:\r\n    image: aws-app-web:2\r\n"

    def test_last_line_without_newline(self):
        text, _ = render_image_tags("image: aws-app-web:1", version="2", images=("aws-app-web",))
        assert text == "image: aws-app-web:2"


class TestRewriteImageTags:
    """Tests for the in-place file rewrite."""

    def test_writes_file_and_backup(self, compose_file):
        counts = rewrite_image_tags(compose_file, version="9-abcdef0", images=IMAGES)

        assert counts == {"aws-app-web": 1, "aws-app-backend": 1}
        assert "image: aws-app-web:9-abcdef0" in compose_file.read_text(encoding="utf-8")
        assert (compose_file.parent / "docker-compose.dev.yml.bak").read_text(encoding="utf-8") == COMPOSE_TEXT

    def test_missing_image_line_warns(self, tmp_path, caplog):
        """Format drift is not an error, only a warning."""
        path = tmp_path / "compose.yml"
        path.write_text("services:\n  web:\n    image: renamed-web:1\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            counts = rewrite_image_tags(path, version="2", images=IMAGES)

        assert counts == {"aws-app-web": 0, "aws-app-backend": 0}
        assert path.read_text(encoding="utf-8") == "services:\n  web:\n    image: renamed-web:1\n"
        assert "aws-app-web" in caplog.text

    def test_no_backup(self, compose_file):
        rewrite_image_tags(compose_file, version="2", images=IMAGES, backup=False)
        assert not (compose_file.parent / "docker-compose.dev.yml.bak").exists()


def test_image_reference():
    assert image_reference("aws-app-web", "3") == "aws-app-web:3"
    assert image_reference("aws-app-web", "3", "reg.example/") == "reg.example/aws-app-web:3"
