import logging
from pathlib import Path

from core.indexing.scanner import ImageScanner

from .conftest import write_image


def test_scan_matches_extensions_case_insensitively_and_recurses(tmp_path):
    write_image(tmp_path / "a.jpg")
    write_image(tmp_path / "b.PNG", fmt="PNG")
    (tmp_path / "c.txt").write_text("text")
    write_image(tmp_path / "sub" / "d.webp", fmt="WEBP")

    found = ImageScanner(tmp_path).scan()

    relative = {path.relative_to(tmp_path).as_posix() for path in found}
    assert relative == {"a.jpg", "b.PNG", "sub/d.webp"}


def test_scan_includes_gif_and_jpeg(tmp_path):
    write_image(tmp_path / "anim.gif", fmt="GIF")
    write_image(tmp_path / "photo.JPEG")

    names = {path.name for path in ImageScanner(tmp_path).scan()}
    assert names == {"anim.gif", "photo.JPEG"}


def test_missing_root_returns_empty_with_warning(tmp_path, caplog):
    with caplog.at_level(logging.WARNING):
        found = ImageScanner(tmp_path / "does-not-exist").scan()

    assert found == []
    assert "does not exist" in caplog.text


def test_directory_named_like_image_is_not_returned(tmp_path):
    (tmp_path / "folder.jpg").mkdir()
    write_image(tmp_path / "folder.jpg" / "inner.jpg")

    found = ImageScanner(tmp_path).scan()
    assert [path.name for path in found] == ["inner.jpg"]


def test_unreadable_subdirectory_is_skipped(tmp_path, monkeypatch, caplog):
    write_image(tmp_path / "a.jpg")
    write_image(tmp_path / "locked" / "b.jpg")
    write_image(tmp_path / "open" / "c.jpg")
    locked = tmp_path / "locked"
    real_iterdir = Path.iterdir

    def iterdir(self):
        if self == locked:
            raise PermissionError(13, "Permission denied", str(self))
        return real_iterdir(self)

    monkeypatch.setattr(Path, "iterdir", iterdir)

    with caplog.at_level(logging.ERROR):
        found = ImageScanner(tmp_path).scan()

    assert {path.name for path in found} == {"a.jpg", "c.jpg"}
    assert "locked" in caplog.text
