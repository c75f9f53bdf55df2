"""Tests for read_folder - zero mocks, uses tmp_path."""

import pytest

from panelflow.domain.ports.config import FolderConfig
from panelflow.domain.services.folder_output import parse_folder_output
from panelflow.infrastructure.folder import read_folder
from panelflow.infrastructure.folder.folder_reader import is_binary_file


@pytest.fixture()
def workspace(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "main.py").write_text("print('hello')\n")
    sub = src / "sub"
    sub.mkdir()
    (sub / "helper.py").write_text("# helper\n")
    (tmp_path / "README.md").write_text("# Project\n")
    (tmp_path / "image.png").write_bytes(b"\x89PNG\x00\x00fake")
    node_modules = tmp_path / "node_modules"
    node_modules.mkdir()
    (node_modules / "dep.js").write_text("module.exports = 1\n")
    return tmp_path


class TestReadFolder:
    def test_tree_dirs_first_and_excludes(self, workspace):
        snapshot = read_folder(str(workspace))
        names = [e.name for e in snapshot.entries]
        assert names == ["src", "README.md", "image.png"]
        assert [e.name for e in snapshot.entries[0].children] == ["sub", "main.py"]

    def test_binary_files_listed_but_not_read(self, workspace):
        snapshot = read_folder(str(workspace))
        paths = [f.path for f in snapshot.files]
        assert str(workspace / "image.png") not in paths
        assert str(workspace / "src" / "main.py") in paths

    def test_render_round_trips_through_parser(self, workspace):
        output = read_folder(str(workspace)).render()

        assert output.startswith(f"=== Folder: {workspace} ===")
        assert "src/\n  sub/\n    helper.py\n  main.py" in output
        files = {f.path: f.content for f in parse_folder_output(output)}
        assert files["src/sub/helper.py"] == "# helper"
        assert files["README.md"] == "# Project"

    def test_max_depth(self, workspace):
        snapshot = read_folder(str(workspace), FolderConfig(max_depth=1))
        assert snapshot.entries[0].children == []
        assert [f.path for f in snapshot.files] == [str(workspace / "README.md")]

    def test_per_file_truncation(self, tmp_path):
        (tmp_path / "big.txt").write_text("x" * 150)
        snapshot = read_folder(str(tmp_path), FolderConfig(max_file_bytes=100))
        content = snapshot.files[0].content
        assert content.startswith("x" * 100)
        assert content.endswith("[... 50 bytes truncated ...]")

    def test_total_size_cap(self, tmp_path):
        for name in ("a.txt", "b.txt", "c.txt"):
            (tmp_path / name).write_text("y" * 60)
        snapshot = read_folder(str(tmp_path), FolderConfig(max_total_bytes=100))
        assert [f.path.rsplit("/", 1)[-1] for f in snapshot.files] == ["a.txt", "b.txt"]

    def test_max_files(self, tmp_path):
        for i in range(5):
            (tmp_path / f"f{i}.txt").write_text(str(i))
        snapshot = read_folder(str(tmp_path), FolderConfig(max_files=3))
        assert len(snapshot.entries) == 3

    def test_missing_folder(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_folder(str(tmp_path / "missing"))

    def test_not_a_directory(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(NotADirectoryError):
            read_folder(str(path))


class TestIsBinaryFile:
    def test_text(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("plain text\twith tab\n")
        assert not is_binary_file(path)

    def test_null_bytes(self, tmp_path):
        path = tmp_path / "a.bin"
        path.write_bytes(b"abc\x00def")
        assert is_binary_file(path)

    def test_empty_file_is_text(self, tmp_path):
        path = tmp_path / "empty"
        path.write_bytes(b"")
        assert not is_binary_file(path)
