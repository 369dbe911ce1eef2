import io
import os
import zipfile
from pathlib import Path

import pytest

from yc_function_deploy.archive import build_archive
from yc_function_deploy.errors import ArchiveError, IncludePathNotFoundError


def _entries(content: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(content)) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    tmp_path/
      src/index.js
      src/lib/util.js
      src/lib/util.test.js
      src/README.md
      package.json
    """
    (tmp_path / "src" / "lib").mkdir(parents=True)
    (tmp_path / "src" / "index.js").write_bytes(b"exports.handler = () => 1;\n")
    (tmp_path / "src" / "lib" / "util.js").write_bytes(b"module.exports = {};\n")
    (tmp_path / "src" / "lib" / "util.test.js").write_bytes(b"test();\n")
    (tmp_path / "src" / "README.md").write_bytes(b"# readme\n")
    (tmp_path / "package.json").write_bytes(b'{"name": "fn"}\n')
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_directory_round_trip_without_exclusions(project: Path) -> None:
    archive = build_archive(["src"], [])

    assert archive.size == len(archive.content) > 0
    assert _entries(archive.content) == {
        "src/index.js": b"exports.handler = () => 1;\n",
        "src/lib/util.js": b"module.exports = {};\n",
        "src/lib/util.test.js": b"test();\n",
        "src/README.md": b"# readme\n",
    }


def test_dot_slash_prefix_is_normalised(project: Path) -> None:
    archive = build_archive(["./src"], [])
    assert "src/index.js" in _entries(archive.content)


def test_current_directory_include(project: Path) -> None:
    archive = build_archive(["."], [])
    assert set(_entries(archive.content)) == {
        "package.json",
        "src/index.js",
        "src/lib/util.js",
        "src/lib/util.test.js",
        "src/README.md",
    }


def test_excluded_files_are_omitted(project: Path) -> None:
    archive = build_archive(["src"], ["**/*.test.js", "*.md", ""])

    assert set(_entries(archive.content)) == {"src/index.js", "src/lib/util.js"}
    assert archive.entries == ["src/index.js", "src/lib/util.js"]


def test_exclude_pattern_with_include_prefix(project: Path) -> None:
    archive = build_archive(["src"], ["src/lib/**"])
    assert set(_entries(archive.content)) == {"src/index.js", "src/README.md"}


def test_single_file_is_not_filtered(project: Path) -> None:
    archive = build_archive(["package.json"], ["*.json"])
    assert _entries(archive.content) == {"package.json": b'{"name": "fn"}\n'}


def test_uses_deflate(project: Path) -> None:
    archive = build_archive(["src"], [])
    with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
        assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in zf.infolist())


def test_missing_include_path_raises(project: Path) -> None:
    with pytest.raises(IncludePathNotFoundError) as excinfo:
        build_archive(["src", "does-not-exist"], [])

    assert isinstance(excinfo.value, FileNotFoundError)
    assert isinstance(excinfo.value, ArchiveError)
    assert "does-not-exist" in str(excinfo.value)


def test_unreadable_file_raises_archive_error(project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    original_write = zipfile.ZipFile.write

    def failing_write(self, filename, arcname=None, *args, **kwargs):  # noqa: ANN001, ANN202
        if os.path.basename(str(filename)) == "util.js":
            raise PermissionError("denied")
        return original_write(self, filename, arcname, *args, **kwargs)

    monkeypatch.setattr(zipfile.ZipFile, "write", failing_write)

    with pytest.raises(ArchiveError) as excinfo:
        build_archive(["src"], [])
    assert "denied" in str(excinfo.value)


def test_slashless_pattern_does_not_reach_nested_files(project: Path) -> None:
    archive = build_archive(["."], ["*.json", "*.md"])

    # ``*`` 는 디렉토리 경계를 넘지 않으므로 루트의 package.json 만 빠진다.
    assert set(_entries(archive.content)) == {
        "src/index.js",
        "src/lib/util.js",
        "src/lib/util.test.js",
        "src/README.md",
    }
