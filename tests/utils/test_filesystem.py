# tests/utils/test_filesystem.py
from proctrain.utils.filesystem import FileSystem
from proctrain.utils.path import PathManager


def test_ensure_dir(tmp_path):
    """ensure_dir 能正确创建多级目录"""
    new_dir = tmp_path / "a" / "b"
    assert not new_dir.exists()

    FileSystem.ensure_dir(new_dir)
    assert new_dir.is_dir()


def test_file_exists(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("hello")

    assert FileSystem.file_exists(f) is True
    assert FileSystem.file_exists(tmp_path / "not_exist.txt") is False
    # 目录不算文件
    assert FileSystem.file_exists(tmp_path) is False


def test_safe_write(tmp_path):
    """safe_write 原子写入并不残留 tmp 文件"""
    file_path = tmp_path / "sub" / "data.json"

    FileSystem.safe_write(file_path, b"{}")

    assert file_path.read_bytes() == b"{}"
    assert not file_path.with_suffix(".json.tmp").exists()


def test_remove_is_idempotent(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("hello")

    assert FileSystem.remove(f) is True
    assert not f.exists()
    assert FileSystem.remove(f) is False


def test_remove_empty_dir_only(tmp_path):
    d = tmp_path / "folder"
    d.mkdir()
    (d / "a.txt").write_text("x")

    assert FileSystem.remove_empty_dir(d) is False
    assert d.exists()

    (d / "a.txt").unlink()
    assert FileSystem.remove_empty_dir(d) is True
    assert not d.exists()
    assert FileSystem.remove_empty_dir(d) is False


def test_path_manager_naming(tmp_path):
    pm = PathManager(tmp_path)

    assert pm.train_file("lin", "json") == tmp_path / "train_lin.json"
    assert pm.train_file("bdt", "parquet", "input") == tmp_path / "train_bdt_input.parquet"
    assert pm.weights_dir() == tmp_path / "weights"

    custom = PathManager(tmp_path, "{name}-{ext}{suffix}.{ext}")
    assert custom.train_file("a", "json", "x") == tmp_path / "a-json_x.json"


def test_package_config_dir():
    assert (PathManager.package_config_dir() / "base.yml").is_file()
