#!filepath: proctrain/utils/filesystem.py
import os
from pathlib import Path

from proctrain.utils.logger import logs


class FileSystem:
    """
    统一文件系统工具
    - 自动创建目录
    - 安全写入文件（临时文件 → rename）
    - 删除文件 / 空目录（幂等）
    """

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        p = Path(path)
        if not p.exists():
            p.mkdir(parents=True, exist_ok=True)
            logs.debug(f"[FS] create dir: {p}")
        return p

    @staticmethod
    def file_exists(path: str | Path) -> bool:
        return Path(path).is_file()

    @staticmethod
    def safe_write(path: str | Path, data: bytes) -> None:
        """
        原子写入（避免部分写入导致文件损坏）
            1) write tmp file
            2) rename → target
        """
        path = Path(path)
        FileSystem.ensure_dir(path.parent)

        tmp_path = path.with_suffix(path.suffix + ".tmp")

        with open(tmp_path, "wb") as f:
            f.write(data)

        os.replace(tmp_path, path)
        logs.debug(f"[FS] atomic write done: {path}")

    @staticmethod
    def remove(path: str | Path) -> bool:
        """
        删除单个文件，不存在时静默返回 False
        """
        p = Path(path)

        if not p.is_file():
            return False

        p.unlink()
        logs.debug(f"[FS] removed file: {p}")
        return True

    @staticmethod
    def remove_empty_dir(path: str | Path) -> bool:
        """
        rmdir 语义：目录非空或不存在时返回 False
        """
        p = Path(path)
        try:
            p.rmdir()
        except OSError:
            return False

        logs.debug(f"[FS] removed dir: {p}")
        return True
