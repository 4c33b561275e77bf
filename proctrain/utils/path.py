#!filepath: proctrain/utils/path.py
from pathlib import Path


class PathManager:
    """
    训练目录结构：

    <train_dir>/
     ├── train_<proc>.json              ← cache files
     ├── train_<proc>_input.parquet     ← transient exports
     ├── train_monitoring.parquet
     └── weights/                       ← external toolkit output (cwd-relative)

    file_mask 控制 cache / 临时文件命名，占位符：
        {name}   processor name
        {suffix} "_<arg>" or ""
        {ext}    extension
    """

    DEFAULT_MASK = "train_{name}{suffix}.{ext}"
    WEIGHTS_DIR = "weights"

    def __init__(self, train_dir: Path | str, file_mask: str = DEFAULT_MASK):
        self.train_dir = Path(train_dir)
        self.file_mask = file_mask

    # ---------------------------------------------------------
    # project root
    # ---------------------------------------------------------
    @staticmethod
    def project_root() -> Path:
        """
        proctrain/utils/path.py → proctrain/utils → proctrain → project_root
        """
        return Path(__file__).resolve().parents[2]

    @staticmethod
    def package_config_dir() -> Path:
        return Path(__file__).resolve().parents[1] / "config"

    # ---------------------------------------------------------
    # train dir
    # ---------------------------------------------------------
    def train_file(self, name: str, ext: str, arg: str | None = None) -> Path:
        suffix = f"_{arg}" if arg else ""
        return self.train_dir / self.file_mask.format(
            name=name, suffix=suffix, ext=ext
        )

    def weights_dir(self) -> Path:
        return self.train_dir / self.WEIGHTS_DIR

    def monitoring_file(self, file_name: str) -> Path:
        return self.train_dir / file_name
