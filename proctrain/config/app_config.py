#!filepath: proctrain/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .log_config import LogConfig
from .trainer_config import TrainerConfig
from proctrain.utils.errors import ConfigError
from proctrain.utils.path import PathManager


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    trainer: TrainerConfig = Field(default_factory=TrainerConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 proctrain/config/base.yml
        - 不依赖当前工作目录
        - PROCTRAIN_TRAIN_DIR 覆盖 trainer.train_dir
        """
        root = PathManager.project_root()

        load_dotenv(os.path.join(root, ".env"))

        if path is None:
            path = str(PathManager.package_config_dir() / "base.yml")

        if not os.path.exists(path):
            raise ConfigError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Config file {path} is not valid YAML: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        train_dir = os.getenv("PROCTRAIN_TRAIN_DIR")
        if train_dir:
            raw.setdefault("trainer", {})["train_dir"] = train_dir

        try:
            return cls(**raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid config {path}: {e}") from e
