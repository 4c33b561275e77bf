#!filepath: proctrain/utils/logger.py
import os
import sys
from functools import wraps
from time import perf_counter
from typing import Callable, Optional

from loguru import logger

_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"


class Logging:
    """
    训练日志模块
    ---------------------------------------
    - import 时只有 stderr sink（不落盘）
    - log_dir 给定时按天滚动写文件
    - catch(): 命令级异常日志 + 耗时
    ---------------------------------------
    """

    def __init__(
        self,
        log_dir: Optional[str] = None,
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "INFO",
    ):
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level

        self._install_sinks()

    def _install_sinks(self) -> None:
        # loguru 的 logger 是进程级单例，先清空再装
        logger.remove()
        logger.add(sink=sys.stderr, level=self.level, format=_FORMAT)

        if self.log_dir is None:
            return

        os.makedirs(self.log_dir, exist_ok=True)
        logger.add(
            sink=os.path.join(self.log_dir, "proctrain_{time:YYYY-MM-DD}.log"),
            rotation=self.rotation,
            retention=self.retention,
            level=self.level,
            format=_FORMAT,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
        logger.info(f"[Logging] file sink at {self.log_dir}")

    # ---------- 基础接口封装 ----------
    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        logger.exception(msg, *args, **kwargs)

    # ---------- 日志装饰器 ----------
    def catch(self, msg: str = "command failed", log_time: bool = True) -> Callable:
        """
        Log the traceback of a failing call, then re-raise.
        """

        def decorator(func: Callable):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start = perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception:
                    logger.exception(f"[{func.__name__}] {msg}")
                    raise

                if log_time:
                    logger.info(f"[{func.__name__}] done in {perf_counter() - start:.3f}s")
                return result

            return wrapper

        return decorator


def init_logging(cfg) -> Logging:
    """
    Reinstall the process-wide sinks from a LogConfig.

    Modules that imported `logs` keep working: every Logging instance
    writes through the same loguru logger.
    """
    global logs
    logs = Logging(
        log_dir=cfg.dir,
        rotation=cfg.rotation,
        retention=cfg.retention,
        log_level=cfg.level,
    )
    return logs


# 默认全局 logs（stderr only）
logs = Logging()
