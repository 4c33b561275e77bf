#!filepath: proctrain/cli.py
import base64
import json
from pathlib import Path
from typing import Optional

import typer
from rich import print

from proctrain import __version__, init_logging, logs
from proctrain.config.app_config import AppConfig
from proctrain.dataset.events import EventTable
from proctrain.observability.instrumentation import Instrumentation
from proctrain.processors import available_processors
from proctrain.toolkit.methods import available_methods
from proctrain.trainer.context import TrainerContext
from proctrain.trainer.session import TrainingSession, build_processors

app = typer.Typer(help="Processor training CLI")


def _record_json(calibration) -> dict | None:
    if calibration is None:
        return None
    record = calibration.to_record()
    if isinstance(record.get("payload"), bytes):
        record["payload"] = base64.b64encode(record["payload"]).decode("ascii")
    return record


@app.command()
def version():
    print(f"v{__version__}")
    print(f"processors: {', '.join(available_processors())}")
    print(f"methods: {', '.join(available_methods())}")


@app.command()
def train(
    events: Path = typer.Option(..., help="parquet event table"),
    config: Optional[Path] = typer.Option(None, help="YAML config (default: bundled base.yml)"),
    output: Optional[Path] = typer.Option(None, help="write calibration records as JSON"),
):
    """
    训练全部配置的 processor（按配置顺序）
    """
    cfg = AppConfig.load(str(config) if config else None)
    init_logging(cfg.log)

    inst = Instrumentation(enabled=True)
    trainer = TrainerContext.from_config(cfg.trainer, inst=inst)
    session = TrainingSession.from_config(cfg.trainer, trainer)

    print(f"[green]Training {len(session.processors)} processors from {events}[/green]")
    calibrations = session.run(EventTable.read(events))

    records = {name: _record_json(c) for name, c in calibrations.items()}

    for name, elapsed in inst.timeline.items():
        print(f"  {name}: {elapsed:.3f}s")
    for name, value in inst.metrics.snapshot().items():
        print(f"  {name} = {value}")

    if output is not None:
        output.write_text(json.dumps(records, indent=2), encoding="utf-8")
        print(f"[blue]Calibrations written to {output}[/blue]")
    else:
        print(records)


@app.command()
@logs.catch("clean failed")
def clean(
    config: Optional[Path] = typer.Option(None, help="YAML config (default: bundled base.yml)"),
):
    """
    删除所有 processor 的缓存与临时文件
    """
    cfg = AppConfig.load(str(config) if config else None)
    init_logging(cfg.log)

    trainer = TrainerContext.from_config(cfg.trainer)
    for proc in build_processors(cfg.trainer, trainer):
        proc.cleanup(force=True)
        print(f"[yellow]cleaned {proc.kind} {proc.name}[/yellow]")


if __name__ == "__main__":
    app()

# python -m proctrain.cli train --events events.parquet
