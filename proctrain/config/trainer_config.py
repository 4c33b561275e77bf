# proctrain/config/trainer_config.py
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProcessorConfig(BaseModel):
    """
    One processor node（already ordered by the orchestrator）

    inputs:
      "source.name" or bare "name" (source = "input")
    config:
      variant-specific section, validated by the processor itself
    """

    model_config = ConfigDict(extra="forbid")

    kind: str
    name: str
    inputs: List[str] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)


class TrainerConfig(BaseModel):
    """
    TrainerConfig（FINAL）
    """

    model_config = ConfigDict(extra="forbid")

    # run identity
    name: str = "trainer"

    # working directory
    train_dir: str = "train"
    file_mask: str = "train_{name}{suffix}.{ext}"

    # monitoring
    monitoring: bool = True
    monitoring_file: str = "train_monitoring.parquet"

    # remove transient files (and external weights) after the run
    cleanup: bool = False

    # processors, in execution order
    processors: List[ProcessorConfig] = Field(default_factory=list)

    @field_validator("processors")
    @classmethod
    def _unique_names(cls, v: List[ProcessorConfig]) -> List[ProcessorConfig]:
        seen = set()
        for proc in v:
            if proc.name in seen:
                raise ValueError(f"duplicate processor name: {proc.name}")
            seen.add(proc.name)
        return v

    @field_validator("file_mask")
    @classmethod
    def _mask_has_name(cls, v: str) -> str:
        for key in ("{name}", "{ext}"):
            if key not in v:
                raise ValueError(f"file_mask must contain {key}")
        return v
