# proctrain/core/variables.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from proctrain.utils.errors import ConfigError

INPUT_SOURCE = "input"


@dataclass(frozen=True)
class VariableRef:
    """
    One upstream variable: producer identity + name.
    Owned by the orchestrator, processors only reference it.
    """

    source: str
    name: str

    @classmethod
    def parse(cls, text: str) -> "VariableRef":
        """
        "source.name" → VariableRef(source, name)
        "name"        → VariableRef("input", name)
        """
        text = text.strip()
        source, sep, name = text.rpartition(".")
        if not sep:
            source, name = INPUT_SOURCE, text

        if not source or not name:
            raise ConfigError(f"Invalid variable reference: {text!r}")

        return cls(source=source, name=name)

    @property
    def qualified_name(self) -> str:
        return f"{self.source}.{self.name}"

    @property
    def column(self) -> str:
        """
        Column name in an event table: bare name for raw inputs.
        """
        if self.source == INPUT_SOURCE:
            return self.name
        return self.qualified_name


def unique_names(names: Iterable[str]) -> List[str]:
    """
    De-duplicate display names in order.

    A name already present gets the first free "_<i>" suffix (i >= 1):
        ["x", "y", "x", "x"] → ["x", "y", "x_1", "x_2"]
    """
    result: List[str] = []
    taken = set()

    for name in names:
        if name in taken:
            i = 1
            while f"{name}_{i}" in taken:
                i += 1
            name = f"{name}_{i}"

        result.append(name)
        taken.add(name)

    return result


class VariableBinding:
    """
    Ordered input variables of one processor with stable display names.

    The display names are the artifact's variable order and the keys of
    monitoring bin sets and export columns.
    """

    def __init__(self, refs: Sequence[VariableRef]):
        self.refs: List[VariableRef] = list(refs)
        self.names: List[str] = unique_names(ref.name for ref in self.refs)

    @classmethod
    def from_strings(cls, inputs: Iterable[str]) -> "VariableBinding":
        return cls([VariableRef.parse(s) for s in inputs])

    def __len__(self) -> int:
        return len(self.refs)

    def __repr__(self) -> str:
        return f"VariableBinding({self.names})"
