"""
simulation/result_history.py

Rolling record of solves, used for history browsing, comparison and export.
Each recorded solve gets a sample index ``t`` that keeps counting even
after the oldest samples have been pushed out.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Optional

from .settings import DEFAULT_HISTORY_SIZE


@dataclass
class HistorySample:
    """Node voltages and branch currents captured from one solve."""

    t: int
    timestamp: datetime
    method: str
    success: bool
    node_voltages: dict[str, float] = field(default_factory=dict)
    branch_currents: dict[str, float] = field(default_factory=dict)
    mesh_currents: Optional[list[float]] = None
    label: str = ""

    @property
    def summary(self) -> str:
        """Single display line, e.g. ``[2025-06-15 10:30:00] #3 nodal: OK``."""
        text = f"[{self.timestamp:%Y-%m-%d %H:%M:%S}] #{self.t} {self.method}: "
        text += "OK" if self.success else "FAIL"
        if self.label:
            text += f" ({self.label})"
        return text

    def quantities(self) -> dict[str, float]:
        """All values keyed the way they are displayed: ``V(node)`` then ``I(branch)``."""
        values = {f"V({n})": v for n, v in self.node_voltages.items()}
        values.update({f"I({b})": i for b, i in self.branch_currents.items()})
        return values

    def to_dict(self) -> dict:
        data = {
            "t": self.t,
            "timestamp": self.timestamp.isoformat(),
            "method": self.method,
            "success": self.success,
            "node_voltages": dict(self.node_voltages),
            "branch_currents": dict(self.branch_currents),
            "mesh_currents": None,
            "label": self.label,
        }
        if self.mesh_currents is not None:
            data["mesh_currents"] = list(self.mesh_currents)
        return data


class SolveHistory:
    """Bounded, oldest-first sequence of HistorySample objects."""

    def __init__(self, max_samples: int = DEFAULT_HISTORY_SIZE):
        self._samples: deque[HistorySample] = deque(maxlen=max(1, max_samples))
        self._next_t = 0

    def record(
        self,
        method: str,
        success: bool,
        node_voltages: Optional[dict] = None,
        branch_currents: Optional[dict] = None,
        mesh_currents: Optional[list] = None,
        label: str = "",
        timestamp: Optional[datetime] = None,
    ) -> HistorySample:
        """Append a sample built from copies of the given results and return it."""
        sample = HistorySample(
            t=self._next_t,
            timestamp=timestamp or datetime.now(),
            method=method,
            success=success,
            node_voltages=dict(node_voltages or {}),
            branch_currents=dict(branch_currents or {}),
            mesh_currents=None if mesh_currents is None else list(mesh_currents),
            label=label,
        )
        self._next_t += 1
        # deque drops the oldest sample once maxlen is reached
        self._samples.append(sample)
        return sample

    def clear(self) -> None:
        self._samples.clear()
        self._next_t = 0

    def set_label(self, index: int, label: str) -> None:
        self._samples[index].label = label

    @property
    def samples(self) -> list[HistorySample]:
        """Copy of the samples, oldest first."""
        return list(self._samples)

    @property
    def max_samples(self) -> int:
        return self._samples.maxlen

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[HistorySample]:
        return iter(self._samples)

    def __getitem__(self, index: int) -> HistorySample:
        return self._samples[index]

    def __bool__(self) -> bool:
        return len(self._samples) > 0

    def latest(self) -> Optional[HistorySample]:
        return self._samples[-1] if self._samples else None

    def successful(self) -> list[HistorySample]:
        return [s for s in self._samples if s.success]

    def _first_seen(self, attr: str) -> list[str]:
        ordered: dict[str, None] = {}
        for sample in self._samples:
            ordered.update(dict.fromkeys(getattr(sample, attr)))
        return list(ordered)

    def node_ids(self) -> list[str]:
        """Node ids across all samples, in the order they first appear."""
        return self._first_seen("node_voltages")

    def branch_ids(self) -> list[str]:
        """Branch ids across all samples, in the order they first appear."""
        return self._first_seen("branch_currents")

    @staticmethod
    def compare(sample_a: HistorySample, sample_b: HistorySample) -> dict:
        """
        Pair up the quantities of two samples.

        Each ``"V(node)"`` / ``"I(branch)"`` key maps to
        ``{"a": value_a, "b": value_b, "delta": value_b - value_a}``, with
        None standing in for a quantity one of the samples lacks. ``delta``
        is None unless both values are present.
        """
        a_values = sample_a.quantities()
        b_values = sample_b.quantities()
        diff = {}
        for key in {**a_values, **b_values}:
            a, b = a_values.get(key), b_values.get(key)
            delta = b - a if a is not None and b is not None else None
            diff[key] = {"a": a, "b": b, "delta": delta}
        return diff
