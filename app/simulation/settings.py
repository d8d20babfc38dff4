"""Numeric and behavioural settings shared by the solver layers."""

from dataclasses import asdict, dataclass, fields

from models.node import REFERENCE_NAMES

from .linear_solver import PIVOT_EPSILON

ANALYSIS_METHODS = ("nodal", "mesh")

# Samples kept by SolveHistory unless configured otherwise
DEFAULT_HISTORY_SIZE = 720


@dataclass
class SolverSettings:
    """User-tunable solver settings (persisted by SettingsManager)."""

    pivot_epsilon: float = PIVOT_EPSILON
    kcl_tolerance: float = 1e-9
    agreement_tolerance: float = 1e-6
    default_method: str = "nodal"
    history_size: int = DEFAULT_HISTORY_SIZE
    csv_precision: int = 9
    reference_names: tuple[str, ...] = REFERENCE_NAMES

    def __post_init__(self):
        if self.default_method not in ANALYSIS_METHODS:
            raise ValueError(
                f"Unknown analysis method '{self.default_method}'. "
                f"Valid methods: {', '.join(ANALYSIS_METHODS)}"
            )
        if self.pivot_epsilon <= 0:
            raise ValueError("pivot_epsilon must be positive")
        if self.history_size < 1:
            raise ValueError("history_size must be at least 1")
        names = self.reference_names
        if isinstance(names, str):
            names = (names,)
        self.reference_names = tuple(str(n) for n in names)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["reference_names"] = list(self.reference_names)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SolverSettings":
        """Build settings from a dict, ignoring keys this version does not know."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
