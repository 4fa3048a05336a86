"""Column layout of the pediatric pharyngitis dataset."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

BINARY_LEVELS = (0, 1)
LABEL_LEVELS = ("Negative", "Positive")


@dataclass(frozen=True)
class DatasetSchema:
    """Declared columns and categorical level sets of a raw case table."""
    id_col: Optional[str]
    target_col: str
    continuous: Tuple[str, ...]
    categorical: Dict[str, Tuple[Any, ...]]
    label_map: Dict[Any, str] = field(default_factory=lambda: {0: "Negative", 1: "Positive"})
    label_levels: Tuple[str, ...] = LABEL_LEVELS

    @property
    def feature_cols(self) -> List[str]:
        return list(self.continuous) + list(self.categorical)

    @property
    def columns(self) -> List[str]:
        cols = [self.id_col] if self.id_col else []
        return cols + self.feature_cols + [self.target_col]

    @classmethod
    def from_config(cls, data_cfg: Dict[str, Any]) -> "DatasetSchema":
        """Override the default layout with the keys present in the ``data`` config section."""
        base = DEFAULT_SCHEMA
        if "schema" not in data_cfg:
            return base
        raw = data_cfg["schema"] or {}
        categorical = {
            col: tuple(levels) for col, levels in raw.get("categorical", base.categorical).items()
        }
        label_map = raw.get("label_map", base.label_map)
        return cls(
            id_col=raw.get("id_col", base.id_col),
            target_col=raw.get("target_col", base.target_col),
            continuous=tuple(raw.get("continuous", base.continuous)),
            categorical=categorical,
            label_map=dict(label_map),
            label_levels=tuple(raw.get("label_levels", base.label_levels)),
        )


SYMPTOM_FLAGS = (
    "pain",
    "tender",
    "tonsillarswelling",
    "exudate",
    "sudden",
    "cough",
    "rhinorrhea",
    "conjunctivitis",
    "headache",
    "erythema",
    "petechiae",
    "abdopain",
    "diarrhea",
    "nauseavomit",
    "scarlet",
)

_categorical = {col: BINARY_LEVELS for col in SYMPTOM_FLAGS}
# lymphadenopathy severity, kept as an unordered 4-level factor
_categorical["swollenadp"] = (0, 1, 2, 3)

DEFAULT_SCHEMA = DatasetSchema(
    id_col="number",
    target_col="radt",
    continuous=("age_y", "temperature"),
    categorical=_categorical,
)
