import pytest

from gas_pharyngitis.config import Config
from gas_pharyngitis.errors import ConfigurationError
from gas_pharyngitis.schema import DEFAULT_SCHEMA, DatasetSchema

CONFIG_YAML = """
data:
  path: cases.csv
split:
  train_fraction: 0.75
  seed: 7
validation:
  n_splits: 4
models:
  knn:
    grid:
      n_neighbors: {values: [3, 5]}
"""


def test_config_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    cfg = Config.from_yaml(str(path))

    assert cfg.data["path"] == "cases.csv"
    assert cfg.split["train_fraction"] == 0.75
    assert cfg.models["knn"]["grid"]["n_neighbors"]["values"] == [3, 5]
    # optional sections default to empty mappings
    assert cfg.preprocessing == {}
    assert cfg.output == {}


def test_config_rejects_unknown_section():
    with pytest.raises(ConfigurationError, match="Unknown config sections"):
        Config.from_dict({"data": {}, "split": {}, "validation": {}, "models": {"knn": {}}, "plots": {}})


def test_config_requires_models():
    with pytest.raises(ConfigurationError):
        Config.from_dict({"data": {}, "split": {}, "validation": {}, "models": {}})


def test_config_requires_all_sections():
    with pytest.raises(ConfigurationError, match="Incomplete config"):
        Config.from_dict({"data": {}, "models": {"knn": {}}})


def test_config_rejects_non_mapping_section():
    with pytest.raises(ConfigurationError, match="must be a mapping"):
        Config.from_dict({"data": [], "split": {}, "validation": {}, "models": {"knn": {}}})


def test_config_rejects_non_mapping_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        Config.from_yaml(str(path))


def test_schema_defaults_without_override():
    assert DatasetSchema.from_config({"path": "x.csv"}) is DEFAULT_SCHEMA


def test_schema_override_from_config():
    schema = DatasetSchema.from_config(
        {"schema": {"id_col": None, "continuous": ["age_y"], "categorical": {"cough": [0, 1]}}}
    )
    assert schema.id_col is None
    assert schema.columns == ["age_y", "cough", "radt"]
    assert schema.categorical == {"cough": (0, 1)}
