"""
YAML scene loader with schema validation.

Loads a scene document (field, trail, flock, life-cycle, genetics and
nutrient settings) from YAML and validates it against a JSON schema.
Every section and key is optional; omitted values keep their defaults.
"""

import yaml
import json
from pathlib import Path
from typing import Optional
import jsonschema

from .data_types import (
    SceneConfig, FieldConfig, TrailConfig, FlockConfig, LifeConfig, GeneticsConfig
)

DATA_DIR = Path(__file__).parent / "data"
SCHEMA_DIR = DATA_DIR / "schemas"
DEFAULT_SCENE_PATH = DATA_DIR / "scene.yaml"


class DataLoadError(Exception):
    """Raised when data loading or validation fails"""
    pass


def load_yaml(file_path: Path) -> dict:
    """Load YAML file and return parsed dict"""
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DataLoadError(f"YAML parse error in {file_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DataLoadError(f"Expected a mapping at the top of {file_path}")
    return data


def validate_against_schema(data: dict, schema_path: Path, data_path: Path):
    """Validate data dict against JSON schema"""
    if not schema_path.exists():
        raise DataLoadError(f"Schema not found: {schema_path}")

    try:
        with open(schema_path, 'r') as f:
            schema = json.load(f)
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise DataLoadError(f"Validation error in {data_path}: {e.message}")
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON schema {schema_path}: {e}")


def scene_from_dict(data: dict) -> SceneConfig:
    """Parse an (already validated) scene dict into dataclasses"""
    thermal = dict(data.get('thermal', {}))
    if 'sun_position' in thermal:
        thermal['sun_position'] = tuple(thermal['sun_position'])

    nutrients = [tuple(float(c) for c in p) for p in data.get('nutrients', [])]

    return SceneConfig(
        name=data.get('name', 'thermobugs'),
        seed=data.get('seed', 12345),
        terrain_size=data.get('terrain_size', SceneConfig.terrain_size),
        spawn_radius=data.get('spawn_radius'),
        thermal=FieldConfig(**thermal),
        trail=TrailConfig(**data.get('trail', {})),
        flock=FlockConfig(**data.get('flock', {})),
        life=LifeConfig(**data.get('life', {})),
        genetics=GeneticsConfig(**data.get('genetics', {})),
        nutrients=nutrients,
        description=data.get('description'),
    )


def load_scene(file_path: Optional[Path] = None, schema_dir: Optional[Path] = None) -> SceneConfig:
    """
    Load a scene definition from YAML.

    Args:
        file_path: Scene YAML (defaults to the bundled data/scene.yaml)
        schema_dir: Directory holding scene.schema.json (defaults to the bundled schemas)

    Raises:
        DataLoadError: Missing file, YAML parse error or schema violation
    """
    file_path = Path(file_path) if file_path is not None else DEFAULT_SCENE_PATH
    schema_dir = Path(schema_dir) if schema_dir is not None else SCHEMA_DIR

    data = load_yaml(file_path)
    validate_against_schema(data, schema_dir / "scene.schema.json", file_path)
    return scene_from_dict(data)
