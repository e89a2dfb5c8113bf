# src/register.py
"""
Scans the local `content/` directory plus the optional mod folders, loads all
JSON definitions into Pydantic models, and registers them in a central registry.
Ignores any subfolder named "meta" or starting with a dot.
Models with an `id` field are stored in a dict by id, overriding earlier
definitions when duplicates occur; other models are stored in lists.
"""
import json
import inspect
import logging
from pathlib import Path
from typing import Dict, List, Type, Union

from pydantic import BaseModel, ValidationError

import objects as G

logger = logging.getLogger(__name__)

# Hard-coded mod directories (relative to project root), loaded after local content
MOD_PATHS = [
    Path(__file__).resolve().parent.parent / "content_custom" / "modA",
    Path(__file__).resolve().parent.parent / "content_custom" / "modB",
]
# Local content directory
LOCAL_CONTENT = Path(__file__).resolve().parent.parent / "content"
ALL_SOURCES = [LOCAL_CONTENT] + MOD_PATHS

Registry = Dict[str, Union[List[BaseModel], Dict[str, BaseModel]]]


def is_valid_folder(path: Path) -> bool:
    return (
        path.is_dir()
        and not path.name.startswith('.')
        and path.name != 'meta'
    )


def load_models() -> Dict[str, Type[BaseModel]]:
    """Map every public content model in objects.py to its class."""
    models: Dict[str, Type[BaseModel]] = {}
    for name, cls in inspect.getmembers(G, inspect.isclass):
        if issubclass(cls, BaseModel) and cls is not BaseModel and not name.startswith("_"):
            models[name] = cls
    return models


def register_content(folders: List[Path]) -> Registry:
    """
    Load all JSON files in each valid subfolder of the given folders,
    parse them with the corresponding Pydantic model based on folder name,
    and collect them into a registry dict:
      - For models with an `id` field: { model_name: { id: instance, ... } }
      - For others: { model_name: [instance, ...] }
    """
    models = load_models()
    id_models = {name for name, cls in models.items() if 'id' in cls.model_fields}

    registry: Registry = {}
    for name in models:
        registry[name] = {} if name in id_models else []

    for folder in folders:
        if not folder.exists():
            continue
        for sub in sorted(folder.iterdir()):
            if not is_valid_folder(sub):
                continue
            model_name = sub.name
            model_cls = models.get(model_name)
            if model_cls is None:
                logger.debug("Skipping unknown content folder %s", sub)
                continue
            for json_file in sorted(sub.glob("*.json")):
                try:
                    data = json.loads(json_file.read_text(encoding="utf-8"))
                    instance = model_cls.model_validate(data)
                except (OSError, json.JSONDecodeError, ValidationError) as e:
                    logger.warning("Error parsing %s: %s", json_file, e)
                    continue
                if model_name in id_models:
                    key = getattr(instance, 'id')
                    if key in registry[model_name]:
                        logger.info("%s '%s' overridden by %s", model_name, key, json_file)
                    registry[model_name][key] = instance
                else:
                    registry[model_name].append(instance)

    return registry


# Loaded once at import; every engine module reads the catalog from here
REGISTRY: Registry = register_content(ALL_SOURCES)
ResourceDefs: Dict[str, G.Resource] = REGISTRY.get("Resource", {})  # type: ignore
AssetTypeDefs: Dict[str, G.AssetType] = REGISTRY.get("AssetType", {})  # type: ignore
IndustryDefs: Dict[str, G.Industry] = REGISTRY.get("Industry", {})  # type: ignore
TerritoryDefs: Dict[str, G.Territory] = REGISTRY.get("Territory", {})  # type: ignore
PersonalityDefs: Dict[str, G.Personality] = REGISTRY.get("Personality", {})  # type: ignore
PolicyDefs: Dict[str, G.PolicyDefinition] = REGISTRY.get("PolicyDefinition", {})  # type: ignore
OutletDefs: Dict[str, G.MediaOutlet] = REGISTRY.get("MediaOutlet", {})  # type: ignore
EventTemplateDefs: Dict[str, G.EventTemplate] = REGISTRY.get("EventTemplate", {})  # type: ignore


def main():
    logging.basicConfig(level=logging.INFO)
    for model_name, collection in REGISTRY.items():
        print(f"Loaded {len(collection)} {model_name} entries.")


if __name__ == "__main__":
    main()
