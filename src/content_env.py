# src/content_env.py
"""
Writes a JSON Schema for every content model in objects.py to
content/meta/<ClassName>/schema.json, so catalog authors can validate their
JSON while editing. Runtime models (leading underscore) are skipped.
"""
import json
from pathlib import Path
from typing import List, Optional

from register import LOCAL_CONTENT, load_models


def write_schemas(output_base: Optional[Path] = None) -> List[Path]:
    output_base = output_base or LOCAL_CONTENT / "meta"
    output_base.mkdir(parents=True, exist_ok=True)
    written = []
    for name, cls in sorted(load_models().items()):
        model_dir = output_base / name
        model_dir.mkdir(parents=True, exist_ok=True)
        schema_file = model_dir / "schema.json"
        with open(schema_file, "w", encoding="utf-8") as f:
            json.dump(cls.model_json_schema(), f, indent=2)
        written.append(schema_file)
    return written


def main():
    for schema_file in write_schemas():
        print(f"✔ Wrote schema for '{schema_file.parent.name}' to {schema_file}")


if __name__ == "__main__":
    main()
