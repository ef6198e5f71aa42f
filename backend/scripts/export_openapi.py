"""
Export the store API's OpenAPI schema.

Usage:
    python scripts/export_openapi.py
    python scripts/export_openapi.py --format yaml --output ../docs/api
"""

import argparse
import json
import sys
from collections import Counter
from pathlib import Path

import yaml

# Add backend directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

DEFAULT_OUTPUT = backend_dir.parent / "docs" / "api"


def export_openapi(output_dir: Path, formats: tuple[str, ...] = ("json", "yaml")) -> list[Path]:
    """Write the schema in each requested format and return the written paths."""
    from app.main import app

    schema = app.openapi()
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []

    if "json" in formats:
        path = output_dir / "openapi.json"
        path.write_text(json.dumps(schema, indent=2), encoding="utf-8")
        written.append(path)

    if "yaml" in formats:
        path = output_dir / "openapi.yaml"
        path.write_text(
            yaml.safe_dump(schema, default_flow_style=False, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        written.append(path)

    return written


def summarize(schema: dict) -> Counter:
    """Operation count per tag."""
    tags: Counter = Counter()
    for operations in schema.get("paths", {}).values():
        for operation in operations.values():
            for tag in operation.get("tags", ["untagged"]):
                tags[tag] += 1
    return tags


def main() -> None:
    parser = argparse.ArgumentParser(description="Export the OpenAPI schema")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    parser.add_argument("--format", choices=["json", "yaml", "both"], default="both")
    args = parser.parse_args()

    formats = ("json", "yaml") if args.format == "both" else (args.format,)
    for path in export_openapi(args.output, formats):
        print(f"Exported {path}")

    from app.main import app

    schema = app.openapi()
    print(f"\n{schema['info']['title']} v{schema['info']['version']}")
    for tag, count in sorted(summarize(schema).items()):
        print(f"  {tag}: {count} operations")


if __name__ == "__main__":
    main()
