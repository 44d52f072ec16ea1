"""Write the service's OpenAPI document to a JSON file (default: ./openapi.json)."""

import argparse
import json
from pathlib import Path

from main import create_app

DEFAULT_PATH = Path(__file__).resolve().parent.parent / "openapi.json"


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output", type=Path, default=DEFAULT_PATH)
    args = parser.parse_args()

    schema = create_app().openapi()
    args.output.write_text(json.dumps(schema, indent=2) + "\n")
    print(f"Wrote {args.output} ({len(schema['paths'])} paths)")


if __name__ == "__main__":
    main()
