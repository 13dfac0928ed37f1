"""
Write the OpenAPI schema of the todo API to disk.

API clients and documentation tools can consume the stable contract without
running the server.

Usage:
    python -m todo_api.generate_openapi [OUTPUT_DIR]

The schema is written to OUTPUT_DIR/openapi.json (default: ./interfaces).
"""
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from .main import create_app, openapi_tags
from .settings import Settings

logger = logging.getLogger(__name__)


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Make sure every tag from openapi_tags is present in the schema's tags
    metadata, without overriding tags already defined.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


# PUBLIC_INTERFACE
def generate_openapi(output_dir: Optional[str] = None) -> str:
    """Generate the OpenAPI schema file and return the written file path."""
    # Schema generation needs no storage; always build against memory.
    app = create_app(Settings(persistence_backend="memory"))
    schema = app.openapi()
    _ensure_tags(schema)

    out_dir = output_dir or os.path.join(os.getcwd(), "interfaces")
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, "openapi.json")
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to %s", out_path)
    return out_path


def main(argv: Optional[List[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    print(generate_openapi(args[0] if args else None))


if __name__ == "__main__":
    main()
