from __future__ import annotations

import sys

from ade_client.core.config import get_settings
from ade_client.core.logging import configure_logging
from ade_client.providers.ade import ADEClient

SMOKE_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Main heading of the document"},
    },
}


def run(document: str) -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    with ADEClient(settings=settings) as client:
        parsed = client.parse_document(document)
        print(f"page_count={parsed.metadata.page_count}")
        print(f"chunk_count={len(parsed.chunks)}")
        print(f"split_count={len(parsed.splits)}")
        print(f"dangling_references={parsed.dangling_chunk_references()}")

        extraction = client.extract(SMOKE_SCHEMA, markdown=parsed.markdown)
        print(f"extraction={extraction.extraction}")
        print(f"title_references={extraction.references_for('title')}")
        print(f"schema_violation={extraction.metadata.schema_violation_error}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        sys.exit("usage: ade_smoke_test.py <document path or url>")
    run(sys.argv[1])
