"""Test helper functions."""

import json
from pathlib import Path
from typing import Any, Dict, Optional


def write_data_file(data_dir: Path, filename: str, records: list) -> Path:
    """Write a collection file in the flat-file storage format."""
    path = data_dir / filename
    path.write_text(json.dumps({"data": records, "_metadata": {"recordCount": len(records)}}), encoding="utf-8")
    return path


def read_data_file(data_dir: Path, filename: str) -> Dict[str, Any]:
    return json.loads((data_dir / filename).read_text(encoding="utf-8"))


def create_cron_request(query: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Create a Vercel cron request object for testing."""
    return {
        "method": "GET",
        "path": "/api/expiry/check",
        "headers": {},
        "body": "",
        "query": query or {}
    }
