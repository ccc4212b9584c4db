from __future__ import annotations

from pathlib import Path

from stressprobe.storage.duckdb_store import Storage


def default_storage() -> Storage:
    return Storage(Path(".stressprobe/stressprobe.duckdb"))


__all__ = ["Storage", "default_storage"]
