"""
Snapshot persistence for the MUSHCODE MCP Server.

Saves a KnowledgeStore as JSON files (one array per entity kind, a metadata
record and a combined file) and restores a fresh store from them.
"""

import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import aiofiles
import structlog
from pydantic import BaseModel, ValidationError

from .models import (
    CodeExample,
    Dialect,
    LearningPath,
    Pattern,
    SecurityRule,
    SnapshotMetadata,
)
from .store import KnowledgeStore
from .utils import InvalidEntityError

logger = structlog.get_logger(__name__)

COMBINED_FILE = "knowledge-base.json"
METADATA_FILE = "metadata.json"

# snapshot key -> (file name, model, store collection accessor name, store insert method name)
COLLECTIONS: dict[str, tuple[str, type[BaseModel], str, str]] = {
    "patterns": ("patterns.json", Pattern, "all_patterns", "add_pattern"),
    "dialects": ("dialects.json", Dialect, "all_dialects", "add_dialect"),
    "securityRules": ("security-rules.json", SecurityRule, "all_security_rules", "add_security_rule"),
    "examples": ("examples.json", CodeExample, "all_examples", "add_example"),
    "learningPaths": ("learning-paths.json", LearningPath, "all_learning_paths", "add_learning_path"),
}


class KnowledgePersistence:
    """Reads and writes knowledge snapshots under a data directory."""

    def __init__(self, data_dir: Path | str = Path("data") / "knowledge"):
        self.data_dir = Path(data_dir)

    # ============== Save ==============

    async def save(self, store: KnowledgeStore) -> None:
        """Write every collection, the metadata record and the combined file."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

        stats = store.get_stats()
        data: dict[str, Any] = {
            key: [entity.model_dump(mode="json", by_alias=True) for entity in getattr(store, accessor)()]
            for key, (_, _, accessor, _) in COLLECTIONS.items()
        }
        metadata = SnapshotMetadata(
            version=stats.version,
            last_updated=stats.last_updated,
            sources=list(store.sources),
            total_files=stats.patterns + stats.examples,
        )
        data["metadata"] = metadata.model_dump(mode="json", by_alias=True)

        writes = [self._save_json_file(filename, data[key]) for key, (filename, *_) in COLLECTIONS.items()]
        writes.append(self._save_json_file(METADATA_FILE, data["metadata"]))
        await asyncio.gather(*writes)
        await self._save_json_file(COMBINED_FILE, data)

        logger.info(
            "snapshot_saved",
            data_dir=str(self.data_dir),
            patterns=stats.patterns,
            examples=stats.examples,
        )

    # ============== Load ==============

    async def load(self) -> KnowledgeStore:
        """Build a fresh store from the snapshot.

        Per-collection files are preferred; the combined file is the fallback.
        A missing snapshot yields an empty store. Records that fail validation
        are logged and skipped.
        """
        store = KnowledgeStore()

        try:
            data = await self._load_split_files()
            source = "split"
        except (OSError, json.JSONDecodeError) as e:
            logger.info("snapshot_split_files_unavailable", data_dir=str(self.data_dir), error=str(e))
            try:
                data = await self._load_json_file(COMBINED_FILE)
                source = "combined"
            except (OSError, json.JSONDecodeError) as combined_error:
                logger.warning("snapshot_not_found", data_dir=str(self.data_dir), error=str(combined_error))
                return store

        rejected = 0
        for key, (_, model, _, insert) in COLLECTIONS.items():
            rejected += self._populate(data.get(key, []), model, getattr(store, insert))

        raw_metadata = data.get("metadata")
        if raw_metadata:
            try:
                metadata = SnapshotMetadata.model_validate(raw_metadata)
            except ValidationError as e:
                logger.warning("snapshot_metadata_invalid", error=str(e))
            else:
                store.version = metadata.version
                store.sources = list(metadata.sources)
                store.last_updated = metadata.last_updated

        stats = store.get_stats()
        logger.info(
            "snapshot_loaded",
            source=source,
            patterns=stats.patterns,
            dialects=stats.dialects,
            security_rules=stats.security_rules,
            examples=stats.examples,
            learning_paths=stats.learning_paths,
            rejected=rejected,
        )
        return store

    def _populate(self, records: list[dict], model: type[BaseModel], insert: Callable[[Any], None]) -> int:
        """Validate and insert records, returning how many were rejected."""
        rejected = 0
        for record in records:
            try:
                insert(model.model_validate(record))
            except (ValidationError, InvalidEntityError) as e:
                rejected += 1
                logger.warning("snapshot_record_invalid", kind=model.__name__, error=str(e))
        return rejected

    async def _load_split_files(self) -> dict[str, Any]:
        keys = list(COLLECTIONS)
        results = await asyncio.gather(
            *(self._load_json_file(COLLECTIONS[key][0]) for key in keys),
            self._load_json_file(METADATA_FILE),
        )
        data = dict(zip(keys, results))
        data["metadata"] = results[-1]
        return data

    # ============== Inspection ==============

    async def exists(self) -> bool:
        return (self.data_dir / COMBINED_FILE).exists()

    async def get_info(self) -> SnapshotMetadata | None:
        """Return the snapshot metadata, or None if no readable snapshot exists."""
        try:
            raw = await self._load_json_file(METADATA_FILE)
        except (OSError, json.JSONDecodeError):
            try:
                raw = (await self._load_json_file(COMBINED_FILE)).get("metadata")
            except (OSError, json.JSONDecodeError):
                return None
        if not raw:
            return None
        try:
            return SnapshotMetadata.model_validate(raw)
        except ValidationError:
            return None

    async def list_files(self) -> list[str]:
        if not self.data_dir.is_dir():
            return []
        return sorted(p.name for p in self.data_dir.iterdir() if p.suffix == ".json")

    async def get_file_sizes(self) -> dict[str, int]:
        sizes: dict[str, int] = {}
        for name in await self.list_files():
            try:
                sizes[name] = (self.data_dir / name).stat().st_size
            except OSError:
                sizes[name] = 0
        return sizes

    async def export_to(self, target_dir: Path | str, store: KnowledgeStore) -> None:
        """Save the store into another directory."""
        await KnowledgePersistence(target_dir).save(store)

    async def import_from(self, source_dir: Path | str) -> KnowledgeStore:
        """Load a store from another directory."""
        return await KnowledgePersistence(source_dir).load()

    # ============== File helpers ==============

    async def _save_json_file(self, filename: str, data: Any) -> None:
        async with aiofiles.open(self.data_dir / filename, mode="w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2, ensure_ascii=False))

    async def _load_json_file(self, filename: str) -> Any:
        async with aiofiles.open(self.data_dir / filename, encoding="utf-8") as f:
            return json.loads(await f.read())
