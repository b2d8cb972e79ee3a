"""
Tests for snapshot persistence.
"""

import json

import pytest


@pytest.fixture
def persistence(tmp_path):
    """Create a KnowledgePersistence rooted in a temporary directory."""
    from mushcode_mcp.persistence import KnowledgePersistence
    return KnowledgePersistence(tmp_path / "knowledge")


# ============== Tests for save() and load() ==============

class TestSaveLoad:
    """Tests for writing and restoring snapshots."""

    async def test_round_trip(self, persistence, store):
        """Test that a saved store loads back with the same entities."""
        await persistence.save(store)
        loaded = await persistence.load()

        before, after = store.get_stats(), loaded.get_stats()
        assert after.patterns == before.patterns
        assert after.dialects == before.dialects
        assert after.security_rules == before.security_rules
        assert after.examples == before.examples
        assert after.learning_paths == before.learning_paths
        assert after.version == before.version
        assert after.last_updated == before.last_updated
        assert loaded.sources == store.sources

        assert loaded.get_pattern("create-object").model_dump() == store.get_pattern("create-object").model_dump()
        assert loaded.get_dialect("PennMUSH").model_dump() == store.get_dialect("PennMUSH").model_dump()
        assert loaded.get_security_rule("SEC-001").model_dump() == store.get_security_rule("SEC-001").model_dump()
        assert loaded.get_learning_path("lp-basics").model_dump() == store.get_learning_path("lp-basics").model_dump()

    async def test_round_trip_rebuilds_indices(self, persistence, store):
        """Test that loading rebuilds the secondary indices."""
        await persistence.save(store)
        loaded = await persistence.load()

        assert [p.id for p in loaded.get_patterns_by_category("command")] == ["create-object", "dig-room"]
        assert [e.id for e in loaded.get_examples_by_server("TinyMUSH")] == ["ex-create"]

    async def test_save_writes_every_file(self, persistence, store):
        """Test the snapshot file layout."""
        await persistence.save(store)

        assert await persistence.list_files() == [
            "dialects.json",
            "examples.json",
            "knowledge-base.json",
            "learning-paths.json",
            "metadata.json",
            "patterns.json",
            "security-rules.json",
        ]
        assert await persistence.exists() is True

    async def test_files_use_camel_case(self, persistence, store):
        """Test that records are written with camelCase field names."""
        await persistence.save(store)

        patterns = json.loads((persistence.data_dir / "patterns.json").read_text())
        assert patterns[0]["codeTemplate"] == "@create {{name}}={{description}}"
        assert "serverCompatibility" in patterns[0]

        rules = json.loads((persistence.data_dir / "security-rules.json").read_text())
        assert rules[0]["ruleId"] == "SEC-001"

        combined = json.loads((persistence.data_dir / "knowledge-base.json").read_text())
        assert set(combined) == {"patterns", "dialects", "securityRules", "examples", "learningPaths", "metadata"}
        assert combined["metadata"]["totalFiles"] == 8

    async def test_falls_back_to_combined_file(self, persistence, store):
        """Test that a missing collection file triggers the combined-file fallback."""
        await persistence.save(store)
        (persistence.data_dir / "patterns.json").unlink()

        loaded = await persistence.load()

        assert loaded.get_stats().patterns == 5
        assert loaded.get_pattern("dig-room").model_dump() == store.get_pattern("dig-room").model_dump()

    async def test_empty_directory_loads_empty_store(self, persistence):
        """Test that loading without a snapshot yields an empty store."""
        loaded = await persistence.load()

        stats = loaded.get_stats()
        assert stats.patterns == 0
        assert stats.examples == 0
        assert await persistence.exists() is False
        assert await persistence.list_files() == []

    async def test_invalid_records_skipped(self, persistence):
        """Test that records failing validation are skipped and the rest load."""
        persistence.data_dir.mkdir(parents=True)
        snapshot = {
            "patterns": [
                {"id": "ok", "name": "OK", "category": "utility", "codeTemplate": "think ok"},
                {"name": "No ID", "category": "utility", "codeTemplate": "think"},
                {"id": "", "name": "Blank ID", "category": "utility", "codeTemplate": "think"},
            ],
            "securityRules": [
                {"ruleId": "R1", "name": "Bad severity", "severity": "urgent", "category": "logic", "pattern": "x"},
            ],
            "metadata": {"version": "2.0.0", "lastUpdated": "2024-01-15T00:00:00+00:00", "sources": ["test"]},
        }
        (persistence.data_dir / "knowledge-base.json").write_text(json.dumps(snapshot))

        loaded = await persistence.load()

        assert [p.id for p in loaded.all_patterns()] == ["ok"]
        assert loaded.all_security_rules() == []
        assert loaded.version == "2.0.0"
        assert loaded.sources == ["test"]

    async def test_snake_case_input_accepted(self, persistence):
        """Test that hand-written snapshots may use snake_case names."""
        persistence.data_dir.mkdir(parents=True)
        snapshot = {
            "examples": [{"id": "e1", "title": "T", "code": "think hi", "server_compatibility": ["PennMUSH"]}],
        }
        (persistence.data_dir / "knowledge-base.json").write_text(json.dumps(snapshot))

        loaded = await persistence.load()

        assert [e.id for e in loaded.get_examples_by_server("PennMUSH")] == ["e1"]


# ============== Tests for inspection helpers ==============

class TestSnapshotInfo:
    """Tests for metadata, sizes, export and import."""

    async def test_get_info(self, persistence, store):
        """Test reading snapshot metadata."""
        await persistence.save(store)

        info = await persistence.get_info()

        assert info is not None
        assert info.version == "1.0.0"
        assert info.sources == ["mushcode.com"]

    async def test_get_info_without_snapshot(self, persistence):
        """Test that metadata is None when nothing has been saved."""
        assert await persistence.get_info() is None

    async def test_get_file_sizes(self, persistence, store):
        """Test that every snapshot file reports a non-zero size."""
        await persistence.save(store)

        sizes = await persistence.get_file_sizes()

        assert len(sizes) == 7
        assert all(size > 0 for size in sizes.values())

    async def test_export_and_import(self, persistence, store, tmp_path):
        """Test exporting to and importing from another directory."""
        target = tmp_path / "export"

        await persistence.export_to(target, store)
        imported = await persistence.import_from(target)

        assert (target / "knowledge-base.json").exists()
        assert imported.get_stats().patterns == 5
