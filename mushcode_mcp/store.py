"""
In-memory knowledge store for the MUSHCODE MCP Server.

Contains the KnowledgeStore class: the authoritative entity collections and
the secondary indices derived from them.
"""

from collections.abc import Iterable
from datetime import datetime, timezone

import structlog

from .models import (
    CodeExample,
    Dialect,
    KnowledgeStats,
    LearningPath,
    Pattern,
    SecurityRule,
)
from .utils import InvalidEntityError

logger = structlog.get_logger(__name__)

Index = dict[str, list[str]]


def _require_key(kind: str, key: str) -> None:
    if not key or not key.strip():
        raise InvalidEntityError(f"{kind} is missing its key")


def _index_add(index: Index, buckets: Iterable[str], key: str) -> None:
    for bucket in buckets:
        ids = index.setdefault(bucket, [])
        if key not in ids:
            ids.append(key)


def _index_remove(index: Index, buckets: Iterable[str], key: str) -> None:
    for bucket in buckets:
        ids = index.get(bucket)
        if ids is None:
            continue
        if key in ids:
            ids.remove(key)
        if not ids:
            del index[bucket]


class KnowledgeStore:
    """Holds every knowledge entity and keeps the lookup indices in step.

    The store is populated once (bulk inserts from a snapshot or loader) and
    then only read. Inserting under an existing key replaces the entity and
    moves its key between index buckets; there is no per-entity deletion,
    use clear() to start over.
    """

    def __init__(self, version: str = "1.0.0", sources: list[str] | None = None):
        self.version = version
        self.sources: list[str] = sources if sources is not None else ["mushcode.com"]
        self.last_updated: datetime = datetime.now(timezone.utc)

        self._patterns: dict[str, Pattern] = {}
        self._dialects: dict[str, Dialect] = {}
        self._security_rules: dict[str, SecurityRule] = {}
        self._examples: dict[str, CodeExample] = {}
        self._learning_paths: dict[str, LearningPath] = {}

        self._patterns_by_category: Index = {}
        self._patterns_by_server: Index = {}
        self._patterns_by_difficulty: Index = {}
        self._examples_by_category: Index = {}
        self._examples_by_server: Index = {}
        self._examples_by_difficulty: Index = {}

    def _touch(self) -> None:
        self.last_updated = datetime.now(timezone.utc)

    # ============== Insertion ==============

    def add_pattern(self, pattern: Pattern) -> None:
        """Insert or replace a pattern and refresh its index buckets."""
        _require_key("pattern", pattern.id)

        old = self._patterns.get(pattern.id)
        if old is not None:
            _index_remove(self._patterns_by_category, [old.category], old.id)
            _index_remove(self._patterns_by_server, old.server_compatibility, old.id)
            _index_remove(self._patterns_by_difficulty, [old.difficulty], old.id)

        self._patterns[pattern.id] = pattern
        _index_add(self._patterns_by_category, [pattern.category], pattern.id)
        _index_add(self._patterns_by_server, pattern.server_compatibility, pattern.id)
        _index_add(self._patterns_by_difficulty, [pattern.difficulty], pattern.id)
        self._touch()

    def add_example(self, example: CodeExample) -> None:
        """Insert or replace a code example and refresh its index buckets."""
        _require_key("example", example.id)

        old = self._examples.get(example.id)
        if old is not None:
            _index_remove(self._examples_by_category, [old.category], old.id)
            _index_remove(self._examples_by_server, old.server_compatibility, old.id)
            _index_remove(self._examples_by_difficulty, [old.difficulty], old.id)

        self._examples[example.id] = example
        _index_add(self._examples_by_category, [example.category], example.id)
        _index_add(self._examples_by_server, example.server_compatibility, example.id)
        _index_add(self._examples_by_difficulty, [example.difficulty], example.id)
        self._touch()

    def add_security_rule(self, rule: SecurityRule) -> None:
        _require_key("security rule", rule.rule_id)
        self._security_rules[rule.rule_id] = rule
        self._touch()

    def add_dialect(self, dialect: Dialect) -> None:
        _require_key("dialect", dialect.name)
        self._dialects[dialect.name] = dialect
        self._touch()

    def add_learning_path(self, path: LearningPath) -> None:
        _require_key("learning path", path.id)
        self._learning_paths[path.id] = path
        self._touch()

    def clear(self) -> None:
        """Drop every entity and index."""
        for collection in (
            self._patterns, self._dialects, self._security_rules, self._examples, self._learning_paths,
            self._patterns_by_category, self._patterns_by_server, self._patterns_by_difficulty,
            self._examples_by_category, self._examples_by_server, self._examples_by_difficulty,
        ):
            collection.clear()
        self._touch()
        logger.debug("store_cleared")

    # ============== Lookups ==============

    def get_pattern(self, pattern_id: str) -> Pattern | None:
        return self._patterns.get(pattern_id)

    def get_example(self, example_id: str) -> CodeExample | None:
        return self._examples.get(example_id)

    def get_security_rule(self, rule_id: str) -> SecurityRule | None:
        return self._security_rules.get(rule_id)

    def get_dialect(self, name: str) -> Dialect | None:
        return self._dialects.get(name)

    def get_learning_path(self, path_id: str) -> LearningPath | None:
        return self._learning_paths.get(path_id)

    def _resolve_patterns(self, index: Index, bucket: str) -> list[Pattern]:
        return [self._patterns[i] for i in index.get(bucket, []) if i in self._patterns]

    def _resolve_examples(self, index: Index, bucket: str) -> list[CodeExample]:
        return [self._examples[i] for i in index.get(bucket, []) if i in self._examples]

    def get_patterns_by_category(self, category: str) -> list[Pattern]:
        return self._resolve_patterns(self._patterns_by_category, category)

    def get_patterns_by_server(self, server: str) -> list[Pattern]:
        return self._resolve_patterns(self._patterns_by_server, server)

    def get_patterns_by_difficulty(self, difficulty: str) -> list[Pattern]:
        return self._resolve_patterns(self._patterns_by_difficulty, difficulty)

    def get_examples_by_category(self, category: str) -> list[CodeExample]:
        return self._resolve_examples(self._examples_by_category, category)

    def get_examples_by_server(self, server: str) -> list[CodeExample]:
        return self._resolve_examples(self._examples_by_server, server)

    def get_examples_by_difficulty(self, difficulty: str) -> list[CodeExample]:
        return self._resolve_examples(self._examples_by_difficulty, difficulty)

    def get_security_rules_by_severity(self, severity: str) -> list[SecurityRule]:
        return [r for r in self._security_rules.values() if r.severity == severity]

    def get_security_rules_by_category(self, category: str) -> list[SecurityRule]:
        return [r for r in self._security_rules.values() if r.category == category]

    def get_learning_paths_by_difficulty(self, difficulty: str) -> list[LearningPath]:
        return [p for p in self._learning_paths.values() if p.difficulty == difficulty]

    def all_patterns(self) -> list[Pattern]:
        return list(self._patterns.values())

    def all_examples(self) -> list[CodeExample]:
        return list(self._examples.values())

    def all_security_rules(self) -> list[SecurityRule]:
        return list(self._security_rules.values())

    def all_dialects(self) -> list[Dialect]:
        return list(self._dialects.values())

    def all_learning_paths(self) -> list[LearningPath]:
        return list(self._learning_paths.values())

    # ============== Stats ==============

    def get_stats(self) -> KnowledgeStats:
        """Return collection sizes plus version metadata."""
        return KnowledgeStats(
            patterns=len(self._patterns),
            dialects=len(self._dialects),
            security_rules=len(self._security_rules),
            examples=len(self._examples),
            learning_paths=len(self._learning_paths),
            last_updated=self.last_updated,
            version=self.version,
        )
