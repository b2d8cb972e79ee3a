"""
Matching engine for the MUSHCODE MCP Server.

Contains the PatternMatcher: free-text search, security scanning,
optimization and similarity lookups, related-pattern discovery and
template validation. Every operation only reads the store.
"""

import re
import time
from functools import lru_cache

import structlog

from .config import (
    OPTIMIZATION_LIMIT,
    OPTIMIZATION_THRESHOLD,
    RELATED_BY_TAG_LIMIT,
    SEVERITY_ORDER,
    SIMILAR_EXAMPLE_THRESHOLD,
)
from .models import (
    CodeExample,
    ExampleMatch,
    KnowledgeQuery,
    LearningPath,
    Pattern,
    PatternMatch,
    SearchResult,
    SecurityRule,
    TemplateValidation,
)
from .store import KnowledgeStore
from .utils import (
    HALF_CLOSED_PLACEHOLDER_PATTERN,
    NON_WORD_SPLIT_PATTERN,
    PARAMETER_NAME_PATTERN,
    PLACEHOLDER_PATTERN,
    extract_code_terms,
    term_overlap,
    tokenize_query,
)

logger = structlog.get_logger(__name__)


@lru_cache(maxsize=1024)
def compile_rule_pattern(pattern: str) -> re.Pattern | None:
    """Compile a security rule pattern case-insensitively, None if it is not a valid regex."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return None


def pattern_text(pattern: Pattern) -> str:
    """Lowercased composite text of a pattern: name, description, template and tags."""
    return " ".join([pattern.name, pattern.description, pattern.code_template, " ".join(pattern.tags)]).lower()


def example_text(example: CodeExample) -> str:
    """Lowercased composite text of an example: title, description, code and tags."""
    return " ".join([example.title, example.description, example.code, " ".join(example.tags)]).lower()


def _query_relevance(terms: list[str], text_lower: str, fuzzy: bool) -> tuple[float, list[str]]:
    """Score query tokens against composite text.

    Exact mode counts tokens that are whole words of the text; fuzzy mode
    counts tokens contained anywhere in it. matched_terms always reports
    substring hits.
    """
    if not terms:
        return 0.0, []
    if fuzzy:
        return term_overlap(terms, text_lower)
    words = set(NON_WORD_SPLIT_PATTERN.split(text_lower))
    hits = sum(1 for term in terms if term in words)
    return hits / len(terms), [term for term in terms if term in text_lower]


class PatternMatcher:
    """Query operations over a KnowledgeStore."""

    def __init__(self, store: KnowledgeStore):
        self.store = store

    # ============== Free-text search ==============

    def search(self, query: KnowledgeQuery) -> SearchResult:
        """Search patterns and examples with AND-combined filters.

        When both kinds are requested and there are more hits than query.limit,
        the limit is shared in proportion to each kind's hit count.
        """
        start_time = time.perf_counter()

        patterns = self.search_patterns(query) if query.include_patterns else []
        examples = self.search_examples(query) if query.include_examples else []
        total = len(patterns) + len(examples)

        if query.limit is not None and total > query.limit:
            limit = max(query.limit, 0)
            pattern_limit = -(-limit * len(patterns) // total)  # ceil
            patterns = patterns[:pattern_limit]
            examples = examples[:limit - pattern_limit]

        suggestions: list[str] = []
        if total == 0:
            for name in ("category", "server_type", "difficulty", "tags"):
                if getattr(query, name):
                    suggestions.append(f"Remove the {name} filter to broaden the search")
            if not query.fuzzy_match:
                suggestions.append("Enable fuzzy matching to match partial words")

        execution_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.debug("search_completed", query=query.query, patterns=len(patterns), examples=len(examples))
        return SearchResult(
            patterns=patterns,
            examples=examples,
            suggestions=suggestions,
            total_results=total,
            execution_time_ms=execution_time_ms,
        )

    def search_patterns(self, query: KnowledgeQuery) -> list[PatternMatch]:
        """Score every pattern passing the filters; unlimited, best first."""
        terms = tokenize_query(query.query)
        matches: list[PatternMatch] = []

        for pattern in self.store.all_patterns():
            if query.category and pattern.category != query.category:
                continue
            if query.server_type and query.server_type not in pattern.server_compatibility:
                continue
            if query.difficulty and pattern.difficulty != query.difficulty:
                continue
            if query.tags and not any(tag in pattern.tags for tag in query.tags):
                continue

            relevance, matched = _query_relevance(terms, pattern_text(pattern), query.fuzzy_match)
            if relevance > 0:
                matches.append(PatternMatch(
                    pattern_id=pattern.id,
                    confidence=relevance,
                    relevance=relevance,
                    matched_terms=matched,
                ))

        matches.sort(key=lambda m: m.relevance, reverse=True)
        return matches

    def search_examples(self, query: KnowledgeQuery) -> list[ExampleMatch]:
        """Score every example passing the filters; unlimited, best first."""
        terms = tokenize_query(query.query)
        matches: list[ExampleMatch] = []

        for example in self.store.all_examples():
            if query.category and example.category != query.category:
                continue
            if query.server_type and query.server_type not in example.server_compatibility:
                continue
            if query.difficulty and example.difficulty != query.difficulty:
                continue
            if query.tags and not any(tag in example.tags for tag in query.tags):
                continue

            relevance, matched = _query_relevance(terms, example_text(example), query.fuzzy_match)
            if relevance > 0:
                matches.append(ExampleMatch(example_id=example.id, relevance=relevance, matched_terms=matched))

        matches.sort(key=lambda m: m.relevance, reverse=True)
        return matches

    def find_patterns_for_generation(
        self,
        description: str,
        server_type: str | None = None,
        function_type: str | None = None,
        difficulty: str | None = None,
    ) -> list[PatternMatch]:
        """Patterns matching a natural-language description (fuzzy, top 10)."""
        query = KnowledgeQuery(
            query=description,
            category=function_type,
            server_type=server_type,
            difficulty=difficulty,
            include_examples=False,
            fuzzy_match=True,
            limit=10,
        )
        return self.search(query).patterns

    # ============== Code-driven lookups ==============

    def find_security_violations(self, code: str, server_type: str | None = None) -> list[SecurityRule]:
        """Rules whose pattern matches at least one line of the code, most severe first.

        Rules limited to other servers are skipped. A rule whose pattern does
        not compile is logged and skipped; the remaining rules still run.
        """
        lines = code.split("\n")
        violations: list[SecurityRule] = []

        for rule in self.store.all_security_rules():
            if server_type and rule.affected_servers and server_type not in rule.affected_servers:
                continue

            compiled = compile_rule_pattern(rule.pattern)
            if compiled is None:
                logger.warning("security_rule_pattern_invalid", rule_id=rule.rule_id, pattern=rule.pattern)
                continue

            if any(line and compiled.search(line) for line in lines):
                violations.append(rule)

        violations.sort(key=lambda r: SEVERITY_ORDER[r.severity], reverse=True)
        return violations

    def find_optimization_patterns(self, code: str, server_type: str | None = None) -> list[PatternMatch]:
        """Patterns sharing enough vocabulary with the code to suggest a rewrite."""
        code_terms = extract_code_terms(code)
        matches: list[PatternMatch] = []

        for pattern in self.store.all_patterns():
            if server_type and server_type not in pattern.server_compatibility:
                continue

            relevance, matched = term_overlap(code_terms, pattern_text(pattern))
            if relevance > OPTIMIZATION_THRESHOLD:
                matches.append(PatternMatch(
                    pattern_id=pattern.id,
                    confidence=relevance,
                    relevance=relevance,
                    matched_terms=matched,
                ))

        matches.sort(key=lambda m: m.relevance, reverse=True)
        return matches[:OPTIMIZATION_LIMIT]

    def find_similar_examples(
        self,
        code: str,
        server_type: str | None = None,
        limit: int = 5,
    ) -> list[CodeExample]:
        """Examples whose text covers enough of the code's terms, best first."""
        code_terms = extract_code_terms(code)
        scored: list[tuple[CodeExample, float]] = []

        for example in self.store.all_examples():
            if server_type and server_type not in example.server_compatibility:
                continue

            relevance, _ = term_overlap(code_terms, example_text(example))
            if relevance > SIMILAR_EXAMPLE_THRESHOLD:
                scored.append((example, relevance))

        scored.sort(key=lambda x: x[1], reverse=True)
        return [example for example, _ in scored[:limit]]

    # ============== Pattern lookups ==============

    def find_pattern_by_name(self, name: str) -> Pattern | None:
        """Case-insensitive exact name match; the first inserted pattern wins."""
        name_lower = name.lower()
        for pattern in self.store.all_patterns():
            if pattern.name.lower() == name_lower:
                return pattern
        return None

    def find_patterns_by_tag(self, tag: str) -> list[Pattern]:
        tag_lower = tag.lower()
        return [
            pattern for pattern in self.store.all_patterns()
            if any(t.lower() == tag_lower for t in pattern.tags)
        ]

    def find_related_patterns(self, pattern_id: str) -> list[Pattern]:
        """Explicitly related patterns, then up to three more sharing the most tags."""
        source = self.store.get_pattern(pattern_id)
        if source is None:
            return []

        related: list[Pattern] = []
        seen: set[int] = {id(source)}

        for related_id in source.related_patterns:
            pattern = self.store.get_pattern(related_id)
            if pattern is not None and id(pattern) not in seen:
                seen.add(id(pattern))
                related.append(pattern)

        added = 0
        for pattern in self._patterns_by_shared_tags(source):
            if added >= RELATED_BY_TAG_LIMIT:
                break
            if id(pattern) in seen:
                continue
            seen.add(id(pattern))
            related.append(pattern)
            added += 1

        return related

    def _patterns_by_shared_tags(self, source: Pattern) -> list[Pattern]:
        source_tags = {t.lower() for t in source.tags}
        scored: list[tuple[Pattern, int]] = []

        for pattern in self.store.all_patterns():
            if pattern.id == source.id:
                continue
            common = sum(1 for tag in pattern.tags if tag.lower() in source_tags)
            if common > 0:
                scored.append((pattern, common))

        scored.sort(key=lambda x: x[1], reverse=True)
        return [pattern for pattern, _ in scored]

    def find_learning_paths(self, example_ids: list[str]) -> list[LearningPath]:
        """Learning paths with at least one step referencing one of the examples."""
        wanted = set(example_ids)
        return [
            path for path in self.store.all_learning_paths()
            if any(wanted.intersection(step.example_ids) for step in path.steps)
        ]

    # ============== Template validation ==============

    def validate_pattern_template(self, template: str) -> TemplateValidation:
        """Report structural problems in a pattern template without rendering it."""
        errors: list[str] = []

        if template.count("{") != template.count("}") or HALF_CLOSED_PLACEHOLDER_PATTERN.search(template):
            errors.append("Unbalanced braces in template")

        for param_name in PLACEHOLDER_PATTERN.findall(template):
            if not PARAMETER_NAME_PATTERN.fullmatch(param_name):
                errors.append(f"Invalid parameter name: {param_name}")

        if "@@" in template:
            errors.append("Double @ symbols detected - potential syntax error")

        return TemplateValidation(valid=not errors, errors=errors)
