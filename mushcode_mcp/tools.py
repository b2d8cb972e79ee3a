"""
MCP Tools module for the MUSHCODE MCP Server.

Contains the MCP tool handlers (list_tools and call_tool) bound to an
explicitly constructed knowledge store.
"""

import json
from typing import Any

from mcp.server import Server
from mcp.types import (
    Resource,
    TextContent,
    Tool,
)

from .compressor import MushcodeCompressor
from .config import (
    COMPRESSION_LEVELS,
    DETAIL_LEVELS,
    DIFFICULTIES,
    FORMAT_STYLES,
    PATTERN_CATEGORIES,
    SECURITY_LEVELS,
    settings,
)
from .explainer import MushcodeExplainer
from .formatter import MushcodeFormatter
from .generator import MushcodeGenerator
from .matcher import PatternMatcher
from .models import GenerationRequest, KnowledgeQuery, Pattern
from .store import KnowledgeStore
from .utils import GenerationError, InputValidationError, validate_input_length
from .validator import MushcodeValidator

SERVER_TYPE_PROPERTY = {
    "type": "string",
    "description": "MUSH server dialect (e.g. PennMUSH, TinyMUSH, RhostMUSH, TinyMUX)",
}
CODE_PROPERTY = {"type": "string", "description": "MUSHCODE source to analyze"}


def _text(output: str) -> list[TextContent]:
    return [TextContent(type="text", text=output)]


def _format_pattern(pattern: Pattern) -> str:
    output = f"**{pattern.name}** ({pattern.id})\n"
    output += f"  Category: {pattern.category} | Difficulty: {pattern.difficulty} | Security: {pattern.security_level}\n"
    output += f"  Servers: {', '.join(pattern.server_compatibility) or 'any'}\n"
    output += f"  Tags: {', '.join(pattern.tags) or 'none'}\n"
    output += f"  Template: `{pattern.code_template}`\n"
    return output


def _check_server_type(store: KnowledgeStore, server_type: str | None) -> str | None:
    if server_type and server_type not in settings.supported_server_types and store.get_dialect(server_type) is None:
        raise InputValidationError(
            f"Unknown server type '{server_type}'. Supported: {', '.join(settings.supported_server_types)}"
        )
    return server_type


def _max_results(arguments: dict[str, Any], default: int = 10) -> int:
    value = arguments.get("max_results", default)
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise InputValidationError("max_results must be a positive integer")
    return min(value, settings.max_results)


def _string_arg(arguments: dict[str, Any], name: str, default: str | None = None) -> str | None:
    """Optional string argument; a missing or null value gives the default."""
    value = arguments.get(name)
    if value is None:
        return default
    if not isinstance(value, str):
        raise InputValidationError(f"{name} must be a string")
    return value


def _int_arg(arguments: dict[str, Any], name: str, default: int) -> int:
    value = arguments.get(name, default)
    if not isinstance(value, int) or isinstance(value, bool):
        raise InputValidationError(f"{name} must be an integer")
    return value


class KnowledgeTools:
    """Tool handlers answering from one knowledge store."""

    def __init__(self, store: KnowledgeStore):
        self.store = store
        self.matcher = PatternMatcher(store)
        self.generator = MushcodeGenerator(store, self.matcher)
        self.validator = MushcodeValidator(store, self.matcher)
        self.explainer = MushcodeExplainer(store, self.matcher)
        self.formatter = MushcodeFormatter(store)
        self.compressor = MushcodeCompressor(store)

    def list_tools(self) -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="search_knowledge",
                description="Search MUSHCODE patterns and examples by keywords. Returns matches ranked by relevance.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Search keywords"},
                        "category": {"type": "string", "description": "Restrict to a category"},
                        "server_type": SERVER_TYPE_PROPERTY,
                        "difficulty": {"type": "string", "enum": list(DIFFICULTIES)},
                        "fuzzy": {
                            "type": "boolean",
                            "description": "Match partial words (default: false)",
                            "default": False,
                        },
                        "max_results": {
                            "type": "integer",
                            "description": "Maximum number of results (default: 10)",
                            "default": 10,
                        },
                    },
                    "required": ["query"],
                },
            ),
            Tool(
                name="generate_mushcode",
                description="Generate MUSHCODE from a description by filling the best-matching pattern template.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "description": {"type": "string", "description": "What the code should do"},
                        "server_type": SERVER_TYPE_PROPERTY,
                        "function_type": {"type": "string", "enum": list(PATTERN_CATEGORIES)},
                        "security_level": {
                            "type": "string",
                            "description": "Highest permission level the code may require",
                            "enum": list(SECURITY_LEVELS),
                        },
                        "parameters": {
                            "type": "object",
                            "description": "Values for the template placeholders",
                            "additionalProperties": {"type": "string"},
                        },
                        "include_comments": {"type": "boolean", "default": False},
                    },
                    "required": ["description"],
                },
            ),
            Tool(
                name="validate_template",
                description="Check a pattern template for unbalanced braces, bad placeholder names and @@ typos.",
                inputSchema={
                    "type": "object",
                    "properties": {"template": {"type": "string", "description": "Template with {{param}} placeholders"}},
                    "required": ["template"],
                },
            ),
            Tool(
                name="scan_security",
                description="Scan MUSHCODE for known unsafe idioms. Results are ordered by severity.",
                inputSchema={
                    "type": "object",
                    "properties": {"code": CODE_PROPERTY, "server_type": SERVER_TYPE_PROPERTY},
                    "required": ["code"],
                },
            ),
            Tool(
                name="optimize_mushcode",
                description="Suggest patterns that could replace or improve the given code, plus security findings.",
                inputSchema={
                    "type": "object",
                    "properties": {"code": CODE_PROPERTY, "server_type": SERVER_TYPE_PROPERTY},
                    "required": ["code"],
                },
            ),
            Tool(
                name="get_examples",
                description="Find worked MUSHCODE examples for a topic or a code snippet, with matching learning paths.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "topic": {"type": "string", "description": "Topic or concept (e.g. 'object creation')"},
                        "code": {"type": "string", "description": "Code to find similar examples for"},
                        "difficulty": {"type": "string", "enum": list(DIFFICULTIES)},
                        "category": {"type": "string"},
                        "server_type": SERVER_TYPE_PROPERTY,
                        "max_results": {"type": "integer", "default": 5},
                        "include_learning_path": {"type": "boolean", "default": True},
                    },
                },
            ),
            Tool(
                name="related_patterns",
                description="List patterns related to a pattern (explicit references, then shared tags).",
                inputSchema={
                    "type": "object",
                    "properties": {"pattern_id": {"type": "string"}},
                    "required": ["pattern_id"],
                },
            ),
            Tool(
                name="get_pattern",
                description="Show a pattern by ID or by name (case-insensitive).",
                inputSchema={
                    "type": "object",
                    "properties": {"pattern": {"type": "string", "description": "Pattern ID or name"}},
                    "required": ["pattern"],
                },
            ),
            Tool(
                name="patterns_by_tag",
                description="Find all patterns carrying a tag.",
                inputSchema={
                    "type": "object",
                    "properties": {"tag": {"type": "string"}},
                    "required": ["tag"],
                },
            ),
            Tool(
                name="validate_mushcode",
                description="Check MUSHCODE for syntax errors, security issues and best practices, with scores.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "code": CODE_PROPERTY,
                        "server_type": SERVER_TYPE_PROPERTY,
                        "strict": {"type": "boolean", "description": "Also flag very long lines", "default": False},
                        "check_security": {"type": "boolean", "default": True},
                        "check_best_practices": {"type": "boolean", "default": True},
                    },
                    "required": ["code"],
                },
            ),
            Tool(
                name="explain_mushcode",
                description="Explain MUSHCODE line by line: commands, functions, concepts and security notes.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "code": CODE_PROPERTY,
                        "detail_level": {"type": "string", "enum": list(DETAIL_LEVELS), "default": "intermediate"},
                        "server_type": SERVER_TYPE_PROPERTY,
                        "include_examples": {"type": "boolean", "default": True},
                    },
                    "required": ["code"],
                },
            ),
            Tool(
                name="format_mushcode",
                description="Reformat MUSHCODE in a readable, compact or custom style.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "code": CODE_PROPERTY,
                        "style": {"type": "string", "enum": list(FORMAT_STYLES), "default": "readable"},
                        "indent_size": {"type": "integer", "minimum": 0, "maximum": 8, "default": 2},
                        "line_length": {"type": "integer", "minimum": 40, "maximum": 200, "default": 80},
                        "preserve_comments": {"type": "boolean", "default": True},
                        "server_type": SERVER_TYPE_PROPERTY,
                    },
                    "required": ["code"],
                },
            ),
            Tool(
                name="compress_mushcode",
                description="Minify MUSHCODE by removing comments, blank lines and redundant spacing.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "code": CODE_PROPERTY,
                        "compression_level": {
                            "type": "string",
                            "enum": list(COMPRESSION_LEVELS),
                            "default": "moderate",
                        },
                        "remove_comments": {"type": "boolean", "default": True},
                        "preserve_functionality": {"type": "boolean", "default": True},
                        "server_type": SERVER_TYPE_PROPERTY,
                    },
                    "required": ["code"],
                },
            ),
            Tool(
                name="list_dialects",
                description="List known MUSH server dialects with their unique features and limitations.",
                inputSchema={"type": "object", "properties": {}},
            ),
            Tool(
                name="knowledge_stats",
                description="Get knowledge base statistics (entity counts, version, last update).",
                inputSchema={"type": "object", "properties": {}},
            ),
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """Handle a tool call, turning validation and generation failures into error text."""
        try:
            return self.dispatch(name, arguments or {})
        except (InputValidationError, GenerationError) as e:
            return _text(f"Error: {e}")

    def dispatch(self, name: str, arguments: dict[str, Any]) -> list[TextContent]:
        store, matcher, generator = self.store, self.matcher, self.generator

        if name == "search_knowledge":
            query = validate_input_length(arguments.get("query", ""), "query")
            result = matcher.search(KnowledgeQuery(
                query=query,
                category=_string_arg(arguments, "category"),
                server_type=_check_server_type(store, _string_arg(arguments, "server_type")),
                difficulty=_string_arg(arguments, "difficulty"),
                fuzzy_match=bool(arguments.get("fuzzy", False)),
                limit=_max_results(arguments),
            ))

            if not result.patterns and not result.examples:
                output = f"No patterns or examples found for query: '{query}'\n"
                for suggestion in result.suggestions:
                    output += f"- {suggestion}\n"
                return _text(output)

            shown = len(result.patterns) + len(result.examples)
            output = f"Found {result.total_results} results for '{query}' (showing {shown}):\n\n"
            if result.patterns:
                output += "## Patterns\n"
                for match in result.patterns:
                    pattern = store.get_pattern(match.pattern_id)
                    if pattern is None:
                        continue
                    output += f"- **{pattern.name}** ({pattern.id}) relevance {match.relevance:.2f}\n"
                    output += f"  {pattern.description}\n"
            if result.examples:
                output += "\n## Examples\n"
                for match in result.examples:
                    example = store.get_example(match.example_id)
                    if example is None:
                        continue
                    output += f"- **{example.title}** ({example.id}) relevance {match.relevance:.2f}\n"
            return _text(output)

        elif name == "generate_mushcode":
            description = validate_input_length(arguments.get("description", ""), "description")
            parameters = arguments.get("parameters") or {}
            if not isinstance(parameters, dict):
                raise InputValidationError("parameters must be an object")
            server_type = _string_arg(arguments, "server_type") or settings.default_server_type

            result = generator.generate(GenerationRequest(
                description=description,
                server_type=_check_server_type(store, server_type),
                function_type=_string_arg(arguments, "function_type"),
                security_level=_string_arg(arguments, "security_level"),
                parameters={str(k): str(v) for k, v in parameters.items()},
                include_comments=bool(arguments.get("include_comments", False)),
            ))

            output = f"# Generated MUSHCODE ({result.pattern_used})\n\n"
            output += f"```\n{result.code}\n```\n\n"
            output += f"{result.explanation}\n\n"
            output += f"**Usage:** `{result.usage_example}`\n"
            output += f"**Compatible with:** {', '.join(result.compatibility) or 'any server'}\n"
            if result.security_notes:
                output += f"**Security:** {result.security_notes}\n"
            if result.warnings:
                output += "\n## Warnings\n"
                for warning in result.warnings:
                    output += f"- {warning}\n"
            return _text(output)

        elif name == "validate_template":
            template = validate_input_length(arguments.get("template"), "template")
            result = matcher.validate_pattern_template(template)
            if result.valid:
                return _text("Template is valid.")
            output = f"Template has {len(result.errors)} problem(s):\n"
            for error in result.errors:
                output += f"- {error}\n"
            return _text(output)

        elif name == "scan_security":
            code = validate_input_length(arguments.get("code", ""), "code")
            violations = matcher.find_security_violations(
                code, _check_server_type(store, _string_arg(arguments, "server_type"))
            )
            if not violations:
                return _text("No security issues detected.")

            output = f"Found {len(violations)} security issue(s):\n\n"
            for rule in violations:
                output += f"### [{rule.severity.upper()}] {rule.name} ({rule.rule_id})\n"
                output += f"{rule.description}\n"
                output += f"**Recommendation:** {rule.recommendation}\n"
                if rule.examples.secure:
                    output += f"**Safer form:** `{rule.examples.secure}`\n"
                output += "\n"
            return _text(output)

        elif name == "optimize_mushcode":
            code = validate_input_length(arguments.get("code", ""), "code")
            server_type = _check_server_type(store, _string_arg(arguments, "server_type"))
            matches = matcher.find_optimization_patterns(code, server_type)
            violations = matcher.find_security_violations(code, server_type)

            if not matches and not violations:
                return _text("No optimization suggestions for this code.")

            output = "# Optimization Suggestions\n\n"
            for match in matches:
                pattern = store.get_pattern(match.pattern_id)
                if pattern is None:
                    continue
                output += f"- **{pattern.name}** (overlap {match.relevance:.0%}, shared: {', '.join(match.matched_terms)})\n"
                output += f"  `{pattern.code_template}`\n"
            if violations:
                output += "\n## Security\n"
                for rule in violations:
                    output += f"- [{rule.severity}] {rule.name}: {rule.recommendation}\n"
            return _text(output)

        elif name == "get_examples":
            topic = _string_arg(arguments, "topic", "")
            code = _string_arg(arguments, "code", "")
            if not topic and not code:
                raise InputValidationError("topic or code is required")
            server_type = _check_server_type(store, _string_arg(arguments, "server_type"))
            max_results = _max_results(arguments, default=5)

            if code:
                validate_input_length(code, "code")
                examples = matcher.find_similar_examples(code, server_type, max_results)
            else:
                validate_input_length(topic, "topic")
                result = matcher.search(KnowledgeQuery(
                    query=topic,
                    category=_string_arg(arguments, "category"),
                    server_type=server_type,
                    difficulty=_string_arg(arguments, "difficulty"),
                    include_patterns=False,
                    fuzzy_match=True,
                    limit=max_results,
                ))
                examples = [e for e in (store.get_example(m.example_id) for m in result.examples) if e is not None]

            if not examples:
                return _text(f"No examples found for: '{topic or 'the given code'}'")

            output = f"Found {len(examples)} example(s):\n\n"
            for example in examples:
                output += f"### {example.title} ({example.id})\n"
                output += f"Difficulty: {example.difficulty} | Category: {example.category}\n\n"
                output += f"```\n{example.code}\n```\n"
                if example.explanation:
                    output += f"{example.explanation}\n"
                output += "\n"

            if arguments.get("include_learning_path", True):
                paths = matcher.find_learning_paths([e.id for e in examples])
                if paths:
                    output += "## Learning Paths\n"
                    for path in paths:
                        output += f"\n### {path.name or path.id} ({path.difficulty})\n"
                        for step in sorted(path.steps, key=lambda s: s.step_number):
                            output += f"{step.step_number}. {step.title}\n"
            return _text(output)

        elif name == "related_patterns":
            pattern_id = validate_input_length(arguments.get("pattern_id"), "pattern_id")
            if store.get_pattern(pattern_id) is None:
                return _text(f"Pattern not found: '{pattern_id}'")
            related = matcher.find_related_patterns(pattern_id)
            if not related:
                return _text(f"No patterns related to: '{pattern_id}'")
            output = f"Found {len(related)} pattern(s) related to '{pattern_id}':\n\n"
            for pattern in related:
                output += _format_pattern(pattern) + "\n"
            return _text(output)

        elif name == "get_pattern":
            key = validate_input_length(arguments.get("pattern"), "pattern")
            pattern = store.get_pattern(key) or matcher.find_pattern_by_name(key)
            if pattern is None:
                return _text(f"Pattern not found: '{key}'")

            output = f"# {pattern.name}\n\n{pattern.description}\n\n"
            output += _format_pattern(pattern)
            if pattern.parameters:
                output += "\n## Parameters\n"
                for param in pattern.parameters:
                    required = "required" if param.required else f"optional, default {param.default_value!r}"
                    output += f"- `{param.name}` ({param.type}, {required}): {param.description}\n"
            if pattern.examples:
                output += "\n## Examples\n"
                for example in pattern.examples:
                    output += f"- `{example}`\n"
            return _text(output)

        elif name == "patterns_by_tag":
            tag = validate_input_length(arguments.get("tag"), "tag").lstrip("#")
            patterns = matcher.find_patterns_by_tag(tag)
            if not patterns:
                return _text(f"No patterns found with tag: '{tag}'")
            output = f"Found {len(patterns)} pattern(s) with tag '{tag}':\n\n"
            for pattern in patterns:
                output += f"- **{pattern.name}** ({pattern.id})\n"
            return _text(output)

        elif name == "validate_mushcode":
            code = validate_input_length(arguments.get("code"), "code")
            result = self.validator.validate(
                code,
                server_type=_check_server_type(store, _string_arg(arguments, "server_type")),
                strict=bool(arguments.get("strict", False)),
                check_security=bool(arguments.get("check_security", True)),
                check_best_practices=bool(arguments.get("check_best_practices", True)),
            )

            output = "# Validation Result\n\n"
            output += f"**Valid:** {'yes' if result.is_valid else 'no'} ({result.total_lines} lines)\n"
            output += f"**Scores:** complexity {result.complexity_score}, security {result.security_score}, "
            output += f"maintainability {result.maintainability_score}\n"
            if result.syntax_errors:
                output += "\n## Syntax\n"
                for issue in result.syntax_errors:
                    output += f"- [{issue.severity}] line {issue.line}, column {issue.column}: {issue.message} ({issue.code})\n"
                    if issue.suggestion:
                        output += f"  {issue.suggestion}\n"
            if result.security_warnings:
                output += "\n## Security\n"
                for rule in result.security_warnings:
                    output += f"- [{rule.severity}] {rule.name} ({rule.rule_id}): {rule.recommendation}\n"
            if result.best_practices:
                output += "\n## Best Practices\n"
                for improvement in result.best_practices:
                    output += f"- line {improvement.line} [{improvement.type}] {improvement.description}\n"
            if result.compatibility_notes:
                output += "\n## Compatibility\n"
                for note in result.compatibility_notes:
                    output += f"- {note}\n"
            return _text(output)

        elif name == "explain_mushcode":
            code = validate_input_length(arguments.get("code"), "code")
            result = self.explainer.explain(
                code,
                detail_level=_string_arg(arguments, "detail_level", "intermediate"),
                server_type=_check_server_type(store, _string_arg(arguments, "server_type")),
                include_examples=bool(arguments.get("include_examples", True)),
            )

            output = f"# Code Explanation ({result.difficulty})\n\n{result.explanation}\n"
            if result.concepts_used:
                output += f"\n**Concepts:** {', '.join(result.concepts_used)}\n"
            output += "\n## Line by Line\n"
            for section in result.sections:
                output += f"\n**Line {section.line_number}** ({section.complexity}): `{section.code}`\n"
                output += f"{section.explanation}\n"
            if result.security_considerations:
                output += "\n## Security\n"
                for note in result.security_considerations:
                    output += f"- {note}\n"
            if result.performance_notes:
                output += "\n## Performance\n"
                for note in result.performance_notes:
                    output += f"- {note}\n"
            if result.related_examples:
                output += "\n## Related Examples\n"
                for example in result.related_examples:
                    output += f"- {example}\n"
            return _text(output)

        elif name == "format_mushcode":
            code = validate_input_length(arguments.get("code"), "code")
            result = self.formatter.format(
                code,
                style=_string_arg(arguments, "style", "readable"),
                indent_size=_int_arg(arguments, "indent_size", 2),
                line_length=_int_arg(arguments, "line_length", 80),
                preserve_comments=bool(arguments.get("preserve_comments", True)),
                server_type=_check_server_type(store, _string_arg(arguments, "server_type")),
            )

            output = f"# Formatted MUSHCODE\n\n```\n{result.formatted_code}\n```\n\n"
            if result.changes_made:
                output += "## Changes\n"
                for change in result.changes_made:
                    output += f"- {change}\n"
            else:
                output += "No changes were needed.\n"
            output += f"\n{result.style_notes}\n"
            return _text(output)

        elif name == "compress_mushcode":
            code = validate_input_length(arguments.get("code"), "code")
            result = self.compressor.compress(
                code,
                level=_string_arg(arguments, "compression_level", "moderate"),
                remove_comments=bool(arguments.get("remove_comments", True)),
                preserve_functionality=bool(arguments.get("preserve_functionality", True)),
                server_type=_check_server_type(store, _string_arg(arguments, "server_type")),
            )

            output = f"# Compressed MUSHCODE\n\n```\n{result.compressed_code}\n```\n\n"
            output += f"**Size:** {result.original_size} -> {result.compressed_size} characters "
            output += f"({result.compression_ratio:.0%} smaller)\n"
            if result.optimizations_applied:
                output += "\n## Optimizations\n"
                for optimization in result.optimizations_applied:
                    output += f"- {optimization}\n"
            if result.warnings:
                output += "\n## Warnings\n"
                for warning in result.warnings:
                    output += f"- {warning}\n"
            return _text(output)

        elif name == "list_dialects":
            dialects = store.all_dialects()
            if not dialects:
                return _text("No server dialects loaded.")
            output = "# Server Dialects\n"
            for dialect in dialects:
                output += f"\n## {dialect.name} {dialect.version}\n"
                if dialect.description:
                    output += f"{dialect.description}\n"
                if dialect.unique_features:
                    output += f"Features: {', '.join(f.name for f in dialect.unique_features)}\n"
                if dialect.security_model.restricted_functions:
                    output += f"Restricted functions: {', '.join(dialect.security_model.restricted_functions)}\n"
                if dialect.limitations:
                    output += f"Limitations: {'; '.join(dialect.limitations)}\n"
            return _text(output)

        elif name == "knowledge_stats":
            stats = store.get_stats()
            output = "# MUSHCODE Knowledge Base Statistics\n\n"
            output += f"**Version:** {stats.version}\n"
            output += f"**Last Updated:** {stats.last_updated.isoformat()}\n\n"
            output += f"- Patterns: {stats.patterns}\n"
            output += f"- Examples: {stats.examples}\n"
            output += f"- Security Rules: {stats.security_rules}\n"
            output += f"- Dialects: {stats.dialects}\n"
            output += f"- Learning Paths: {stats.learning_paths}\n"
            return _text(output)

        return _text(f"Unknown tool: {name}")

    def read_resource(self, uri: str) -> str:
        """Read a resource."""
        if uri == "knowledge://stats":
            return json.dumps(self.store.get_stats().model_dump(mode="json"), indent=2)

        return json.dumps({"error": f"Unknown resource: {uri}"})


def create_server(store: KnowledgeStore) -> Server:
    """Build an MCP server answering tool calls from the given store."""
    server = Server(settings.server_name)
    tools = KnowledgeTools(store)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return tools.list_tools()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        return await tools.call_tool(name, arguments)

    # ============== Resources ==============

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        """List available resources."""
        return [
            Resource(
                uri="knowledge://stats",
                name="Knowledge Base Statistics",
                description="Entity counts and version of the MUSHCODE knowledge base",
                mimeType="application/json",
            ),
        ]

    @server.read_resource()
    async def read_resource(uri: Any) -> str:
        return tools.read_resource(str(uri))

    return server
