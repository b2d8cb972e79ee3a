"""
Tests for the MCP tool handlers.
"""

import json

import pytest


@pytest.fixture
def tools(store):
    """Create KnowledgeTools over the populated store."""
    from mushcode_mcp.tools import KnowledgeTools
    return KnowledgeTools(store)


async def call(tools, name, **arguments) -> str:
    result = await tools.call_tool(name, arguments)
    assert len(result) == 1
    return result[0].text


# ============== Tests for tool listing ==============

class TestListTools:
    """Tests for the advertised tool set."""

    def test_every_tool_listed(self, tools):
        """Test that every handler is advertised."""
        names = {tool.name for tool in tools.list_tools()}

        assert names == {
            "search_knowledge",
            "generate_mushcode",
            "validate_template",
            "scan_security",
            "optimize_mushcode",
            "get_examples",
            "related_patterns",
            "get_pattern",
            "patterns_by_tag",
            "validate_mushcode",
            "explain_mushcode",
            "format_mushcode",
            "compress_mushcode",
            "list_dialects",
            "knowledge_stats",
        }

    def test_create_server(self, store):
        """Test building the MCP server."""
        from mcp.server import Server

        from mushcode_mcp.config import settings
        from mushcode_mcp.tools import create_server

        server = create_server(store)

        assert isinstance(server, Server)
        assert server.name == settings.server_name


# ============== Tests for call_tool() ==============

class TestCallTool:
    """Tests for tool dispatch and output."""

    async def test_search_knowledge(self, tools):
        """Test searching through the tool."""
        text = await call(tools, "search_knowledge", query="create a new object")

        assert "## Patterns" in text
        assert "**Create Object** (create-object) relevance 1.00" in text

    async def test_search_knowledge_no_results(self, tools):
        """Test the empty-result message and suggestions."""
        text = await call(tools, "search_knowledge", query="zzzz")

        assert "No patterns or examples found for query: 'zzzz'" in text
        assert "fuzzy" in text

    async def test_search_knowledge_rejects_bad_max_results(self, tools):
        """Test that max_results must be positive."""
        text = await call(tools, "search_knowledge", query="create", max_results=0)

        assert text == "Error: max_results must be a positive integer"

    async def test_unknown_server_type(self, tools):
        """Test that an unsupported server type is rejected."""
        text = await call(tools, "scan_security", code="eval(%0)", server_type="FooMUSH")

        assert text.startswith("Error: Unknown server type 'FooMUSH'")

    async def test_scan_security(self, tools):
        """Test reporting a security issue."""
        text = await call(tools, "scan_security", code="eval(%0)", server_type="PennMUSH")

        assert "Found 1 security issue(s):" in text
        assert "[HIGH] Unsafe Eval (SEC-001)" in text
        assert "switch(%0, case1, action1)" in text

    async def test_scan_security_clean(self, tools):
        """Test the clean-code message."""
        text = await call(tools, "scan_security", code="@pemit %#=Hello", server_type="PennMUSH")

        assert text == "No security issues detected."

    async def test_scan_security_empty_code(self, tools):
        """Test that empty code is rejected."""
        text = await call(tools, "scan_security", code="")

        assert text == "Error: code must be a non-empty string"

    async def test_generate_mushcode(self, tools):
        """Test generating code through the tool."""
        text = await call(
            tools,
            "generate_mushcode",
            description="create a new object",
            parameters={"name": "Sword", "description": "A sharp blade"},
        )

        assert "# Generated MUSHCODE (create-object)" in text
        assert "@create Sword=A sharp blade" in text
        assert "**Security:** Requires builder permissions to run." in text

    async def test_generate_mushcode_error(self, tools):
        """Test that generation failures become error text."""
        text = await call(tools, "generate_mushcode", description="create a new object")

        assert text == "Error: Missing required parameter: name"

    async def test_validate_template(self, tools):
        """Test template validation output."""
        assert await call(tools, "validate_template", template="@create {{name}}") == "Template is valid."

        text = await call(tools, "validate_template", template="@create {{name}={{description}}")
        assert "- Unbalanced braces in template" in text

    async def test_optimize_mushcode(self, tools):
        """Test optimization suggestions with security findings."""
        text = await call(tools, "optimize_mushcode", code="@create %0=%1", server_type="PennMUSH")

        assert "# Optimization Suggestions" in text
        assert "**Create Object**" in text
        assert "## Security" in text
        assert "Missing Permission Check" in text

    async def test_optimize_mushcode_nothing_found(self, tools):
        """Test the message when nothing applies."""
        text = await call(tools, "optimize_mushcode", code="look")

        assert text == "No optimization suggestions for this code."

    async def test_get_examples_by_topic(self, tools):
        """Test example lookup by topic with learning paths."""
        text = await call(tools, "get_examples", topic="objects")

        assert "### Creating objects (ex-create)" in text
        assert "## Learning Paths" in text
        assert "1. Make an object" in text

    async def test_get_examples_by_code(self, tools):
        """Test example lookup by similar code."""
        text = await call(tools, "get_examples", code="@create Sword\n&damage sword=10", include_learning_path=False)

        assert "ex-create" in text
        assert "Learning Paths" not in text

    async def test_get_examples_requires_input(self, tools):
        """Test that topic or code must be given."""
        text = await call(tools, "get_examples")

        assert text == "Error: topic or code is required"

    async def test_related_patterns(self, tools):
        """Test listing related patterns."""
        text = await call(tools, "related_patterns", pattern_id="create-object")

        assert "Found 3 pattern(s) related to 'create-object'" in text
        assert "**Set Attribute** (set-attribute)" in text

    async def test_related_patterns_unknown(self, tools):
        """Test the not-found message."""
        text = await call(tools, "related_patterns", pattern_id="nope")

        assert text == "Pattern not found: 'nope'"

    async def test_get_pattern_by_id_and_name(self, tools):
        """Test looking up a pattern by ID or by name."""
        by_id = await call(tools, "get_pattern", pattern="create-object")
        by_name = await call(tools, "get_pattern", pattern="create object")

        assert by_id == by_name
        assert by_id.startswith("# Create Object")
        assert "`name` (string, required)" in by_id
        assert "optional, default 'A new object'" in by_id

    async def test_get_pattern_missing(self, tools):
        """Test the not-found message."""
        assert await call(tools, "get_pattern", pattern="nope") == "Pattern not found: 'nope'"

    async def test_patterns_by_tag(self, tools):
        """Test tag lookup, ignoring a leading '#'."""
        text = await call(tools, "patterns_by_tag", tag="#build")

        assert "Found 2 pattern(s) with tag 'build'" in text

    async def test_list_dialects(self, tools):
        """Test the dialect listing."""
        text = await call(tools, "list_dialects")

        assert "## PennMUSH 1.8.8" in text
        assert "Restricted functions: pcreate" in text

    async def test_knowledge_stats(self, tools):
        """Test the stats output."""
        text = await call(tools, "knowledge_stats")

        assert "- Patterns: 5" in text
        assert "- Security Rules: 4" in text

    async def test_unknown_tool(self, tools):
        """Test that unknown tool names are reported."""
        assert await call(tools, "nope") == "Unknown tool: nope"

    async def test_search_knowledge_reports_shown_count(self, tools):
        """Test that a truncated search states both the total and the shown count."""
        from mushcode_mcp.models import KnowledgeQuery

        result = tools.matcher.search(KnowledgeQuery(query="a", fuzzy_match=True, limit=2))
        text = await call(tools, "search_knowledge", query="a", fuzzy=True, max_results=2)

        assert result.total_results > 2
        assert text.startswith(f"Found {result.total_results} results for 'a' (showing 2):")


# ============== Tests for argument types ==============

class TestArgumentTypes:
    """Tests that wrongly typed tool arguments become error text."""

    async def test_missing_template(self, tools):
        """Test validate_template without a template."""
        text = await call(tools, "validate_template", template=None)

        assert text == "Error: template must be a non-empty string"

    async def test_missing_tag(self, tools):
        """Test patterns_by_tag without a tag."""
        assert await call(tools, "patterns_by_tag") == "Error: tag must be a non-empty string"

    async def test_non_string_pattern(self, tools):
        """Test get_pattern with a list instead of a string."""
        text = await call(tools, "get_pattern", pattern=["create-object"])

        assert text == "Error: pattern must be a non-empty string"

    async def test_missing_pattern_id(self, tools):
        """Test related_patterns with a null pattern_id."""
        text = await call(tools, "related_patterns", pattern_id=None)

        assert text == "Error: pattern_id must be a non-empty string"

    async def test_non_string_category(self, tools):
        """Test search_knowledge with a list category."""
        text = await call(tools, "search_knowledge", query="create", category=[1])

        assert text == "Error: category must be a string"

    async def test_non_string_server_type(self, tools):
        """Test scan_security with a numeric server type."""
        text = await call(tools, "scan_security", code="eval(%0)", server_type=5)

        assert text == "Error: server_type must be a string"

    async def test_non_integer_indent_size(self, tools):
        """Test format_mushcode with a string indent size."""
        text = await call(tools, "format_mushcode", code="think 1", indent_size="2")

        assert text == "Error: indent_size must be an integer"

    async def test_boolean_max_results(self, tools):
        """Test that a boolean is not accepted as max_results."""
        text = await call(tools, "search_knowledge", query="create", max_results=True)

        assert text == "Error: max_results must be a positive integer"


# ============== Tests for the code analysis tools ==============

class TestCodeAnalysisTools:
    """Tests for validate, explain, format and compress."""

    async def test_validate_mushcode(self, tools):
        """Test reporting a syntax error with scores."""
        text = await call(tools, "validate_mushcode", code="[switch(%0,a,b)")

        assert "**Valid:** no (1 lines)" in text
        assert "## Syntax" in text
        assert "Unclosed [ (UNCLOSED_BRACKET)" in text

    async def test_validate_mushcode_security(self, tools):
        """Test that security findings are listed."""
        text = await call(tools, "validate_mushcode", code="think eval(%0)", server_type="PennMUSH")

        assert "**Valid:** yes" in text
        assert "## Security" in text
        assert "Unsafe Eval (SEC-001)" in text

    async def test_explain_mushcode(self, tools):
        """Test the line-by-line explanation."""
        text = await call(tools, "explain_mushcode", code="@pemit %#=Hello")

        assert text.startswith("# Code Explanation (")
        assert "**Line 1** (simple): `@pemit %#=Hello`" in text
        assert "This is a MUSHCODE command: @pemit" in text
        assert "## Security" in text

    async def test_explain_mushcode_bad_detail_level(self, tools):
        """Test that an unknown detail level is rejected."""
        text = await call(tools, "explain_mushcode", code="think 1", detail_level="expert")

        assert text == "Error: Invalid detail level. Must be one of: basic, intermediate, advanced"

    async def test_format_mushcode(self, tools):
        """Test compact formatting through the tool."""
        text = await call(tools, "format_mushcode", code="think add( 1 , 2 )", style="compact")

        assert "```\nthink add(1,2)\n```" in text
        assert "- Compacted function calls" in text

    async def test_format_mushcode_bad_style(self, tools):
        """Test that an unknown style is rejected."""
        text = await call(tools, "format_mushcode", code="think 1", style="fancy")

        assert text == "Error: Invalid style. Must be one of: readable, compact, custom"

    async def test_compress_mushcode(self, tools):
        """Test compression output with sizes."""
        text = await call(tools, "compress_mushcode", code="@@ note\nthink add( 1 , 2 )")

        assert "```\nthink add(1,2)\n```" in text
        assert "**Size:** 26 -> 14 characters (46% smaller)" in text
        assert "- Removed 1 comment lines" in text
        assert "## Warnings" in text

    async def test_compress_mushcode_bad_level(self, tools):
        """Test that an unknown compression level is rejected."""
        text = await call(tools, "compress_mushcode", code="think 1", compression_level="extreme")

        assert text == "Error: Invalid compression level: extreme. Must be one of: minimal, moderate, aggressive"


# ============== Tests for resources ==============

class TestResources:
    """Tests for resource reads."""

    def test_read_stats_resource(self, tools):
        """Test the stats resource."""
        data = json.loads(tools.read_resource("knowledge://stats"))

        assert data["patterns"] == 5
        assert data["version"] == "1.0.0"

    def test_read_unknown_resource(self, tools):
        """Test that unknown resources report an error."""
        data = json.loads(tools.read_resource("knowledge://nope"))

        assert "error" in data
