# MUSHCODE MCP Server
#
# Modular package structure:
# - config.py: Settings (env + YAML file) and fixed vocabularies
# - logging.py: structlog configuration
# - models.py: Pydantic entity, query and result models
# - utils.py: Regex patterns, term extraction, input validation, exceptions
# - store.py: KnowledgeStore with collections and secondary indices
# - matcher.py: PatternMatcher search, scanning and similarity algorithms
# - generator.py: Pattern-driven code generation
# - persistence.py: JSON snapshot save/load
# - tools.py: MCP tool handlers and server factory
# - main.py: Entry point and server initialization
