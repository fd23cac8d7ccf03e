# src/repocatalog/config.py
"""Configuration settings for the repocatalog application."""

from pathlib import Path

# General Configuration
# Environment overrides are resolved at startup, after .env has been loaded
DATABASE_URL_ENV = "REPOCATALOG_DATABASE_URL"
DEFAULT_DATABASE_URL = "sqlite:///repositories.db"
OUTPUT_DIR_ENV = "REPOCATALOG_OUTPUT_DIR"
DEFAULT_OUTPUT_DIR = Path("repomix-outputs")

# LLM Configuration
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
MODEL_NAME_ENV = "REPOCATALOG_MODEL"
DEFAULT_MODEL_NAME = "gpt-4o-mini"

# Prompt budgets (characters of repository content sent to the LLM)
CLASSIFY_CONTENT_CHARS = 4000
EXTRACT_CONTENT_CHARS = 4000
COMPARE_CONTENT_CHARS = 1000

# Fallback analysis
MAX_FALLBACK_TOOLS = 10

# Logging Configuration
LOG_LEVEL_ENV = "LOG_LEVEL"
LOG_LEVEL = "INFO"  # e.g., DEBUG, INFO, WARNING, ERROR, CRITICAL

# Category taxonomy, in declaration order. Order matters: ties in keyword
# scoring go to the category declared first.
CATEGORY_KEYWORDS = {
    "web-scraping": ["scrape", "crawler", "puppeteer", "cheerio", "playwright"],
    "data-processing": ["data", "process", "transform", "etl", "pipeline"],
    "api-integration": ["api", "rest", "graphql", "endpoint", "fetch"],
    "database": ["database", "sql", "mongodb", "postgres", "sqlite"],
    "file-management": ["file", "fs", "storage", "upload", "download"],
    "cloud-services": ["aws", "azure", "gcp", "cloud", "s3"],
    "ai-ml": ["ai", "ml", "machine learning", "tensorflow", "openai"],
    "developer-tools": ["dev", "tool", "utility", "helper", "mcp"],
    "communication": ["chat", "message", "email", "notification", "slack"],
}
DEFAULT_CATEGORY = "other"
CATEGORIES = list(CATEGORY_KEYWORDS) + [DEFAULT_CATEGORY]

UNCATEGORIZED = "uncategorized"

# Files copied into the basic repository dump when repomix is unavailable
MANIFEST_FILES = [
    "package.json",
    "pyproject.toml",
    "setup.py",
    "requirements.txt",
    "Cargo.toml",
    "go.mod",
]
README_FILES = ["README.md", "README.rst", "README.txt", "README"]

# Directories skipped when listing repository files
EXCLUDED_DIRS = [".git", "node_modules"]
