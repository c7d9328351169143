"""Shared constants for the validate-concepts application.

For environment-based configuration (credentials, model names), use the env module:
    from common.env import env
    api_key = env.openai_api_key()
"""

from pathlib import Path

# Default project layout (relative to the project root)
DEFAULT_SPEC_DIR = "specs"
DEFAULT_IMPL_DIR = "concepts"
DEFAULT_RELATED_DIR = "syncs"
DEFAULT_OUTPUT_DIR = Path("./validation-reports")

CONFIG_FILENAME = "concept-validation.config.json"

# Report file names written by the non-console formats
HTML_REPORT_NAME = "validation-report.html"
MARKDOWN_REPORT_NAME = "validation-report.md"
JSON_REPORT_NAME = "validation-report.json"
