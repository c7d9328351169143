#!/usr/bin/env python3
"""CLI interface for validate_concepts module."""

import argparse
import sys
from pathlib import Path

from common.constants import (
    DEFAULT_OUTPUT_DIR,
    HTML_REPORT_NAME,
    JSON_REPORT_NAME,
    MARKDOWN_REPORT_NAME,
)
from common.env import env
from common.logger import error, progress, setup_logging, success, warning

from .assessment import build_assessment_client
from .config import ConfigError, ValidationConfig, load_config, write_default_config
from .constants import ASSESSMENT_ASPECTS
from .reporters import ValidationReporter
from .source_extractor import SourceExtractor
from .spec_parser import ConceptSpecParser
from .validator import ConceptValidator, concept_key, module_keys, spec_key

FORMAT_ALIASES = {"html": "document", "markdown": "summary", "json": "structured"}
FORMATS = ["console", "document", "summary", "structured", "all", *FORMAT_ALIASES]


def _load(args, overrides: dict) -> ValidationConfig:
    return load_config(
        config_path=Path(args.config) if getattr(args, "config", None) else None,
        project_root=Path(args.project) if getattr(args, "project", None) else None,
        overrides=overrides,
    )


def cmd_validate(args):
    """Validate concept implementations against their specifications.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for errors or configuration failure)
    """
    setup_logging("DEBUG" if args.verbose else env.log_level())

    overrides = {
        "spec_dir": args.specs,
        "impl_dir": args.concepts,
        "related_dir": args.syncs,
        "enable_assessment": True if args.ai else None,
        "assessment_credential": args.api_key,
        "assessment_model": args.model,
        "strict_mode": True if args.strict else None,
        "workers": args.workers,
    }

    try:
        config = _load(args, overrides)
        config.check_directories()
    except ConfigError as e:
        error(str(e))
        return 1

    if args.verbose:
        progress("Configuration:")
        progress(f"  Project Root: {config.project_root}")
        progress(f"  Specs Dir: {config.spec_dir}")
        progress(f"  Concepts Dir: {config.impl_dir}")
        progress(f"  Syncs Dir: {config.related_dir}")
        progress(f"  AI Analysis: {'Enabled' if config.enable_assessment else 'Disabled'}")

    validator = ConceptValidator(
        parser=ConceptSpecParser(),
        extractor=SourceExtractor(config.persistence_handle),
        assessment_client=build_assessment_client(config),
        related_dir=config.related_path,
        workers=config.workers,
    )

    if args.concept:
        progress(f"Validating concept: {args.concept}")
    else:
        progress("Validating all concepts...")

    run = validator.run(config.spec_path, config.impl_path, only=args.concept)

    if not run.reports:
        if args.concept:
            error(f"Concept '{args.concept}' not found")
        else:
            error("No concepts found to validate")
        return 1

    fmt = FORMAT_ALIASES.get(args.format, args.format)
    selected = {"console", "document", "summary", "structured"} if fmt == "all" else {fmt}
    output_dir = Path(args.output)
    reporter = ValidationReporter()

    if "console" in selected:
        reporter.report_console(run.reports, run.skipped)
    if "document" in selected:
        path = reporter.report_html(run.reports, output_dir / HTML_REPORT_NAME)
        success(f"HTML report saved to: {path}")
    if "summary" in selected:
        path = reporter.report_markdown(run.reports, output_dir / MARKDOWN_REPORT_NAME)
        success(f"Markdown report saved to: {path}")
    if "structured" in selected:
        path = output_dir / JSON_REPORT_NAME
        reporter.report_json(run.reports, path)
        success(f"JSON report saved to: {path}")

    if "console" not in selected and run.skipped:
        warning(f"{len(run.skipped)} item(s) skipped during validation")

    if run.total_errors > 0:
        return 1
    if config.strict_mode and run.total_warnings > 0:
        return 1
    return 0


def cmd_init(args):
    """Write a default configuration file.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 if the file exists or cannot be written)
    """
    project_root = Path(args.project) if args.project else Path.cwd()

    try:
        path = write_default_config(project_root, force=args.force)
    except (ConfigError, OSError) as e:
        error(str(e))
        return 1

    success(f"Configuration file created: {path}")
    progress("Edit the configuration file to customize validation settings")
    if not env.openai_api_key():
        progress("Set OPENAI_API_KEY environment variable or update config for AI analysis")
    return 0


def cmd_analyze(args):
    """Ask the assessment service about one aspect of one concept.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for errors)
    """
    setup_logging(env.log_level())

    try:
        config = _load(
            args,
            {
                "enable_assessment": True,
                "assessment_credential": args.api_key,
                "assessment_model": args.model,
            },
        )
        config.check_directories()
    except ConfigError as e:
        error(str(e))
        return 1

    client = build_assessment_client(config)
    if client is None:
        error("AI analysis is required for aspect analysis")
        progress("Provide --api-key or set OPENAI_API_KEY")
        return 1

    wanted = concept_key(args.concept)
    specs = [s for s in ConceptSpecParser().parse_directory(config.spec_path) if spec_key(s) == wanted]
    extractor = SourceExtractor(config.persistence_handle)
    modules = [m for m in extractor.analyze_directory(config.impl_path) if wanted in module_keys(m)]

    if not specs or not modules:
        error(f"Concept '{args.concept}' not found (needs both a specification and an implementation)")
        return 1

    progress(f"Analyzing {args.aspect} for concept: {specs[0].name}")
    answer = client.assess_aspect(specs[0], modules[0], args.aspect)
    progress(answer)
    return 0


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Validate concept implementations against their specifications"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate all concepts")
    validate_parser.add_argument("-c", "--config", type=str, help="Path to configuration file")
    validate_parser.add_argument(
        "-p", "--project", type=str, help="Project root directory (default: current directory)"
    )
    validate_parser.add_argument(
        "-s", "--specs", type=str, help="Specs directory relative to project root"
    )
    validate_parser.add_argument(
        "-i", "--concepts", type=str, help="Concepts directory relative to project root"
    )
    validate_parser.add_argument(
        "-y", "--syncs", type=str, help="Syncs directory relative to project root"
    )
    validate_parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=str(DEFAULT_OUTPUT_DIR),
        help="Output directory for reports",
    )
    validate_parser.add_argument(
        "-f",
        "--format",
        choices=FORMATS,
        default="console",
        help="Output format",
    )
    validate_parser.add_argument("--ai", action="store_true", help="Enable AI-powered analysis")
    validate_parser.add_argument("--api-key", type=str, help="OpenAI API key for AI analysis")
    validate_parser.add_argument("--model", type=str, help="AI model to use")
    validate_parser.add_argument(
        "--strict", action="store_true", help="Treat warnings as failures"
    )
    validate_parser.add_argument("--concept", type=str, help="Validate specific concept only")
    validate_parser.add_argument(
        "--workers", type=int, help="Number of concepts validated concurrently"
    )
    validate_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    validate_parser.set_defaults(func=cmd_validate)

    # Init command
    init_parser = subparsers.add_parser("init", help="Initialize validation configuration")
    init_parser.add_argument(
        "-p", "--project", type=str, help="Project root directory (default: current directory)"
    )
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing configuration file"
    )
    init_parser.set_defaults(func=cmd_init)

    # Analyze command
    analyze_parser = subparsers.add_parser(
        "analyze", help="Run AI analysis on one aspect of a concept"
    )
    analyze_parser.add_argument("concept", help="Concept name")
    analyze_parser.add_argument("aspect", choices=ASSESSMENT_ASPECTS, help="Aspect to analyze")
    analyze_parser.add_argument("-c", "--config", type=str, help="Path to configuration file")
    analyze_parser.add_argument(
        "-p", "--project", type=str, help="Project root directory (default: current directory)"
    )
    analyze_parser.add_argument("--api-key", type=str, help="OpenAI API key for AI analysis")
    analyze_parser.add_argument("--model", type=str, help="AI model to use")
    analyze_parser.set_defaults(func=cmd_analyze)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
