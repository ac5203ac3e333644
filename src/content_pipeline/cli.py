"""Command-line interface for content_pipeline."""

import argparse
import dataclasses
import json
import sys
from pathlib import Path

from .config import EngineConfig, EngineConfigError, load_engine_config
from .logging import RunLogger
from .pipeline import (
    InvalidConfigurationError,
    MalformedImportError,
    StepReferenceError,
    build_export_envelope,
    dump_export,
    entry_point_folders,
    format_validation_errors,
    get_client_class,
    import_pipeline_config,
    load_valid_configuration,
    read_example_prompts,
    resolve_step,
    status_line,
    validate,
)
from .pipeline.models import ModelsConfig, PipelineConfig, pipeline_to_dict


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--models",
        type=Path,
        default=Path("config/models.json"),
        help="Models configuration JSON (default: config/models.json)",
    )
    common.add_argument(
        "--pipeline",
        type=Path,
        default=Path("config/pipeline.json"),
        help="Pipeline configuration JSON (default: config/pipeline.json)",
    )
    common.add_argument(
        "--settings",
        type=Path,
        required=False,
        help="Engine settings YAML (default: config/engine.yaml if present)",
    )
    common.add_argument(
        "--log-file",
        type=Path,
        required=False,
        help="Append a timestamped log of this command to the given file",
    )

    parser = argparse.ArgumentParser(
        prog="content-pipeline",
        description="Validate and share content pipeline configurations.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser(
        "validate", parents=[common], help="Validate both configuration documents"
    )
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full validation result as JSON",
    )

    subparsers.add_parser(
        "entry-points", parents=[common], help="List pipeline entry point steps"
    )

    resolve_parser = subparsers.add_parser(
        "resolve",
        parents=[common],
        help="Show a step merged with its model config (API key masked)",
    )
    resolve_parser.add_argument("step", help="Step id to resolve")

    export_parser = subparsers.add_parser(
        "export", parents=[common], help="Export the pipeline without credentials"
    )
    export_parser.add_argument(
        "--output",
        type=Path,
        required=False,
        help="Write the export to this file instead of stdout",
    )
    export_parser.add_argument(
        "--description",
        required=False,
        help="Description stored in the export envelope",
    )

    import_parser = subparsers.add_parser(
        "import", parents=[common], help="Validate an exported pipeline file"
    )
    import_parser.add_argument("file", type=Path, help="Exported pipeline file")
    import_parser.add_argument(
        "--write",
        action="store_true",
        help="Replace the --pipeline file with the imported pipeline",
    )

    folders_parser = subparsers.add_parser(
        "folders", parents=[common], help="Check input folders of entry point steps"
    )
    folders_parser.add_argument(
        "--root",
        type=Path,
        default=Path("."),
        help="Vault root the input paths are relative to (default: .)",
    )
    folders_parser.add_argument(
        "--create",
        action="store_true",
        help="Create missing entry point folders",
    )

    return parser


def _read_text(path: Path) -> str | None:
    """Read a UTF-8 file, printing an error and returning None on failure."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error: cannot read {path}: {e}", file=sys.stderr)
        return None


def _load_settings(args: argparse.Namespace) -> EngineConfig | None:
    try:
        return load_engine_config(args.settings)
    except EngineConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def _cmd_validate(
    args: argparse.Namespace,
    models_text: str,
    pipeline_text: str,
    settings: EngineConfig,
    logger: RunLogger | None,
) -> int:
    result = validate(models_text, pipeline_text, settings=settings, logger=logger)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(status_line(result))
        if result.error_count or result.warnings:
            print()
            print(format_validation_errors(result))
    return 0 if result.is_valid else 1


def _resolved_step_json(
    models: ModelsConfig, pipeline: PipelineConfig, step_id: str
) -> dict:
    resolved = resolve_step(models, pipeline, step_id)
    data = dataclasses.asdict(resolved)
    data["api_key"] = "***" if resolved.api_key else ""
    data["client_class"] = get_client_class(resolved.implementation)
    return data


def _cmd_folders(
    args: argparse.Namespace, pipeline: PipelineConfig, logger: RunLogger | None
) -> int:
    folders = entry_point_folders(pipeline)
    if logger:
        logger.log_folder_plan([(f.step_id, f.base_path) for f in folders])
    root = args.root.resolve()
    for folder in folders:
        target = (root / folder.base_path).resolve()
        if not target.is_relative_to(root):
            print(
                f"Error: entry point folder for {folder.step_id} is outside "
                f"{args.root}: {folder.base_path}",
                file=sys.stderr,
            )
            if logger:
                logger.error(f"Refused folder outside root: {folder.base_path}")
            return 1
        if target.is_dir():
            print(f"[ok]      {folder.step_id}: {folder.base_path or '.'}")
            continue
        if args.create:
            try:
                target.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                print(f"Error: cannot create {target}: {e}", file=sys.stderr)
                return 1
            if logger:
                logger.info(f"Created entry point folder: {folder.base_path}")
            print(f"[created] {folder.step_id}: {folder.base_path}")
        else:
            print(f"[missing] {folder.step_id}: {folder.base_path}")
    return 0


def _cmd_import(args: argparse.Namespace, logger: RunLogger | None) -> int:
    text = _read_text(args.file)
    if text is None:
        return 1
    try:
        pipeline = import_pipeline_config(text, logger=logger)
        prompts = read_example_prompts(text)
    except MalformedImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        for problem in e.errors:
            print(f"  {problem}", file=sys.stderr)
        if logger:
            logger.error(f"Import rejected: {e}")
        return 1

    document = json.dumps(pipeline_to_dict(pipeline), indent=2) + "\n"
    if args.write:
        args.pipeline.parent.mkdir(parents=True, exist_ok=True)
        args.pipeline.write_text(document, encoding="utf-8")
        print(f"Imported {len(pipeline)} step(s) into {args.pipeline}")
    else:
        print(document, end="")
    if prompts:
        print(
            f"Import bundle contains {len(prompts)} example prompt file(s)",
            file=sys.stderr,
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success, 1 for invalid configuration or errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = _load_settings(args)
    if settings is None:
        return 1
    logger = RunLogger(args.log_file) if args.log_file else None

    if args.command == "import":
        return _cmd_import(args, logger)

    models_text = _read_text(args.models)
    pipeline_text = _read_text(args.pipeline)
    if models_text is None or pipeline_text is None:
        return 1

    if args.command == "validate":
        return _cmd_validate(args, models_text, pipeline_text, settings, logger)

    # Every other command needs both documents to be valid
    try:
        models, pipeline, result = load_valid_configuration(
            models_text, pipeline_text, settings
        )
    except InvalidConfigurationError as e:
        print(
            f"Error: configuration is invalid ({status_line(e.result)})",
            file=sys.stderr,
        )
        print(format_validation_errors(e.result), file=sys.stderr)
        if logger:
            logger.error(f"Command '{args.command}' refused: invalid configuration")
        return 1

    if args.command == "entry-points":
        for step_id in result.entry_points:
            print(step_id)
        return 0

    if args.command == "resolve":
        try:
            data = _resolved_step_json(models, pipeline, args.step)
        except StepReferenceError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(json.dumps(data, indent=2))
        return 0

    if args.command == "export":
        envelope = build_export_envelope(
            pipeline,
            description=args.description,
            settings=settings,
            logger=logger,
        )
        text = dump_export(envelope)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(text, encoding="utf-8")
            print(f"Exported {len(pipeline)} step(s) to {args.output}")
        else:
            print(text, end="")
        return 0

    if args.command == "folders":
        return _cmd_folders(args, pipeline, logger)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
