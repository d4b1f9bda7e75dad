"""Main entry point for the Jira work item export."""

import argparse
import sys
from pathlib import Path

from src.config import logger, update_from_cli_args


def export(args: argparse.Namespace) -> int:
    """Run the export command and return the process exit code."""
    from config.loader import load_export_config  # noqa: PLC0415
    from src import config  # noqa: PLC0415
    from src.clients.jira_client import JiraClient, JiraError  # noqa: PLC0415
    from src.display import print_export_summary  # noqa: PLC0415
    from src.export import ExportRun  # noqa: PLC0415
    from src.mappings.user_mapping import UserMapping  # noqa: PLC0415
    from src.models.export_summary import ExportIssuesSummary  # noqa: PLC0415
    from src.models.migration_error import MigrationError  # noqa: PLC0415
    from src.utils.item_provider import JiraItemProvider  # noqa: PLC0415

    config_path = args.config or config.export_config.get("export_config")
    if not config_path:
        logger.error("No export configuration given, use --config or set J2W_EXPORT_CONFIG")
        return 1

    try:
        export_config = load_export_config(config_path)
        user_mapping = UserMapping.from_file(export_config.user_mapping_file)
        raw_items = JiraItemProvider(args.raw_dir)
    except MigrationError as e:
        logger.error("Cannot start export: %s", e)
        return 1

    if not config.validate_config():
        return 1

    summary = ExportIssuesSummary()
    try:
        client = JiraClient(summary=summary, field_overrides=export_config.field_overrides)
    except (JiraError, ValueError) as e:
        logger.error("Cannot connect to Jira: %s", e)
        return 1

    run = ExportRun(
        export_config,
        client,
        config.get_path("output"),
        summary=summary,
        user_mapping=user_mapping,
        force=args.force,
    )
    result = run.run(raw_items.enumerate_items(), total=raw_items.count())
    print_export_summary(summary)
    return 0 if result.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="j2w",
        description="Map exported Jira issues and their history to work items",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    export_parser = subparsers.add_parser(
        "export",
        help="Map raw Jira items to work item files",
    )
    export_parser.add_argument(
        "--config",
        type=Path,
        help="Export configuration file, YAML or JSON (default: J2W_EXPORT_CONFIG)",
    )
    export_parser.add_argument(
        "--raw-dir",
        type=Path,
        required=True,
        help="Directory with one raw Jira item JSON file per issue",
    )
    export_parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for the work item files (default: var/output)",
    )
    export_parser.add_argument(
        "--attachments-dir",
        type=Path,
        help="Directory for downloaded attachments (default: var/attachments)",
    )
    export_parser.add_argument(
        "--force",
        action="store_true",
        help="Re-export items that already have an output file",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    update_from_cli_args(args)

    if args.command == "export":
        sys.exit(export(args))

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Export interrupted by user")
        sys.exit(1)
    except (FileNotFoundError, PermissionError) as e:
        logger.error("File system error: %s", e)
        sys.exit(1)
    except (ConnectionError, TimeoutError) as e:
        logger.error("Network connectivity error: %s", e)
        sys.exit(1)
    except Exception as e:  # noqa: BLE001
        logger.exception("Unexpected error occurred during export: %s", e)
        sys.exit(1)
