"""Runtime configuration of the export.

Importing this module loads the settings, prepares the ``var/`` working
directories and configures logging. Other modules read paths and the
shared ``logger`` from here.
"""

from pathlib import Path
from typing import Any

from config.loader import get_config_loader
from src.display import configure_logging
from src.type_definitions import DirType, LogLevel

_config_loader = get_config_loader()

jira_config = _config_loader.get_jira_config()
export_config = _config_loader.get_export_config()

root_dir = Path(__file__).parent.parent
var_dir = root_dir / "var"

var_dirs: dict[DirType, Path] = {
    "root": var_dir,
    "attachments": var_dir / "attachments",
    "logs": var_dir / "logs",
    "output": var_dir / "output",
    "results": var_dir / "results",
}

_new_dirs = [path for path in var_dirs.values() if not path.exists()]
for _path in var_dirs.values():
    _path.mkdir(parents=True, exist_ok=True)

LOG_LEVEL: LogLevel = export_config.get("log_level", "INFO")
logger = configure_logging(LOG_LEVEL, var_dirs["logs"] / "export.log")

for _path in _new_dirs:
    logger.debug("Created directory: %s", _path)

# Command line options that replace a working directory
_DIR_ARGUMENTS: dict[str, DirType] = {
    "output_dir": "output",
    "attachments_dir": "attachments",
}


def get_path(path_type: DirType) -> Path:
    """Get a working directory by type."""
    if path_type not in var_dirs:
        msg = f"Invalid path type: {path_type}"
        raise ValueError(msg)
    return var_dirs[path_type]


def validate_config() -> bool:
    """Check that the Jira connection settings are present."""
    missing = [
        f"J2W_JIRA_{key.upper()}"
        for key in ("url", "username", "api_token")
        if not jira_config.get(key)
    ]
    if missing:
        logger.error("Missing required environment variables: %s", ", ".join(missing))
        return False
    return True


def update_from_cli_args(args: Any) -> None:
    """Use the output and attachment directories given on the command line."""
    for attribute, dir_type in _DIR_ARGUMENTS.items():
        value = getattr(args, attribute, None)
        if value:
            var_dirs[dir_type] = Path(value)
            logger.debug("Using %s directory %s from the command line", dir_type, value)
