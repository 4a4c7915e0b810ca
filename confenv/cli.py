from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence

from confenv.config.deserialize import json_deserializer, yaml_deserializer
from confenv.config.loader import DEFAULT_CONFIG_DIR, ConfigLoader
from confenv.config.locator import ALLOW_LIST, LEGACY_DENY_LIST
from confenv.environ import MemoryEnviron
from confenv.envfile import DEFAULT_ENV_FILE, EnvFileLoader
from confenv.errors import ConfEnvError, VariableNotFoundError
from confenv.observability.logging import configure_logging


logger = logging.getLogger(__name__)

_SECRET_MARKERS = ("api_key", "token", "secret", "password")


def _redact_secrets(obj: Any) -> Any:
    """Mask secret-looking keys before dumping a config to stdout."""

    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and any(p in k.lower() for p in _SECRET_MARKERS):
                out[k] = "<redacted>"
            else:
                out[k] = _redact_secrets(v)
        return out
    if isinstance(obj, list):
        return [_redact_secrets(x) for x in obj]
    return obj


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="confenv",
        description="Load .env files and ${ENV_VAR}-expanded YAML/JSON config files",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log line format on stderr",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    print_p = sub.add_parser("print-config", help="Load a config file and print it as JSON")
    print_p.add_argument("name", help="Logical config name (file stem, case-insensitive)")
    print_p.add_argument(
        "--dir",
        dest="dirs",
        action="append",
        default=None,
        help=f"Directory to search; repeatable (default: {DEFAULT_CONFIG_DIR})",
    )
    print_p.add_argument(
        "--env-file",
        dest="env_files",
        action="append",
        default=None,
        help="Load this .env file first; repeatable",
    )
    print_p.add_argument(
        "--policy",
        choices=["allow", "deny"],
        default="allow",
        help="allow: only yaml/yml/json; deny: anything but .py/.pyc (legacy)",
    )
    print_p.add_argument(
        "--format",
        choices=["yaml", "json"],
        default="yaml",
        help="Parser used for the config file (yaml also reads JSON)",
    )
    print_p.set_defaults(command="print-config")

    check_p = sub.add_parser("check-env", help="Validate .env files without touching the environment")
    check_p.add_argument("paths", nargs="*", help=f"Files to check (default: {DEFAULT_ENV_FILE})")
    check_p.set_defaults(command="check-env")

    return parser


def _print_config(ns: argparse.Namespace) -> int:
    if ns.env_files:
        EnvFileLoader().load(*ns.env_files)

    loader = ConfigLoader(
        json_deserializer if ns.format == "json" else yaml_deserializer,
        policy=ALLOW_LIST if ns.policy == "allow" else LEGACY_DENY_LIST,
    )
    cfg: dict[str, Any] = {}
    loader.load(cfg, ns.name, *(ns.dirs or [DEFAULT_CONFIG_DIR]))

    sys.stdout.write(json.dumps(_redact_secrets(cfg), ensure_ascii=False, indent=2, default=str))
    sys.stdout.write("\n")
    return 0


def _check_env(ns: argparse.Namespace) -> int:
    env = MemoryEnviron()
    applied = EnvFileLoader(env).load(*ns.paths)
    for assignment in applied:
        sys.stdout.write(f"{assignment.key}\n")
    logger.info("env_files_checked", extra={"env_files": ns.paths or [DEFAULT_ENV_FILE], "count": len(applied)})
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Console entrypoint. Returns the process exit code."""

    parser = _build_parser()
    try:
        ns = parser.parse_args(argv)
    except SystemExit as e:
        # argparse has already printed help/usage to stdout/stderr.
        code = e.code
        return int(code) if isinstance(code, int) else 1

    configure_logging(level=ns.log_level, json_output=ns.log_format == "json")

    try:
        if ns.command == "print-config":
            return _print_config(ns)
        return _check_env(ns)
    except VariableNotFoundError as e:
        logger.error("variable_not_found", extra={"variable": e.name})
        sys.stderr.write(f"VariableNotFoundError: {e}\n")
        return 3
    except ConfEnvError as e:
        logger.error("confenv_error", extra={"error": str(e)})
        sys.stderr.write(f"{type(e).__name__}: {e}\n")
        return 2
    except Exception as e:  # noqa: BLE001
        logger.exception("fatal_error")
        sys.stderr.write(f"Fatal error: {e}\n")
        return 1
