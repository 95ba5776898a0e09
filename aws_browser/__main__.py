"""Module entry point for the AWS browser application."""
import argparse
from dataclasses import replace
import logging
import os
from pathlib import Path
import sys
from typing import Optional, Sequence

from .presenter import BrowserPresenter
from .settings import (
    SettingsStorage,
    SettingsValidationError,
    default_config_dir,
    resolve_initial_settings,
)
from .shell import BrowserShell
from .tui import AwsBrowserApp
from .ui_utils import load_package_info

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    info = load_package_info()
    parser = argparse.ArgumentParser(prog="pyawsb", description=info.summary)
    parser.add_argument("-p", "--profile", help="AWS profile to use for this session")
    parser.add_argument("--region", help="AWS region to use for this session")
    parser.add_argument(
        "--log-file",
        type=Path,
        help="File receiving log output (default: <config dir>/pyawsb.log)",
    )
    parser.add_argument("--debug", action="store_true", help="Log debug messages")
    parser.add_argument("--version", action="version", version=f"%(prog)s {info.version or 'dev'}")
    return parser


def configure_logging(log_file: Optional[Path], debug: bool) -> Path:
    path = log_file or default_config_dir() / "pyawsb.log"
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    # botocore is very chatty at debug level.
    logging.getLogger("botocore").setLevel(logging.INFO)
    return path


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    storage = SettingsStorage()
    try:
        settings = storage.load()
    except SettingsValidationError as exc:
        print(f"pyawsb: invalid settings: {exc}", file=sys.stderr)
        return 1
    settings = resolve_initial_settings(os.environ, settings)
    settings = replace(
        settings,
        profile=args.profile or settings.profile,
        region=args.region or settings.region,
    )

    log_path = configure_logging(args.log_file, args.debug)
    logging.getLogger(__name__).info(
        "Starting (profile=%s, region=%s, log=%s)", settings.profile, settings.region, log_path
    )

    presenter = BrowserPresenter(settings_storage=storage, settings=settings)
    app = AwsBrowserApp(BrowserShell(presenter), refresh_seconds=settings.refresh_seconds)
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
