#!/usr/bin/env python3
"""
Thym Cordova CLI
================

Usage examples
--------------
  python thym.py build                                   # build the project in the current directory
  python thym.py build --release --device                # options are passed straight to cordova
  python thym.py prepare android
  python thym.py platform add android
  python thym.py platform remove ios
  python thym.py plugin add cordova-plugin-camera --save
  python thym.py plugin remove cordova-plugin-camera
  python thym.py --project MyApp build                   # pick a project by name from the workspace
  python thym.py --all prepare                           # run for every project in the workspace
  python thym.py --workspace ~/apps projects             # list Cordova projects
  python thym.py -v build                                # echo cordova's output live
  python thym.py info                                    # show the resolved configuration

Press Ctrl+C to cancel the running command.
"""

import argparse
import os
import signal
import sys
import time
from pathlib import Path

# ── make sure local modules are importable when run as a script ──────────────
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import config as cfg
import logger as log
from classifier import ErrorRules
from command import Command, OPTION_SAVE
from cordova import CordovaCLI, Outcome
from errors import ConfigurationError, CordovaError
from locks import ProjectLockRegistry
from monitor import ProgressMonitor
from project import HybridProject, find_project, scan_projects

EXIT_OK        = 0
EXIT_FAILED    = 1
EXIT_CANCELLED = 130


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _workspace(args: argparse.Namespace) -> Path:
    return Path(args.workspace).expanduser().resolve() if args.workspace else cfg.WORKSPACE


def _check_workspace(workspace: Path) -> bool:
    if not workspace.is_dir():
        log.error(f"Workspace {workspace} is not a directory.")
        return False
    return True


def _target_projects(args: argparse.Namespace) -> list:
    """Resolve --project / --all / the workspace directory itself."""
    workspace = _workspace(args)
    if not _check_workspace(workspace):
        return []
    if args.all:
        projects = scan_projects(workspace)
        if not projects:
            log.error(f"No Cordova projects found in {workspace}")
        return projects
    if args.project:
        p = find_project(workspace, args.project)
        if p is None:
            log.error(f"Project '{args.project}' not found in {workspace}")
            return []
        return [p]
    try:
        p = HybridProject.load(workspace)
    except ValueError as exc:
        log.error(str(exc))
        return []
    if p is None:
        log.error(f"{workspace} is not a Cordova project (no config.xml). "
                  "Use --project NAME or --all.")
        return []
    return [p]


def _run_for_projects(args: argparse.Namespace, title: str, operation) -> int:
    """
    Run *operation(cli, monitor)* for every target project in order,
    stopping at the first failure or cancellation.
    """
    projects = _target_projects(args)
    if not projects:
        return EXIT_FAILED

    log.banner(title, f"Projects: {len(projects)}  |  Workspace: {_workspace(args)}")

    locks   = ProjectLockRegistry()
    monitor = ProgressMonitor(verbose=args.verbose)
    echo    = log.output if args.verbose else None

    def _on_sigint(signum, frame):  # noqa: ANN001
        log.warn("Interrupt received – cancelling…")
        monitor.cancel()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    start = time.time()
    try:
        total = len(projects)
        for i, project in enumerate(projects, 1):
            log.step(i, total, project.name)
            cli = CordovaCLI.for_project(project, locks=locks, echo=echo)
            try:
                outcome = operation(cli, monitor)
            except CordovaError as exc:
                log.error(f"[{project.name}] {exc}")
                return EXIT_FAILED
            if outcome is Outcome.CANCELLED:
                log.warn(f"Cancelled at: {project.name}")
                return EXIT_CANCELLED
    finally:
        signal.signal(signal.SIGINT, previous)

    log.success(f"Done in {log.duration(time.time() - start)}")
    return EXIT_OK


# ─────────────────────────────────────────────────────────────────────────────
# Sub-command implementations
# ─────────────────────────────────────────────────────────────────────────────

def cmd_build(args: argparse.Namespace) -> int:
    return _run_for_projects(
        args, "cordova build",
        lambda cli, monitor: cli.build(*args.options, monitor=monitor),
    )


def cmd_prepare(args: argparse.Namespace) -> int:
    return _run_for_projects(
        args, "cordova prepare",
        lambda cli, monitor: cli.prepare(*args.options, monitor=monitor),
    )


def cmd_platform(args: argparse.Namespace) -> int:
    command = Command(args.action)
    return _run_for_projects(
        args, f"cordova platform {command.cli_command}",
        lambda cli, monitor: cli.platform(command, *args.options, monitor=monitor),
    )


def cmd_plugin(args: argparse.Namespace) -> int:
    command = Command(args.action)
    options = list(args.options)
    if args.save and OPTION_SAVE not in options:
        options.append(OPTION_SAVE)
    return _run_for_projects(
        args, f"cordova plugin {command.cli_command}",
        lambda cli, monitor: cli.plugin(command, *options, monitor=monitor),
    )


def cmd_projects(args: argparse.Namespace) -> int:
    from rich.console import Console
    from rich.table import Table

    workspace = _workspace(args)
    if not _check_workspace(workspace):
        return EXIT_FAILED
    projects = scan_projects(workspace)
    if not projects:
        log.warn(f"No Cordova projects found in {workspace}")
        return EXIT_OK

    table = Table(title=f"Cordova projects in {workspace}", show_lines=False)
    table.add_column("Project", style="cyan", no_wrap=True)
    table.add_column("App id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Version", justify="right")
    table.add_column("Directory", style="dim", overflow="fold")
    for p in projects:
        table.add_row(p.name, p.app_id, p.display_name, p.version, str(p.location))
    Console().print(table)
    return EXIT_OK


def cmd_info(args: argparse.Namespace) -> int:
    log.section("Configuration")
    log.info(f"Workspace:         {_workspace(args)}")
    log.info(f"Shell:             {' '.join(cfg.SHELL_ARGS)}")
    log.info(f"Encoding:          {cfg.OUTPUT_ENCODING}")
    log.info(f"Poll interval:     {cfg.POLL_INTERVAL}s")
    log.info(f"Terminate timeout: {cfg.TERMINATE_TIMEOUT}s")
    log.section("Error patterns")
    try:
        rules = ErrorRules.default()
    except ConfigurationError as exc:
        log.error(str(exc))
        return EXIT_FAILED
    for pattern in rules.patterns:
        log.info(pattern.pattern)
    return EXIT_OK


# ─────────────────────────────────────────────────────────────────────────────
# CLI parser
# ─────────────────────────────────────────────────────────────────────────────

def _add_options_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "options", nargs=argparse.REMAINDER, metavar="OPTIONS",
        help="Arguments passed verbatim to cordova (not shell-escaped)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thym",
        description="Run Cordova CLI commands for hybrid mobile projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version="thym 1.0.0")
    parser.add_argument(
        "--workspace", metavar="DIR", default=None,
        help=f"Workspace directory (default: {cfg.WORKSPACE}, from THYM_WORKSPACE)",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--project", metavar="NAME", default=None,
        help="Project directory name inside the workspace")
    target.add_argument("--all", action="store_true",
        help="Run the command for every Cordova project in the workspace")
    parser.add_argument("--verbose", "-v", action="store_true",
        help="Echo cordova's output as it runs")

    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    # ── build / prepare ───────────────────────────────────────────────────────
    p_build = sub.add_parser("build", help="Run 'cordova build'")
    _add_options_arg(p_build)
    p_build.set_defaults(func=cmd_build)

    p_prep = sub.add_parser("prepare", help="Run 'cordova prepare'")
    _add_options_arg(p_prep)
    p_prep.set_defaults(func=cmd_prepare)

    # ── platform ──────────────────────────────────────────────────────────────
    p_plat = sub.add_parser("platform", help="Add or remove a platform")
    p_plat.add_argument("action", choices=[c.value for c in Command])
    _add_options_arg(p_plat)
    p_plat.set_defaults(func=cmd_platform)

    # ── plugin ────────────────────────────────────────────────────────────────
    p_plug = sub.add_parser("plugin", help="Add or remove a plugin")
    p_plug.add_argument("action", choices=[c.value for c in Command])
    p_plug.add_argument("--save", action="store_true",
        help="Record the change in config.xml (appends --save)")
    _add_options_arg(p_plug)
    p_plug.set_defaults(func=cmd_plugin)

    # ── projects / info ───────────────────────────────────────────────────────
    p_list = sub.add_parser("projects", help="List Cordova projects in the workspace")
    p_list.set_defaults(func=cmd_projects)

    p_info = sub.add_parser("info", help="Print the resolved configuration")
    p_info.set_defaults(func=cmd_info)

    return parser


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────

def parse_args(parser: argparse.ArgumentParser, argv=None) -> argparse.Namespace:
    """
    Parse *argv*, handing flags the sub-command does not know to cordova.

    argparse's REMAINDER does not capture a leading option-like token
    (``build --release``), so those come back as extras and are merged into
    ``options`` in their original order.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    args, extras = parser.parse_known_args(argv)
    if extras:
        if not hasattr(args, "options"):
            parser.error(f"unrecognized arguments: {' '.join(extras)}")
        passed = list(args.options) + extras
        tail = argv[len(argv) - len(passed):]
        args.options = tail if sorted(tail) == sorted(passed) else passed
    return args


def main(argv=None) -> None:
    parser = build_parser()
    args = parse_args(parser, argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
