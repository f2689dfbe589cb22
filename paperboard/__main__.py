import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from paperboard import (
    BoardConfig,
    LayoutOptions,
    MemoryStore,
    ProjectManager,
    ToolCallError,
    apply_plan,
    graph_placement,
    grid_placement,
    load_snapshot,
    normalize_records,
    parse_tool_call,
    radial_placement,
    split_snapshot,
    storage_from_url,
)
from paperboard.geometry import Box, Vec
from paperboard.tools import BrainstormCall, DiagramCall, MoodboardCall

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_pair(value: str) -> Vec:
    parts = [part.strip() for part in value.split(",") if part.strip()]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected two comma separated numbers, got {value!r}")
    return Vec(float(parts[0]), float(parts[1]))


def _read_json(path: str) -> Any:
    text = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    return json.loads(text)


def _emit(data: Any, output: Optional[str]) -> None:
    text = json.dumps(data, indent=2, sort_keys=True)
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %s", output_path)
    else:
        print(text)


def _cmd_normalize(args: argparse.Namespace, config: BoardConfig) -> None:
    records, camera = split_snapshot(_read_json(args.snapshot))
    normalized = normalize_records(records, root_page_id=config.root_page_id)
    data: dict = {"store": normalized}
    if camera is not None:
        data["camera"] = camera.to_dict()
    _emit(data, args.output)


def _cmd_load(args: argparse.Namespace, config: BoardConfig) -> None:
    width, height = args.viewport.as_tuple()
    store = MemoryStore(viewport=Box(0.0, 0.0, width, height), root_page_id=config.root_page_id)
    report = load_snapshot(_read_json(args.snapshot), store, config=config)
    print(f"ok: {report.ok}")
    if not report.ok:
        print(f"error: {report.error}")
        raise SystemExit(1)
    print(f"shapes: {report.shapes}")
    print(f"assets: {report.assets}")
    print(f"bindings: {report.bindings}")
    print(f"camera: {report.camera.to_dict()} ({'restored' if report.camera_restored else 'fitted' if report.fitted else 'default'})")
    for note in report.notes:
        print(f"note: {note}")


def _cmd_layout(args: argparse.Namespace, config: BoardConfig) -> None:
    try:
        call = parse_tool_call(_read_json(args.call))
    except ToolCallError as exc:
        logger.error("Invalid tool call: %s", exc)
        raise SystemExit(1)

    center = args.center
    options = LayoutOptions(random_seed=args.seed)
    rng = options.rng()

    if isinstance(call, MoodboardCall):
        cells = grid_placement(call.image_descriptions, center, options, rng)
        _emit(
            [
                {"prompt": cell.prompt, "row": cell.row, "col": cell.col,
                 "x": cell.position.x, "y": cell.position.y, "rotation": cell.rotation}
                for cell in cells
            ],
            args.output,
        )
        return

    if isinstance(call, BrainstormCall):
        plan = radial_placement(call.ideas, center, call.color, options, rng)
    elif isinstance(call, DiagramCall):
        plan = graph_placement(call.nodes, call.edges, center, options)
        for skipped in plan.skipped:
            logger.warning("Edge %s skipped", skipped)
    else:  # pragma: no cover - parse_tool_call only yields the variants above
        raise SystemExit(1)

    store = MemoryStore(root_page_id=config.root_page_id)
    apply_plan(store, plan)
    _emit(store.get_snapshot(), args.output)


def _cmd_projects(args: argparse.Namespace, config: BoardConfig) -> None:
    manager = ProjectManager(storage_from_url(config.storage_url), config=config)
    manager.initialize()

    if args.action == "create":
        if not args.name:
            logger.error("A project name is required")
            raise SystemExit(2)
        project = manager.create_project(args.name)
        print(f"created {project.id} {project.name}")
    elif args.action == "delete":
        if not args.id:
            logger.error("A project id is required")
            raise SystemExit(2)
        if manager.get_project(args.id) is None:
            logger.error("Unknown project %s", args.id)
            raise SystemExit(1)
        if not args.yes:
            logger.error("Refusing to delete %s without --yes", args.id)
            raise SystemExit(1)
        active = manager.delete_project(args.id)
        print(f"deleted {args.id}, active {active.id}")
    for project in manager.projects:
        marker = "*" if manager.current is not None and project.id == manager.current.id else " "
        print(f"{marker} {project.id}  {project.name}  {project.updated_at}")


def _cmd_template(args: argparse.Namespace, config: BoardConfig) -> None:
    manager = ProjectManager(storage_from_url(config.storage_url), config=config)
    templates = manager.templates
    if args.action == "reset":
        templates.reset_custom_template()
        print("custom template removed")
        return
    logger.info("Custom template stored: %s", templates.has_custom_template())
    _emit(templates.resolve_starting_template(), args.output)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="PaperBoard canvas tools")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--storage",
        help="Storage URL: memory://, file:///dir or sqlite:///file.db (default: PAPERBOARD_STORAGE_URL)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    normalize_parser = subparsers.add_parser("normalize", help="Repair a snapshot into valid records")
    normalize_parser.add_argument("snapshot", help="Snapshot JSON file, or - for stdin")
    normalize_parser.add_argument("-o", "--output", help="Write the result to this path")

    load_parser = subparsers.add_parser("load", help="Load a snapshot and report the resulting camera")
    load_parser.add_argument("snapshot", help="Snapshot JSON file, or - for stdin")
    load_parser.add_argument("--viewport", type=_parse_pair, default="1280,800", help="Viewport size as W,H (default: 1280,800)")

    layout_parser = subparsers.add_parser("layout", help="Lay out an assistant tool call")
    layout_parser.add_argument("call", help='Tool call JSON file {"name", "args"}, or - for stdin')
    layout_parser.add_argument("--center", type=_parse_pair, default="0,0", help="Page-space center as X,Y (default: 0,0)")
    layout_parser.add_argument("--seed", type=int, help="Random seed for rotations and radii")
    layout_parser.add_argument("-o", "--output", help="Write the result to this path")

    projects_parser = subparsers.add_parser("projects", help="List, create or delete projects")
    projects_parser.add_argument("action", nargs="?", choices=["list", "create", "delete"], default="list")
    projects_parser.add_argument("--name", help="Name of the project to create")
    projects_parser.add_argument("--id", help="Id of the project to delete")
    projects_parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    template_parser = subparsers.add_parser("template", help="Show or reset the starting template")
    template_parser.add_argument("action", nargs="?", choices=["show", "reset"], default="show")
    template_parser.add_argument("-o", "--output", help="Write the template to this path")

    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    config = BoardConfig.from_env()
    if args.storage:
        config.storage_url = args.storage

    handlers = {
        "normalize": _cmd_normalize,
        "load": _cmd_load,
        "layout": _cmd_layout,
        "projects": _cmd_projects,
        "template": _cmd_template,
    }
    handlers[args.command](args, config)


if __name__ == "__main__":
    main(sys.argv[1:])
