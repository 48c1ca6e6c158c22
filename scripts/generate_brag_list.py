"""
CLI Entry Point: Brag List Builder

Usage:
    python scripts/generate_brag_list.py generate tasks.json --mode senior --wording safe
    python scripts/generate_brag_list.py generate tasks.json --offline
    python scripts/generate_brag_list.py show
    python scripts/generate_brag_list.py accept 0
    python scripts/generate_brag_list.py delete 2
    python scripts/generate_brag_list.py delete-ledger 0
    python scripts/generate_brag_list.py delete-ledger --id 3f9c2a1b7d4e8f60

tasks.json holds a list of completed task records, e.g.
    [{"title": "Email triage", "steps": ["Sort inbox (~10 min)"], "completed_at": "2024-05-01T10:00:00Z"}]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from brag.common.config import Config
from brag.common.errors import BragError, log_on_exception
from brag.common.logger import get_logger, setup_logging
from brag.services.brag_service import BragService

logger = get_logger("brag.cli", component="cli")


def load_tasks(path: str) -> List[dict]:
    """Load completed task records from a JSON file (a list, or {"tasks": [...]})."""
    task_path = Path(path)
    if not task_path.exists():
        raise FileNotFoundError(f"Task file not found: {path}")

    data = json.loads(task_path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("tasks", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of tasks in {path}")
    return data


def print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate and curate achievement statements from completed tasks"
    )
    parser.add_argument("--data-dir", help=f"Data directory (default: {Config.BRAG_DATA_DIR})")
    parser.add_argument("--offline", action="store_true", help="Skip the model; use fallback synthesis")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Generate a new batch from a tasks JSON file")
    generate.add_argument("tasks", help="Path to a JSON file of completed tasks")
    generate.add_argument("--mode", default="ic", choices=["ic", "senior", "lead"])
    generate.add_argument("--wording", default="safe", choices=["safe", "ambitious"])

    sub.add_parser("show", help="Show the ledger and the current batch")

    accept = sub.add_parser("accept", help="Accept a batch entry into the ledger")
    accept.add_argument("index", type=int)

    delete = sub.add_parser("delete", help="Delete a batch entry")
    delete.add_argument("index", type=int)

    delete_ledger = sub.add_parser("delete-ledger", help="Delete a ledger entry")
    target = delete_ledger.add_mutually_exclusive_group(required=True)
    target.add_argument("index", type=int, nargs="?")
    target.add_argument("--id", dest="entry_id")

    return parser


def run(args: argparse.Namespace) -> Any:
    service = BragService.from_config(offline=args.offline, data_dir=args.data_dir)

    if args.command == "generate":
        result = service.generate_batch(load_tasks(args.tasks), args.mode, args.wording)
        if result.fallback_reason:
            logger.warning(f"Model unavailable, used fallback: {result.fallback_reason}")
        return result.to_dict()

    if args.command == "show":
        return service.read_all().to_dict()

    if args.command == "accept":
        return service.accept(index=args.index).to_dict()

    if args.command == "delete":
        return {"success": True, "removed": service.delete_generated(args.index).to_dict()}

    if args.command == "delete-ledger":
        if args.entry_id:
            removed = service.delete_ledger_by_id(args.entry_id)
        else:
            removed = service.delete_ledger(args.index)
        return {"success": True, "removed": removed.to_dict()}

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: List[str] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.debug else Config.LOG_LEVEL, Config.LOG_FORMAT, stream=sys.stderr)

    try:
        with log_on_exception(logger.logger, args.command, level=logging.ERROR, include_traceback=args.debug):
            print_json(run(args))
    except (BragError, ValueError, FileNotFoundError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
