#!/usr/bin/env python3
"""
CampusDesk console - command line entry point

Usage:
    campusdesk departments list
    campusdesk departments delete <id>          # offers deactivate when blocked
    campusdesk --role faculty --user-id F1 leaves pending
    campusdesk leaves reject <id> --remarks "Clashes with internal exams"
    campusdesk --role student --user-id S1 notices feed
    campusdesk --role student --user-id S1 notices read <id>
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from campusdesk import __version__
from campusdesk.config import ConsoleConfig
from campusdesk.controllers import LeaveController, NoticeBoardController, RegistryController
from campusdesk.domain import EntityType, Role, field_of
from campusdesk.logging_config import setup_logging
from campusdesk.session import CampusSession, Session


console = Console()

REGISTRY_COMMANDS = {
    "departments": EntityType.DEPARTMENT,
    "courses": EntityType.COURSE,
    "subjects": EntityType.SUBJECT,
    "students": EntityType.STUDENT,
    "faculty": EntityType.FACULTY,
}

REGISTRY_COLUMNS = {
    EntityType.DEPARTMENT: ["code", "name", "status"],
    EntityType.COURSE: ["code", "name", "total_semesters", "status"],
    EntityType.SUBJECT: ["code", "name", "semester", "credits", "type", "status"],
    EntityType.STUDENT: ["roll_no", "name", "year", "semester", "section", "status"],
    EntityType.FACULTY: ["employee_id", "name", "designation", "status"],
}


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="campusdesk",
        description="CampusDesk - campus administration console",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--server-url", help="API base URL (default: $CAMPUSDESK_API_URL)")
    parser.add_argument("--user-id", help="Acting user id")
    parser.add_argument("--role", choices=[r.value for r in Role], help="Acting role")
    parser.add_argument("--config", "-c", help="Load settings from a JSON file")
    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of tables")
    parser.add_argument("--verbose", action="store_true", help="Log at INFO level")

    subparsers = parser.add_subparsers(dest="command")

    for name, entity_type in REGISTRY_COMMANDS.items():
        sub = subparsers.add_parser(name, help=f"Manage {entity_type.label} records")
        actions = sub.add_subparsers(dest="action", required=True)
        listing = actions.add_parser("list", help=f"List {name}")
        listing.add_argument("--status", choices=["active", "inactive"])
        if entity_type in (EntityType.COURSE, EntityType.SUBJECT, EntityType.STUDENT, EntityType.FACULTY):
            listing.add_argument("--department", dest="department_id")
        if entity_type == EntityType.SUBJECT:
            listing.add_argument("--course", dest="course_id")
        for action in ("toggle", "deactivate", "delete"):
            cmd = actions.add_parser(action, help=f"{action.capitalize()} a {entity_type.label}")
            cmd.add_argument("id")
            if action == "delete":
                cmd.add_argument("--yes", "-y", action="store_true",
                                 help="Deactivate without asking when delete is blocked")

    leaves = subparsers.add_parser("leaves", help="Leave requests")
    leave_actions = leaves.add_subparsers(dest="action", required=True)
    leave_actions.add_parser("mine", help="Your own requests")
    leave_actions.add_parser("pending", help="Requests waiting for your review")
    leave_actions.add_parser("stats", help="Leave statistics")
    apply = leave_actions.add_parser("apply", help="Apply for leave")
    apply.add_argument("--from", dest="from_date", required=True, help="YYYY-MM-DD")
    apply.add_argument("--to", dest="to_date", required=True, help="YYYY-MM-DD")
    apply.add_argument("--type", dest="leave_type", default="casual")
    apply.add_argument("--reason", required=True)
    approve = leave_actions.add_parser("approve", help="Approve a pending request")
    approve.add_argument("id")
    approve.add_argument("--remarks")
    reject = leave_actions.add_parser("reject", help="Reject a pending request")
    reject.add_argument("id")
    reject.add_argument("--remarks", required=True)

    notices = subparsers.add_parser("notices", help="Notice board")
    notice_actions = notices.add_subparsers(dest="action", required=True)
    feed = notice_actions.add_parser("feed", help="Notices visible to you")
    feed.add_argument("--search")
    read = notice_actions.add_parser("read", help="Mark a notice as read")
    read.add_argument("id")
    post = notice_actions.add_parser("post", help="Post a notice")
    post.add_argument("--title", required=True)
    post.add_argument("--content", required=True)
    post.add_argument("--audience", dest="target_audience", default="all",
                      choices=["all", "faculty", "students"])
    post.add_argument("--priority", default="medium", choices=["low", "medium", "high", "urgent"])
    post.add_argument("--important", dest="is_important", action="store_true")

    return parser


def build_config(args: argparse.Namespace) -> ConsoleConfig:
    config = ConsoleConfig.from_env()
    if args.config:
        config.load_from_file(args.config)
    if args.server_url:
        config.api_base_url = args.server_url
    if args.user_id:
        config.user_id = args.user_id
    if args.role:
        config.role = args.role
    if args.verbose:
        config.log_level = "INFO"
    if args.json:
        config.output_format = "json"
    return config


# ==========================================
# Rendering
# ==========================================

def render_rows(title: str, rows: Sequence[Dict[str, Any]], columns: List[str], as_json: bool) -> None:
    if as_json:
        console.print_json(json.dumps(list(rows), default=str))
        return
    if not rows:
        console.print(f"[dim]No {title.lower()} found[/dim]")
        return
    table = Table(title=title)
    table.add_column("ID", style="dim")
    for column in columns:
        table.add_column(column.replace("_", " ").title())
    for row in rows:
        table.add_row(str(field_of(row, "id")), *[str(field_of(row, c, "") or "") for c in columns])
    console.print(table)


def report(ok: bool, message: str) -> int:
    console.print(f"[green]✓ {message}[/green]" if ok else f"[red]✗ {message}[/red]")
    return 0 if ok else 1


# ==========================================
# Commands
# ==========================================

async def run_registry(ctx: CampusSession, args: argparse.Namespace, as_json: bool) -> int:
    entity_type = REGISTRY_COMMANDS[args.command]
    filters = {k: getattr(args, k, None) for k in ("status", "department_id", "course_id")}
    controller = RegistryController(ctx, entity_type, **{k: v for k, v in filters.items() if v})

    if args.action == "list":
        result = await controller.load()
        if not result.ok:
            return report(False, result.error)
        render_rows(args.command.title(), result.items, REGISTRY_COLUMNS[entity_type], as_json)
        return 0

    if args.action == "toggle":
        result = await controller.toggle(args.id)
        return report(result.ok, result.message)

    if args.action == "deactivate":
        result = await controller.deactivate(args.id)
        return report(result.ok, result.message)

    result = await controller.delete(args.id)
    if result.ok or result.conflict is None:
        return report(result.ok, result.message)

    breakdown = result.conflict.dependencies
    console.print(Panel(
        "\n".join(f"{name.title()}: {count}" for name, count in breakdown.to_dict().items()),
        title=f"[yellow]Cannot delete {entity_type.label}[/yellow]",
        subtitle="Deactivating keeps every linked record",
    ))
    if args.yes or Confirm.ask(f"Deactivate this {entity_type.label} instead?", default=False):
        result = await controller.deactivate(args.id)
        return report(result.ok, result.message)
    return 1


async def run_leaves(ctx: CampusSession, args: argparse.Namespace, as_json: bool) -> int:
    controller = LeaveController(ctx)
    columns = ["applicant_role", "leave_type", "from_date", "to_date", "status", "remarks"]

    if args.action in ("mine", "pending"):
        result = await controller.load(reviewing=args.action == "pending")
        if not result.ok:
            return report(False, result.error)
        render_rows("Leave Requests", result.items, columns, as_json)
        return 0

    if args.action == "stats":
        stats = await controller.load_stats()
        if not stats:
            return report(False, "Could not load leave statistics")
        if as_json:
            console.print_json(json.dumps(stats))
        else:
            table = Table(title="Leave Statistics")
            table.add_column("Metric")
            table.add_column("Count", justify="right")
            for key, value in stats.items():
                table.add_row(key.replace("_", " ").title(), str(value))
            console.print(table)
        return 0

    if args.action == "apply":
        result = await controller.apply({
            "from_date": args.from_date,
            "to_date": args.to_date,
            "leave_type": args.leave_type,
            "reason": args.reason,
        })
        return report(result.ok, "Leave request submitted" if result.ok else result.error)

    await controller.load()
    if args.action == "approve":
        result = await controller.approve(args.id, args.remarks)
    else:
        result = await controller.reject(args.id, args.remarks)
    return report(result.ok, result.message)


async def run_notices(ctx: CampusSession, args: argparse.Namespace, as_json: bool) -> int:
    controller = NoticeBoardController(ctx)
    if args.action == "feed":
        result = await controller.load(search=args.search)
        if not result.ok:
            return report(False, result.error)
        render_rows("Notices", result.items,
                    ["title", "priority", "target_audience", "created_by_role", "created_at"], as_json)
        if not as_json and controller.unread:
            console.print(f"[cyan]{controller.unread} unread[/cyan]")
        return 0

    if args.action == "read":
        result = await controller.mark_read(args.id)
        return report(result.ok, result.message)

    result = await controller.post({
        "title": args.title,
        "content": args.content,
        "target_audience": args.target_audience,
        "priority": args.priority,
        "is_important": args.is_important,
    })
    return report(result.ok, "Notice posted" if result.ok else result.error)


async def dispatch(config: ConsoleConfig, args: argparse.Namespace, transport=None) -> int:
    as_json = config.output_format == "json"
    async with CampusSession(config, Session.from_config(config), transport=transport) as ctx:
        if args.command in REGISTRY_COMMANDS:
            return await run_registry(ctx, args, as_json)
        if args.command == "leaves":
            return await run_leaves(ctx, args, as_json)
        return await run_notices(ctx, args, as_json)


def main(argv: Optional[Sequence[str]] = None):
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    config = build_config(args)
    setup_logging(config.log_level, config.log_file)

    try:
        exit_code = asyncio.run(dispatch(config, args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
