# src/sms_scheduler/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.errors import SchedulerError
from ..core.state import AppState
from ..tasks.task_api import get_stats, get_task, list_tasks, schedule_message
from ..tasks.task_export import export_tasks_csv
from ..tasks.task_models import Contact, Task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /schedule, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except SchedulerError as e:
            return f"Error ({e.code}): {e.message}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _ts_local(ts: float) -> str:
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _resolve_contact(state: AppState, ref: str) -> Contact | None:
    store = state.task_store
    return store.find_contact_by_phone(ref) or store.get_contact(ref)


def _format_task(task: Task, contact: Contact | None = None) -> str:
    who = contact.display_name if contact else task.destination_id
    line = f"{task.id[:8]} {task.status.value.upper():<7} due {_ts_local(task.due_at)} -> {who}: {task.content}"
    if task.error:
        line += f" [error: {task.error}]"
    return line


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    runner = state.scheduler_runner
    if runner is None:
        sched = "not running"
    else:
        s = runner.scheduler
        sched = (
            f"every {s.interval_seconds:g}s, ticks={s.ticks_run}, skipped={s.ticks_skipped}"
            f"{', tick in progress' if s.tick_in_progress else ''}"
        )
    return (
        "Status:\n"
        f"  Tasks DB: {getattr(settings, 'tasks_db_path', '?')}\n"
        f"  Sender: {type(state.sender).__name__}\n"
        f"  Scheduler: {sched}"
    )


def cmd_contact(state: AppState, args: list[str]) -> str:
    """
    /contact add <phone> [name...]
    """
    if len(args) < 2 or args[0].lower() != "add":
        return "Usage: /contact add <phone> [name]"
    contact = state.task_store.add_contact(phone_number=args[1], name=" ".join(args[2:]) or None)
    return f"Contact added: {contact.display_name} ({contact.phone_number}) id={contact.id}"


def cmd_contacts(state: AppState, args: list[str]) -> str:
    contacts = state.task_store.list_contacts()
    if not contacts:
        return "No contacts."
    lines = [f"Contacts ({len(contacts)}):"]
    for c in contacts:
        lines.append(f"  {c.id[:8]} {c.phone_number} {c.name or ''}".rstrip())
    return "\n".join(lines)


def cmd_device(state: AppState, args: list[str]) -> str:
    """
    /device add <device_id> [name...]
    """
    if len(args) < 2 or args[0].lower() != "add":
        return "Usage: /device add <device_id> [name]"
    device = state.task_store.register_device(device_id=args[1], name=" ".join(args[2:]))
    return f"Device registered: {device.name} ({device.device_id}) id={device.id}"


def cmd_devices(state: AppState, args: list[str]) -> str:
    devices = state.task_store.list_devices()
    if not devices:
        return "No devices."
    lines = [f"Devices ({len(devices)}):"]
    for d in devices:
        lines.append(f"  {d.id[:8]} {d.device_id} {d.name} [{d.status}] last seen {_ts_local(d.last_seen)}")
    return "\n".join(lines)


def cmd_schedule(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /schedule <phone|contact_id> <minutes> [@device_id] <text...>
    """
    usage = "Usage: /schedule <phone|contact_id> <minutes> [@device_id] <text...>"
    if len(args) < 3:
        return usage

    contact = _resolve_contact(state, args[0])
    if contact is None:
        return f"Unknown contact: {args[0]}"

    try:
        minutes = int(args[1])
    except ValueError:
        return usage

    rest = args[2:]
    device_pk = None
    if rest and rest[0].startswith("@"):
        device = state.task_store.find_device(rest[0][1:])
        if device is None:
            return f"Unknown device: {rest[0][1:]}"
        device_pk = device.id
        rest = rest[1:]

    task = schedule_message(
        state,
        destination_id=contact.id,
        content=" ".join(rest),
        run_after_minutes=minutes,
        sender_device_id=device_pk,
    )
    logger.debug("Scheduled from console task_id=%s", task.id)
    return f"Scheduled {task.id[:8]} for {_ts_local(task.due_at)} -> {contact.display_name}"


def cmd_tasks(state: AppState, args: list[str]) -> str:
    limit = None
    if args:
        try:
            limit = max(1, int(args[0]))
        except ValueError:
            return "Usage: /tasks [limit]"
    views = list_tasks(state, limit=limit)
    if not views:
        return "No tasks."
    return "\n".join(_format_task(v.task, v.contact) for v in views)


def cmd_task(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /task <id>"
    ref = args[0]
    # Listings show 8-char ids; accept a unique prefix.
    matches = [v for v in list_tasks(state) if v.task.id.startswith(ref)]
    if len(matches) == 1:
        return _format_task(matches[0].task, matches[0].contact)
    if len(matches) > 1:
        return f"Ambiguous task id prefix: {ref}"
    task = get_task(state, ref)
    return _format_task(task, state.task_store.get_contact(task.destination_id))


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = get_stats(state)
    return (
        "Stats:\n"
        f"  Contacts:  {s.total_contacts}\n"
        f"  Scheduled: {s.total_scheduled}\n"
        f"  Sent:      {s.total_sent}\n"
        f"  Failed:    {s.total_failed}\n"
        f"  Pending:   {s.total_pending}"
    )


def cmd_export(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /export <path.csv>"
    n = export_tasks_csv(state.task_store, args[0])
    return f"Exported {n} task(s) to {args[0]}"


def cmd_tick(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    runner = state.scheduler_runner
    if runner is None:
        return "Scheduler is not running."
    if emit:
        emit("[SCHEDULER] Running one tick...")
    report = runner.trigger_tick()
    if report is None:
        return "Tick skipped: another tick is still running."
    if report.error:
        return f"Tick aborted: {report.error}"
    return f"Tick done: selected={report.selected} sent={report.sent} failed={report.failed} faults={report.faults}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store, sender and scheduler state.")
registry.register("contact", cmd_contact, help_text="Add a contact: /contact add <phone> [name].")
registry.register("contacts", cmd_contacts, help_text="List contacts.")
registry.register("device", cmd_device, help_text="Register a device: /device add <device_id> [name].")
registry.register("devices", cmd_devices, help_text="List sending devices.")
registry.register(
    "schedule",
    cmd_schedule,
    help_text="Schedule a message: /schedule <phone|contact_id> <minutes> [@device_id] <text>.",
)
registry.register("tasks", cmd_tasks, help_text="List tasks, newest first: /tasks [limit].")
registry.register("task", cmd_task, help_text="Show one task: /task <id>.")
registry.register("stats", cmd_stats, help_text="Show delivery statistics.")
registry.register("export", cmd_export, help_text="Export all tasks as CSV: /export <path>.")
registry.register("tick", cmd_tick, help_text="Run one scheduler tick now.")
