# tests/test_commands.py

from __future__ import annotations

from sms_scheduler.cli.commands import CommandRegistry, registry
from sms_scheduler.core.errors import ValidationError


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2 " + ",".join(args)

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a", aliases=["aa"])
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x y") == "h2 x,y"
    assert reg.handle(state, "/AA") == "h2 "
    assert reg.handle(state, "/b y", emit=notes.append) == "h3"
    assert called == {"h2": 2, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_command_registry_formats_scheduler_errors(state) -> None:
    reg = CommandRegistry()

    def bad(state, args):
        raise ValidationError("content is too long")

    reg.register("bad", bad, "bad")
    assert reg.handle(state, "/bad") == "Error (validation_error): content is too long"


def test_schedule_and_stats_through_registry(state, contact) -> None:
    reply = registry.handle(state, "/schedule +15550001 0 hello there")
    assert reply is not None and reply.startswith("Scheduled ")
    assert "Alice" in reply

    views = state.task_store.list_tasks()
    assert len(views) == 1
    assert views[0].task.content == "hello there"

    stats = registry.handle(state, "/stats") or ""
    assert "Scheduled: 1" in stats
    assert "Pending:   1" in stats


def test_schedule_rejects_long_content_and_unknown_refs(state, contact) -> None:
    words = " ".join(f"w{i}" for i in range(21))
    reply = registry.handle(state, f"/schedule {contact.id} 5 {words}") or ""
    assert reply.startswith("Error (validation_error)")
    assert state.task_store.count_tasks() == 0

    assert (registry.handle(state, "/schedule +19999999 5 hi") or "").startswith("Unknown contact")
    assert (registry.handle(state, "/schedule +15550001 5 @ghost hi") or "").startswith("Unknown device")
    assert (registry.handle(state, "/schedule +15550001 soon hi") or "").startswith("Usage")


def test_schedule_with_device_and_task_lookup_by_prefix(state, contact) -> None:
    state.task_store.register_device(device_id="phone-1", name="Pixel")
    registry.handle(state, "/schedule +15550001 10 @phone-1 hi")

    task = state.task_store.list_tasks()[0].task
    assert task.sender_device_id is not None

    shown = registry.handle(state, f"/task {task.id[:8]}") or ""
    assert shown.startswith(task.id[:8])
    assert "PENDING" in shown

    missing = registry.handle(state, "/task zzzz") or ""
    assert missing.startswith("Error (not_found)")


def test_contacts_devices_and_export(state, tmp_path) -> None:
    assert "Contact added" in (registry.handle(state, "/contact add +15550009 Bob Smith") or "")
    assert "+15550009 Bob Smith" in (registry.handle(state, "/contacts") or "")
    assert "Device registered" in (registry.handle(state, "/device add phone-2 Work phone") or "")
    assert "phone-2 Work phone" in (registry.handle(state, "/devices") or "")

    out = tmp_path / "tasks.csv"
    assert registry.handle(state, f"/export {out}") == f"Exported 0 task(s) to {out}"
    assert out.exists()


def test_tick_without_running_scheduler(state) -> None:
    assert registry.handle(state, "/tick") == "Scheduler is not running."
    assert "not running" in (registry.handle(state, "/status") or "")
