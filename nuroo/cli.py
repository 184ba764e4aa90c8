#!/usr/bin/env python3
"""
Nuroo Command Line Interface

Main entry point for the `nuroo` command.

Usage:
    nuroo generate alice             # Generate today's tasks if due
    nuroo tasks alice                # Show today's tasks
    nuroo toggle alice task-ab12-1   # Flip a task's completion
    nuroo progress alice             # Show progress and difficulty per area
    nuroo progress alice --set social=40
    nuroo ratelimit alice openai_tasks
    nuroo ask alice "How can I help with speech?"
    nuroo serve                      # Start the API server
    nuroo runner --once              # One background generation pass
    nuroo --version
"""

import argparse
import asyncio
import json
import sys

from nuroo.errors import NurooError


def _services():
    from dotenv import load_dotenv

    from nuroo.logging_config import setup_logging
    from nuroo.services import build_services

    load_dotenv()
    setup_logging()
    return build_services()


def _print(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def cmd_generate(args):
    """Handle generate subcommand."""
    services = _services()
    outcome = asyncio.run(
        services.daily_task_service.check_and_generate_daily_tasks(args.user, language=args.language)
    )
    _print(outcome.to_dict())
    return 0 if outcome.status.value in ("generated", "not_due") else 1


def cmd_tasks(args):
    """Handle tasks subcommand."""
    services = _services()
    tasks = asyncio.run(services.task_manager.fetch_tasks(args.user, force_refresh=True))

    if args.json:
        _print([t.to_dict() for t in tasks])
        return

    if not tasks:
        print(f"No tasks for {args.user} today")
        return

    done = sum(1 for t in tasks if t.completed)
    print(f"Tasks for {args.user} ({done}/{len(tasks)} done)")
    for task in tasks:
        mark = "x" if task.completed else " "
        print(f"  [{mark}] {task.emoji} {task.title}  ({task.development_area.value}, {task.id})")


def cmd_toggle(args):
    """Handle toggle subcommand."""
    services = _services()

    async def run():
        await services.task_manager.fetch_tasks(args.user)
        return await services.task_manager.toggle_task_completion(args.task_id)

    _print(asyncio.run(run()).to_dict())


def cmd_progress(args):
    """Handle progress subcommand."""
    from nuroo.progress.areas import DevelopmentArea, calculate_difficulty

    services = _services()
    store = services.progress_store

    async def run():
        await store.get_or_initialize(args.user)
        for assignment in args.set or []:
            area, _, value = assignment.partition("=")
            await store.update_progress(args.user, area, float(value))
        return await store.get_or_initialize(args.user)

    progress = asyncio.run(run())
    _print(
        {
            area.value: {
                "value": progress.get(area),
                "difficulty": calculate_difficulty(progress.get(area)).value,
            }
            for area in DevelopmentArea
        }
    )


def cmd_ratelimit(args):
    """Handle ratelimit subcommand."""
    from nuroo.security.ratelimit import format_time_until_reset

    services = _services()
    limiter = services.rate_limiter

    if args.reset:
        limiter.reset(args.user, args.category)
        print(f"Reset {args.category} for {args.user}")
        return

    result = limiter.get_status(args.user, args.category)
    _print({**result.to_dict(), "resets_in": format_time_until_reset(result.reset_time)})


def cmd_ask(args):
    """Handle ask subcommand."""
    from nuroo.tasks.models import ChildProfile

    services = _services()
    availability = services.daily_limits.is_chat_available(args.user)
    if not availability.available:
        print(availability.reason)
        return 1

    async def run():
        profile = await services.store.get_profile(args.user)
        child = ChildProfile.from_dict(profile) if profile else None
        return await services.assistant.ask(args.message, child, args.language, user_id=args.user)

    print(asyncio.run(run()))
    services.daily_limits.record_message_usage(args.user)


def cmd_serve(args):
    """Handle serve subcommand."""
    import uvicorn

    from nuroo.config_models import load_config

    api_config = load_config().api
    host = args.host or api_config.host
    port = args.port or api_config.port

    print(f"Starting Nuroo API at http://{host}:{port}")
    print("Press Ctrl+C to stop")

    uvicorn.run("nuroo.api.main:app", host=host, port=port, reload=args.reload, log_level="info")


def cmd_runner(args):
    """Handle runner subcommand."""
    services = _services()
    runner = services.background_runner

    if args.once:
        _print(asyncio.run(runner.run_once()))
        return

    try:
        asyncio.run(runner.run_forever())
    except KeyboardInterrupt:
        pass


def cmd_version(args):
    """Show version information."""
    try:
        from importlib.metadata import version

        v = version("nuroo")
    except Exception:
        from nuroo import __version__

        v = f"{__version__} (development)"

    print(f"Nuroo version {v}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="nuroo",
        description="Nuroo - daily developmental tasks for children",
    )
    parser.add_argument("--version", "-V", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    generate_parser = subparsers.add_parser("generate", help="Generate today's tasks if due")
    generate_parser.add_argument("user", help="User ID")
    generate_parser.add_argument("--language", default=None, help="Language code (en, ru)")
    generate_parser.set_defaults(func=cmd_generate)

    tasks_parser = subparsers.add_parser("tasks", help="Show today's tasks")
    tasks_parser.add_argument("user", help="User ID")
    tasks_parser.add_argument("--json", action="store_true", help="Output as JSON")
    tasks_parser.set_defaults(func=cmd_tasks)

    toggle_parser = subparsers.add_parser("toggle", help="Flip a task's completion state")
    toggle_parser.add_argument("user", help="User ID")
    toggle_parser.add_argument("task_id", help="Task ID")
    toggle_parser.set_defaults(func=cmd_toggle)

    progress_parser = subparsers.add_parser("progress", help="Show or set development progress")
    progress_parser.add_argument("user", help="User ID")
    progress_parser.add_argument(
        "--set", action="append", metavar="AREA=VALUE", help="Set an area's progress (repeatable)"
    )
    progress_parser.set_defaults(func=cmd_progress)

    ratelimit_parser = subparsers.add_parser("ratelimit", help="Show or reset a rate limit")
    ratelimit_parser.add_argument("user", help="User ID")
    ratelimit_parser.add_argument("category", help="Rate limit category (e.g. openai_tasks)")
    ratelimit_parser.add_argument("--reset", action="store_true", help="Clear the counter")
    ratelimit_parser.set_defaults(func=cmd_ratelimit)

    ask_parser = subparsers.add_parser("ask", help="Ask Nuroo a question")
    ask_parser.add_argument("user", help="User ID")
    ask_parser.add_argument("message", help="Question text")
    ask_parser.add_argument("--language", default="en", help="Language code (en, ru)")
    ask_parser.set_defaults(func=cmd_ask)

    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default=None, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=cmd_serve)

    runner_parser = subparsers.add_parser("runner", help="Run background task generation")
    runner_parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    runner_parser.set_defaults(func=cmd_runner)

    args = parser.parse_args()

    if args.version:
        cmd_version(args)
        return

    if not args.command:
        parser.print_help()
        return

    try:
        result = args.func(args)
    except NurooError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if isinstance(result, int) and result != 0:
        sys.exit(result)


if __name__ == "__main__":
    main()
