"""Command-line reminder client.

Usage:
    python -m tasktracker.client --email me@example.com

Then type ``stop``, ``snooze <minutes>``, ``queue``, ``move <from> <to>``,
``drop <index>`` or ``quit``.
"""

import argparse
import getpass
import logging
import sys
import threading
from zoneinfo import ZoneInfo

from tasktracker.client.api import ReminderApiClient, ReminderApiError
from tasktracker.client.config import get_client_settings
from tasktracker.client.ringtone import (
    FALLBACK_SOURCES,
    RINGTONE_SOURCES,
    PygameAudioBackend,
    QuietHours,
    RingtonePlayer,
    default_sources,
    ringtone_sources,
)
from tasktracker.client.session import ReminderSession

logger = logging.getLogger("tasktracker.client")


def build_session(api: ReminderApiClient) -> ReminderSession:
    settings = get_client_settings()
    quiet_hours = None
    if settings.quiet_hours_start is not None and settings.quiet_hours_end is not None:
        tz = ZoneInfo(settings.quiet_hours_timezone) if settings.quiet_hours_timezone else None
        quiet_hours = QuietHours(settings.quiet_hours_start, settings.quiet_hours_end, tz)

    backend = PygameAudioBackend()
    hosted = [*FALLBACK_SOURCES.values(), *RINGTONE_SOURCES.values()]
    threading.Thread(target=backend.preload, args=(hosted,), daemon=True).start()

    player = RingtonePlayer(
        backend,
        duration=settings.ring_duration_seconds,
        quiet_hours=quiet_hours,
        sources=lambda priority: default_sources(priority, settings.sounds_dir),
        volume=settings.volume,
    )
    sub_reminder_player = RingtonePlayer(
        backend,
        duration=settings.sub_reminder_ring_seconds,
        quiet_hours=quiet_hours,
        sources=lambda ringtone: ringtone_sources(ringtone, settings.sounds_dir),
        volume=settings.volume,
    )
    return ReminderSession(
        api,
        player,
        poll_interval=settings.poll_interval_seconds,
        sub_reminder_player=sub_reminder_player,
    )


def handle_command(session: ReminderSession, line: str) -> bool:
    """Apply one console command. Returns False when the user wants to quit."""
    parts = line.split()
    if not parts:
        return True
    command, args = parts[0].lower(), parts[1:]

    try:
        if command in ("quit", "exit"):
            return False
        if command == "stop":
            if session.stop() is None:
                print("No active reminder")
        elif command == "snooze":
            minutes = float(args[0]) if args else 10.0
            if session.snooze(minutes) is None:
                print("No active reminder")
        elif command == "queue":
            active = session.active
            print(f"Active: {active['title'] if active else '-'}")
            for index, task in enumerate(session.queue.pending):
                print(f"  {index}: [{task.get('priority')}] {task.get('title')}")
        elif command == "move":
            session.reorder(int(args[0]), int(args[1]))
        elif command == "drop":
            session.remove(int(args[0]))
        else:
            print(f"Unknown command: {command}")
    except (IndexError, ValueError) as e:
        print(f"Invalid command: {e}")
    return True


def main(argv: list[str] | None = None) -> int:
    settings = get_client_settings()
    parser = argparse.ArgumentParser(description="Task tracker reminder client")
    parser.add_argument("--url", default=settings.api_base_url, help="API base URL")
    parser.add_argument("--email", help="Log in with this email instead of an API token")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with ReminderApiClient(
        args.url, token=settings.api_token, timeout=settings.request_timeout_seconds
    ) as api:
        if args.email:
            try:
                api.login(args.email, getpass.getpass("Password: "))
            except ReminderApiError as e:
                logger.error(f"Login failed: {e}")
                return 1
        elif not api.token:
            logger.error("Set TASKTRACKER_API_TOKEN or pass --email")
            return 1

        session = build_session(api)
        session.start()
        try:
            for line in sys.stdin:
                if not handle_command(session, line):
                    break
        except KeyboardInterrupt:
            pass
        finally:
            session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
