"""Ringtone playback for fired reminders and dated sub-reminders.

One ring is a fixed-length cue chosen by task priority, or by the ringtone picked
for a sub-reminder. A local sound file is tried first, then a hosted fallback.
Each player holds one stream at a time.
"""

import io
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, time, tzinfo
from enum import StrEnum
from pathlib import Path
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_RING_SECONDS = 10.0
SUB_REMINDER_RING_SECONDS = 6.0

FALLBACK_SOURCES = {
    "low": "https://actions.google.com/sounds/v1/alarms/beep_short.ogg",
    "medium": "https://actions.google.com/sounds/v1/alarms/digital_watch_alarm_long.ogg",
    "high": "https://actions.google.com/sounds/v1/alarms/bugle_tune.ogg",
}

RINGTONE_SOURCES = {
    "chime": "https://actions.google.com/sounds/v1/alarms/digital_watch_alarm_long.ogg",
    "digital": "https://actions.google.com/sounds/v1/alarms/beep_short.ogg",
    "bell": "https://actions.google.com/sounds/v1/alarms/bugle_tune.ogg",
}


class AudioError(Exception):
    """A sound source could not be started."""


class PlayOutcome(StrEnum):
    PLAYING = "playing"
    SUPPRESSED = "suppressed"  # quiet hours: silent, but on_end still fires
    FAILED = "failed"  # every source failed: on_end never fires
    CANCELLED = "cancelled"  # stopped or replaced while loading


class PlaybackHandle(Protocol):
    length: float | None

    def stop(self) -> None: ...


class AudioBackend(Protocol):
    def start(self, source: str, volume: float) -> PlaybackHandle: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timer(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingTimer:
    """Runs callbacks on ``threading.Timer`` daemon threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass
class _PygamePlayback:
    sound: object
    channel: object
    length: float | None

    def stop(self) -> None:
        self.channel.stop()


class PygameAudioBackend:
    """Plays sounds through the pygame mixer.

    Hosted sounds are downloaded with httpx once and kept in memory.
    """

    def __init__(self, download_timeout: float = 10.0):
        self.download_timeout = download_timeout
        self._mixer = None
        self._downloads: dict[str, bytes] = {}

    def _get_mixer(self):
        if self._mixer is None:
            try:
                import pygame
            except ImportError as e:
                raise AudioError("pygame is not installed, audio disabled") from e
            try:
                pygame.mixer.init()
            except pygame.error as e:
                raise AudioError(f"Audio device unavailable: {e}") from e
            self._mixer = pygame.mixer
        return self._mixer

    def _download(self, url: str) -> bytes:
        content = self._downloads.get(url)
        if content is None:
            try:
                response = httpx.get(url, timeout=self.download_timeout, follow_redirects=True)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise AudioError(f"Could not download {url}: {e}") from e
            content = self._downloads[url] = response.content
        return content

    def preload(self, sources: Iterable[str]) -> int:
        """Download hosted sounds before the first ring. Returns how many are cached."""
        for source in sources:
            if not source.startswith(("http://", "https://")):
                continue
            try:
                self._download(source)
            except AudioError as e:
                logger.warning(f"Preload failed: {e}")
        return len(self._downloads)

    def start(self, source: str, volume: float) -> PlaybackHandle:
        mixer = self._get_mixer()
        try:
            if source.startswith(("http://", "https://")):
                sound = mixer.Sound(file=io.BytesIO(self._download(source)))
            else:
                if not Path(source).is_file():
                    raise AudioError(f"Sound file not found: {source}")
                sound = mixer.Sound(source)
        except AudioError:
            raise
        except Exception as e:
            raise AudioError(f"Could not load {source}: {e}") from e

        sound.set_volume(volume)
        channel = sound.play()
        if channel is None:
            raise AudioError("No free mixer channel")
        return _PygamePlayback(sound=sound, channel=channel, length=sound.get_length() or None)


@dataclass(frozen=True)
class QuietHours:
    """A daily local-time window; ``start > end`` wraps past midnight."""

    start: time
    end: time
    tz: tzinfo | None = None

    def contains(self, moment: datetime) -> bool:
        local = moment.astimezone(self.tz) if self.tz else moment.astimezone()
        current = local.time()
        if self.start == self.end:
            return False
        if self.start > self.end:
            return current >= self.start or current < self.end
        return self.start <= current < self.end


def default_sources(priority: str, sounds_dir: str | Path = "sounds") -> list[tuple[str, str]]:
    """Primary then fallback source for a priority, as ``(label, source)`` pairs."""
    if priority not in FALLBACK_SOURCES:
        priority = "medium"
    return [
        ("local", str(Path(sounds_dir) / f"{priority}-priority.mp3")),
        ("fallback", FALLBACK_SOURCES[priority]),
    ]


def ringtone_sources(ringtone: str, sounds_dir: str | Path = "sounds") -> list[tuple[str, str]]:
    """Sources for a sub-reminder ringtone; unknown names get the chime."""
    if ringtone not in RINGTONE_SOURCES:
        ringtone = "chime"
    return [
        ("local", str(Path(sounds_dir) / f"{ringtone}.mp3")),
        ("fallback", RINGTONE_SOURCES[ringtone]),
    ]


class RingtonePlayer:
    """Plays one ring at a time and reports its end exactly once."""

    def __init__(
        self,
        backend: AudioBackend | None = None,
        timer: Timer | None = None,
        duration: float = DEFAULT_RING_SECONDS,
        quiet_hours: QuietHours | None = None,
        sources: Callable[[str], list[tuple[str, str]]] = default_sources,
        volume: float = 0.7,
        clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
    ):
        self.backend = backend or PygameAudioBackend()
        self.timer = timer or ThreadingTimer()
        self.duration = duration
        self.quiet_hours = quiet_hours
        self.sources = sources
        self.volume = volume
        self.clock = clock
        self._lock = threading.Lock()
        self._handle: PlaybackHandle | None = None
        self._timer_handle: TimerHandle | None = None
        self._ring: object | None = None

    @property
    def is_playing(self) -> bool:
        return self._handle is not None

    def play(self, cue: str, on_end: Callable[[], None]) -> PlayOutcome:
        """Start a ring for ``cue``, stopping any ring already in progress.

        ``cue`` is whatever ``sources`` is keyed by: a priority or a ringtone name.
        Sources load outside the lock, so ``stop`` never waits on a download. A
        ring stopped or replaced while loading comes back ``CANCELLED``.
        """
        ring = object()
        with self._lock:
            self._stop_locked()
            self._ring = ring

            if self.quiet_hours and self.quiet_hours.contains(self.clock()):
                logger.info(f"Quiet hours, skipping {cue} ringtone")
                self._timer_handle = self.timer.call_later(
                    self.duration, lambda: self._finish(ring, on_end)
                )
                return PlayOutcome.SUPPRESSED

        for label, source in self.sources(cue):
            if self._ring is not ring:
                break
            try:
                handle = self.backend.start(source, self.volume)
            except Exception as e:
                logger.warning(f"{label} ringtone failed ({source}): {e}")
                continue

            with self._lock:
                if self._ring is ring:
                    self._handle = handle
                    delay = min(self.duration, handle.length) if handle.length else self.duration
                    self._timer_handle = self.timer.call_later(
                        delay, lambda: self._finish(ring, on_end)
                    )
                    logger.info(f"Playing {label} ringtone for {cue}")
                    return PlayOutcome.PLAYING
            self._stop_handle(handle)
            break

        with self._lock:
            if self._ring is not ring:
                logger.info(f"Ringtone for {cue} stopped while loading")
                return PlayOutcome.CANCELLED
            self._ring = None
        logger.error(f"All ringtone sources failed for {cue}; reminder stays active until stopped")
        return PlayOutcome.FAILED

    def stop(self) -> None:
        """Halt the current ring, if any, without reporting its end."""
        with self._lock:
            self._stop_locked()

    def _stop_locked(self) -> None:
        self._ring = None
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None
        if self._handle is not None:
            self._stop_handle(self._handle)
            self._handle = None

    @staticmethod
    def _stop_handle(handle: PlaybackHandle) -> None:
        try:
            handle.stop()
        except Exception as e:
            logger.warning(f"Error stopping ringtone: {e}")

    def _finish(self, ring: object, on_end: Callable[[], None]) -> None:
        with self._lock:
            # Stopped or replaced since this ring started
            if self._ring is not ring:
                return
            self._timer_handle = None
            self._stop_locked()
        on_end()
