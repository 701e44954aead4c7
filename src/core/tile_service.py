from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Protocol

from core.cfg import DEFAULT_UPDATE_INTERVAL_S, MIN_UPDATE_INTERVAL_S
from core.models import TileSettings
from core.sources import SampleSource, SampleUnavailable
from core.window import DEFAULT_CAPACITY, SlidingWindow
from huds.common import TITLE_FONT_SIZE, RenderError
from huds.compose import render_data_uri

_LOG = logging.getLogger(__name__)

MSG_TICK = "tick"
MSG_SETTINGS = "settings"
MSG_STOP = "stop"


class Host(Protocol):
    def set_image(self, data_uri: str) -> None: ...

    def set_title(self, text: str | None) -> None: ...


class TileInstance:
    """One visible tile: its window, settings, source and host.

    Ticks and settings updates arrive as messages on a private queue and
    are handled by a single worker thread, which is the only writer of
    the window.
    """

    def __init__(
        self,
        instance_id: str,
        settings: TileSettings,
        source: SampleSource,
        host: Host,
        window_capacity: int = DEFAULT_CAPACITY,
        font_path: str = "",
        font_size: int = TITLE_FONT_SIZE,
    ) -> None:
        self.instance_id = str(instance_id)
        self.settings = settings
        self.source = source
        self.host = host
        self.window = SlidingWindow(window_capacity)
        self._font_path = str(font_path or "")
        self._font_size = int(font_size)
        self._queue: queue.Queue[tuple[str, Any]] = queue.Queue()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._frames = 0
        self._skipped = 0

    @property
    def running(self) -> bool:
        with self._lock:
            thread = self._thread
        return bool(thread is not None and thread.is_alive())

    @property
    def frames(self) -> int:
        with self._lock:
            return self._frames

    @property
    def skipped(self) -> int:
        with self._lock:
            return self._skipped

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            thread = threading.Thread(
                target=self._run_loop,
                name=f"tile-{self.instance_id}",
                daemon=True,
            )
            self._thread = thread
        thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        with self._lock:
            thread = self._thread
        if thread is None:
            return
        self._queue.put((MSG_STOP, None))
        thread.join(timeout=timeout)
        with self._lock:
            if self._thread is thread and not thread.is_alive():
                self._thread = None

    def post_tick(self) -> None:
        self._queue.put((MSG_TICK, None))

    def post_settings(self, settings: TileSettings) -> None:
        self._queue.put((MSG_SETTINGS, settings))

    def wait_idle(self) -> None:
        self._queue.join()

    def handle(self, kind: str, payload: Any = None) -> bool:
        """Apply one message. Returns False once the instance should stop."""
        if kind == MSG_STOP:
            return False
        if kind == MSG_SETTINGS:
            if isinstance(payload, TileSettings):
                self.settings = payload
            return True
        if kind == MSG_TICK:
            self.process_tick()
            return True
        _LOG.warning("tile %s: unknown message %r", self.instance_id, kind)
        return True

    def process_tick(self) -> bool:
        try:
            value = self.source.poll()
        except SampleUnavailable as exc:
            _LOG.debug("tile %s: no sample this tick (%s)", self.instance_id, exc)
            self._count(skipped=True)
            return False

        self.window.append(value)
        settings = self.settings
        config = settings.to_render_config(self.window.snapshot())

        try:
            data_uri = render_data_uri(config, font_path=self._font_path, font_size=self._font_size)
        except RenderError as exc:
            _LOG.warning("tile %s: render failed, skipping update (%s)", self.instance_id, exc)
            self._count(skipped=True)
            return False

        title = settings.value_text(value) if settings.show_value_text else None
        try:
            self.host.set_image(data_uri)
            self.host.set_title(title)
        except Exception as exc:
            _LOG.warning("tile %s: host update failed (%s)", self.instance_id, exc)
            self._count(skipped=True)
            return False

        self._count(skipped=False)
        return True

    def _count(self, skipped: bool) -> None:
        with self._lock:
            if skipped:
                self._skipped += 1
            else:
                self._frames += 1

    def _run_loop(self) -> None:
        try:
            while True:
                kind, payload = self._queue.get()
                try:
                    keep_going = self.handle(kind, payload)
                except Exception:
                    _LOG.exception("tile %s: message %r failed", self.instance_id, kind)
                    keep_going = True
                finally:
                    self._queue.task_done()
                if not keep_going:
                    break
        finally:
            with self._lock:
                if self._thread is not None and self._thread is threading.current_thread():
                    self._thread = None


class TileService:
    """Registry of visible tiles plus the fixed-interval ticker."""

    def __init__(
        self,
        update_interval_s: float = DEFAULT_UPDATE_INTERVAL_S,
        window_capacity: int = DEFAULT_CAPACITY,
        font_path: str = "",
        font_size: int = TITLE_FONT_SIZE,
    ) -> None:
        self._interval = max(MIN_UPDATE_INTERVAL_S, float(update_interval_s))
        self._capacity = int(window_capacity)
        self._font_path = str(font_path or "")
        self._font_size = int(font_size)
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._instances: dict[str, TileInstance] = {}

    @classmethod
    def from_cfg(cls, cfg: Any) -> "TileService":
        return cls(
            update_interval_s=cfg.update_interval_s,
            window_capacity=cfg.window_capacity,
            font_path=cfg.font_path,
            font_size=cfg.font_size,
        )

    @property
    def running(self) -> bool:
        with self._lock:
            thread = self._thread
        return bool(thread is not None and thread.is_alive())

    def instance_ids(self) -> list[str]:
        with self._lock:
            return list(self._instances)

    def get_instance(self, instance_id: str) -> TileInstance | None:
        with self._lock:
            return self._instances.get(str(instance_id))

    def add_instance(
        self,
        instance_id: str,
        settings: TileSettings,
        source: SampleSource,
        host: Host,
    ) -> TileInstance:
        inst = TileInstance(
            instance_id,
            settings,
            source,
            host,
            window_capacity=self._capacity,
            font_path=self._font_path,
            font_size=self._font_size,
        )
        with self._lock:
            previous = self._instances.get(inst.instance_id)
            self._instances[inst.instance_id] = inst
        if previous is not None:
            previous.stop()
        inst.start()
        _LOG.info("tile %s added (%s)", inst.instance_id, settings.visualization.value)
        return inst

    def remove_instance(self, instance_id: str) -> bool:
        with self._lock:
            inst = self._instances.pop(str(instance_id), None)
        if inst is None:
            return False
        inst.stop()
        _LOG.info("tile %s removed", inst.instance_id)
        return True

    def update_settings(self, instance_id: str, settings: TileSettings) -> bool:
        inst = self.get_instance(instance_id)
        if inst is None:
            return False
        inst.post_settings(settings)
        return True

    def tick_all(self) -> int:
        with self._lock:
            targets = list(self._instances.values())
        for inst in targets:
            inst.post_tick()
        return len(targets)

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop_event.clear()
            thread = threading.Thread(target=self._run_loop, name="tile-ticker", daemon=True)
            self._thread = thread
        thread.start()

    def stop(self) -> None:
        with self._lock:
            thread = self._thread
            instances = list(self._instances.values())
            self._instances.clear()
        self._stop_event.set()
        if thread is not None:
            thread.join(timeout=2.0)
        for inst in instances:
            inst.stop()
        with self._lock:
            if self._thread is thread and (thread is None or not thread.is_alive()):
                self._thread = None

    def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                self.tick_all()
                self._stop_event.wait(self._interval)
        finally:
            with self._lock:
                if self._thread is not None and self._thread is threading.current_thread():
                    self._thread = None
