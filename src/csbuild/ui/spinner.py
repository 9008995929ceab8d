from __future__ import annotations

import sys
import threading

_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


class Spinner:
    """ASCII spinner drawn on stderr from a background thread.

    No-ops if stderr is not a TTY. The message can be swapped while it
    spins; ``stop`` clears the line.
    """

    def __init__(self) -> None:
        self._message = ""
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def active(self) -> bool:
        return self._thread is not None

    def start(self, message: str) -> None:
        self._message = message
        if self._thread is not None or not sys.stderr.isatty():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._spin, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join()
        self._thread = None

    def _spin(self) -> None:
        idx = 0
        while not self._stop.is_set():
            frame = _FRAMES[idx % len(_FRAMES)]
            sys.stderr.write(f"\r\033[K{frame} {self._message}")
            sys.stderr.flush()
            idx += 1
            self._stop.wait(0.08)
        # Clear the spinner line
        sys.stderr.write("\r\033[K")
        sys.stderr.flush()
