import threading
import time
from typing import Callable, List
from fancychat.core.logging import setup_logger

logger = setup_logger()

class Deadline:
    """Timer plus abort signal scoped to one upstream call.

    The timer starts on ``__enter__`` and is cancelled on every exit path.
    When it fires, ``expired`` is set and each registered abort callback runs
    once. Callbacks can only close what they were handed (a streamed
    response); a thread still blocked on connect or on the status line keeps
    running, so the awaiting side must bound its own wait.
    """

    def __init__(self, seconds: float):
        self.seconds = seconds
        self._expired = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()
        self._timer = None
        self._started_at = None

    def __enter__(self) -> "Deadline":
        self._started_at = time.monotonic()
        self._timer = threading.Timer(self.seconds, self._expire)
        self._timer.daemon = True
        self._timer.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._timer.cancel()
        return False

    @property
    def expired(self) -> bool:
        if self._expired.is_set():
            return True
        return self._started_at is not None and self.remaining() <= 0

    def remaining(self) -> float:
        if self._started_at is None:
            return self.seconds
        return max(0.0, self.seconds - (time.monotonic() - self._started_at))

    def on_expire(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._expired.is_set():
                self._callbacks.append(callback)
                return
        self._run(callback)

    def _expire(self) -> None:
        with self._lock:
            self._expired.set()
            callbacks, self._callbacks = self._callbacks, []
        logger.warning(f"Upstream deadline of {self.seconds}s exceeded, aborting call")
        for callback in callbacks:
            self._run(callback)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.debug(f"Abort callback failed: {str(e)}")
