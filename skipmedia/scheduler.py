import threading, time, traceback
from collections.abc import Callable
from . import log95

class PollScheduler:
    """
    Calls the scan every interval seconds from a single worker thread, so two scans never run at the same time
    A scan that takes longer than the interval just delays the next one, missed ticks are not caught up on
    """
    def __init__(self, scan: Callable[[], None], interval: float, output: log95.TextIO) -> None:
        if interval <= 0: raise ValueError("Interval has to be positive")
        self.scan = scan
        self.interval = interval
        self.logger = log95.log95("SCHED", output=output)
        self.lock = threading.Lock()
        self.stop_event = threading.Event()
        self.thread: threading.Thread | None = None
        self.ticks = 0

    @property
    def running(self) -> bool: return self.thread is not None and self.thread.is_alive()

    def start(self) -> None:
        with self.lock:
            if self.running:
                self.logger.warning("Scheduler already running")
                return
            # every run gets its own event, a thread still finishing its last scan must not see a clear
            self.stop_event = threading.Event()
            self.thread = threading.Thread(target=self._run, args=(self.stop_event,), name="skip-scheduler", daemon=True)
            self.thread.start()
        self.logger.info(f"Scanning sessions every {self.interval * 1000:.0f} ms")

    def stop(self, timeout: float | None = None) -> None:
        """Stops ticking, a scan that is running right now gets to finish"""
        with self.lock:
            thread, self.thread = self.thread, None
            self.stop_event.set()
        if thread is None: return
        if thread is not threading.current_thread(): thread.join(timeout)
        self.logger.info("Scheduler stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            start = time.monotonic()
            try: self.scan()
            except Exception as e:
                self.logger.error(f"Scan failed: {e}")
                traceback.print_exc(file=self.logger.output)
            self.ticks += 1
            if (elapsed := time.monotonic() - start) < self.interval: stop_event.wait(self.interval - elapsed)
