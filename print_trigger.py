import logging
import threading

logger = logging.getLogger("cropsync-receipt")

DEFAULT_DELAY_MS = 800

IDLE = "idle"
SCHEDULED = "scheduled"
TRIGGERED = "triggered"
CANCELLED = "cancelled"

# Browser side of the same contract: one print per page load, dropped if the
# page goes away first.
_SCRIPT = """(function () {
  var pending = setTimeout(function () {
    pending = null;
    window.print();
  }, %d);
  window.addEventListener("pagehide", function () {
    if (pending !== null) {
      clearTimeout(pending);
      pending = null;
    }
  });
})();"""


class PrintTrigger:
    """
    Run ``action`` once, ``delay_ms`` after mount.

    idle -> scheduled -> triggered, or scheduled -> cancelled on teardown.
    The delay only gives the remote logo time to paint; it does not wait for
    the image to finish loading.
    """

    def __init__(self, action=None, delay_ms=DEFAULT_DELAY_MS, timer_factory=threading.Timer):
        if delay_ms < 0:
            raise ValueError("delay_ms must not be negative")
        self.action = action
        self.delay_ms = int(delay_ms)
        self.state = IDLE
        self._timer_factory = timer_factory
        self._timer = None
        self._lock = threading.Lock()

    def script(self) -> str:
        return _SCRIPT % self.delay_ms

    def mount(self) -> bool:
        with self._lock:
            if self.state != IDLE:
                return False
            if self.action is None:
                raise RuntimeError("PrintTrigger has no action to schedule")
            self._timer = self._timer_factory(self.delay_ms / 1000.0, self._fire)
            self._timer.daemon = True
            self._timer.start()
            self.state = SCHEDULED
        logger.info("Print scheduled in %d ms", self.delay_ms)
        return True

    def teardown(self) -> bool:
        with self._lock:
            if self.state != SCHEDULED:
                return False
            self._timer.cancel()
            self._timer = None
            self.state = CANCELLED
        logger.info("Pending print cancelled")
        return True

    def _fire(self):
        with self._lock:
            if self.state != SCHEDULED:
                return
            self.state = TRIGGERED
            self._timer = None
        logger.info("Print triggered")
        self.action()
