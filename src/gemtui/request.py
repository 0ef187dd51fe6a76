import logging
import threading
import time
from typing import Optional

from .clients import RequestClient, RequestError
from .state import Completed, ErrorKind, Failed, Outcome

logger = logging.getLogger(__name__)


class PendingRequest:
    '''
    One outstanding call to a RequestClient.

    The call runs on a daemon thread; the loop picks up the outcome with
    `take()`, which hands it over exactly once. Nothing but the outcome slot is
    shared with the worker.
    '''
    def __init__(self, prompt: str, client: RequestClient):
        self.prompt = prompt
        self.started = 0.0
        self._client = client
        self._outcome: Optional[Outcome] = None
        self._taken = False
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._thread = threading.Thread(target=self._run, name="gemtui-request", daemon=True)

    def start(self) -> "PendingRequest":
        self.started = time.time()
        logger.info("dispatching request (%d chars)", len(self.prompt))
        self._thread.start()
        return self

    def _run(self):
        try:
            fragments = self._client.submit(self.prompt)
            logger.info("request completed with %d fragment(s)", len(fragments))
            outcome: Outcome = Completed(fragments)
        except RequestError as e:
            logger.warning("request failed (%s): %s", e.kind.value, e)
            outcome = Failed(e.kind)
        except Exception:
            logger.exception("request client raised unexpectedly")
            outcome = Failed(ErrorKind.TRANSPORT_FAILURE)
        with self._lock:
            self._outcome = outcome
        self._done.set()

    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def elapsed(self) -> float:
        return time.time() - self.started if self.started else 0.0

    def take(self) -> Optional[Outcome]:
        with self._lock:
            if self._taken or self._outcome is None:
                return None
            self._taken = True
            return self._outcome
