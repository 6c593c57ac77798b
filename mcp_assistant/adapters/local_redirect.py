"""
Browser consent with a one-shot loopback redirect.

google-auth-oauthlib's ``InstalledAppFlow.run_local_server`` serves the
redirect, checks the state and exchanges the code. It runs on a worker thread
and the waiter meets it through a single Future that settles exactly once:
with credentials, an error, a timeout or an explicit cancel.
"""

import logging
import threading
import time
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional
from urllib.parse import urlparse

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ..domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 53682


class LocalRedirectAuthorization:
    """
    Runs one consent round-trip for ``flow`` on the redirect URI's host and port.

    Usage:
        with LocalRedirectAuthorization(flow, redirect_uri, timeout_seconds=300) as pending:
            creds = pending.wait()
    """

    # Headroom for the redirect server to report its own timeout first
    WAIT_GRACE_SECONDS = 1.0

    def __init__(
        self,
        flow: InstalledAppFlow,
        redirect_uri: str,
        timeout_seconds: float,
        open_browser: bool = True,
        service_name: str = "Google",
    ):
        parsed = urlparse(redirect_uri)
        self.host = parsed.hostname or "127.0.0.1"
        self.port = parsed.port if parsed.port is not None else DEFAULT_PORT
        self.timeout_seconds = timeout_seconds
        self.open_browser = open_browser
        self.service_name = service_name

        self._flow = flow
        self._result: Future = Future()
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    def start(self) -> "LocalRedirectAuthorization":
        """Start the redirect server and open the consent page."""
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="oauth-redirect")
        worker = self._executor.submit(self._run)
        worker.add_done_callback(self._on_worker_done)
        logger.info("Waiting for OAuth redirect on http://%s:%s/", self.host, self.port)
        return self

    def wait(self, timeout: Optional[float] = None) -> Credentials:
        """
        Block until the consent round-trip settles.

        Args:
            timeout: Seconds to wait; defaults to the server timeout

        Raises:
            AuthenticationError: On timeout, cancellation, or a failed exchange
        """
        limit = timeout if timeout is not None else self.timeout_seconds + self.WAIT_GRACE_SECONDS
        try:
            return self._result.result(timeout=limit)
        except FutureTimeoutError as exc:
            self.cancel()
            shown = timeout if timeout is not None else self.timeout_seconds
            raise AuthenticationError(
                f"Timed out after {shown:g}s waiting for the authorization callback"
            ) from exc
        except CancelledError as exc:
            raise AuthenticationError("Authorization was cancelled") from exc

    def cancel(self) -> bool:
        """Abandon the wait; returns False if the round-trip already settled."""
        with self._lock:
            return self._result.cancel()

    def close(self) -> None:
        """Release the worker; a blocked redirect server stops at its own timeout."""
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    def __enter__(self) -> "LocalRedirectAuthorization":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()
        self.close()

    def _run(self) -> Credentials:
        started = time.monotonic()
        try:
            return self._flow.run_local_server(
                host=self.host,
                port=self.port,
                open_browser=self.open_browser,
                timeout_seconds=self.timeout_seconds,
                authorization_prompt_message=f"Authorize {self.service_name} by visiting: {{url}}",
                success_message=f"{self.service_name} auth complete. You can close this tab.",
                access_type="offline",
                prompt="consent",
            )
        except Exception as exc:
            if time.monotonic() - started >= self.timeout_seconds:
                raise AuthenticationError(
                    f"Timed out after {self.timeout_seconds:g}s waiting for the authorization callback"
                ) from exc
            raise AuthenticationError(f"Authorization failed: {exc}") from exc

    def _on_worker_done(self, worker: Future) -> None:
        error = worker.exception()
        if error is not None:
            self._settle(None, error)
        else:
            self._settle(worker.result(), None)

    def _settle(self, creds: Optional[Credentials], error: Optional[BaseException]) -> bool:
        """Settle the result exactly once."""
        with self._lock:
            if self._result.done():
                return False
            if error is not None:
                self._result.set_exception(error)
            else:
                self._result.set_result(creds)
            return True
