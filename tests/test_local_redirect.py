"""
Tests for the loopback consent round-trip wrapper.
"""

import threading
import time

import pytest

from mcp_assistant.adapters.local_redirect import DEFAULT_PORT, LocalRedirectAuthorization
from mcp_assistant.domain.exceptions import AuthenticationError


class FakeFlow:
    """Mimics InstalledAppFlow.run_local_server without a network round-trip."""

    def __init__(self, result=None, error=None, delay=0.0, release=None):
        self.result = result
        self.error = error
        self.delay = delay
        self.release = release
        self.kwargs = {}
        self.calls = 0

    def run_local_server(self, **kwargs):
        self.calls += 1
        self.kwargs = kwargs
        if self.release is not None:
            self.release.wait(5)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class TestLocalRedirectAuthorization:
    """Tests for LocalRedirectAuthorization."""

    def test_resolves_with_credentials(self):
        creds = object()
        flow = FakeFlow(result=creds)

        with LocalRedirectAuthorization(flow, "http://127.0.0.1:8765/cb", timeout_seconds=5) as pending:
            assert pending.wait() is creds

        assert flow.calls == 1

    def test_passes_redirect_settings_to_flow(self):
        flow = FakeFlow(result="creds")

        with LocalRedirectAuthorization(
            flow, "http://localhost:8765/cb", timeout_seconds=12, open_browser=False, service_name="Gmail"
        ) as pending:
            pending.wait()

        assert flow.kwargs["host"] == "localhost"
        assert flow.kwargs["port"] == 8765
        assert flow.kwargs["open_browser"] is False
        assert flow.kwargs["timeout_seconds"] == 12
        assert flow.kwargs["authorization_prompt_message"] == "Authorize Gmail by visiting: {url}"
        assert "Gmail auth complete" in flow.kwargs["success_message"]
        assert flow.kwargs["prompt"] == "consent"

    @pytest.mark.parametrize("uri, port", [
        ("http://127.0.0.1:0/cb", 0),
        ("http://127.0.0.1/cb", DEFAULT_PORT),
    ])
    def test_port_from_redirect_uri(self, uri, port):
        assert LocalRedirectAuthorization(FakeFlow(), uri, timeout_seconds=1).port == port

    def test_flow_error_is_wrapped(self):
        flow = FakeFlow(error=ValueError("mismatching_state"))

        with LocalRedirectAuthorization(flow, "http://127.0.0.1:0/cb", timeout_seconds=5) as pending:
            with pytest.raises(AuthenticationError, match="Authorization failed: mismatching_state"):
                pending.wait()

    def test_server_timeout_is_reported(self):
        """run_local_server gives up after timeout_seconds with a non-auth error."""
        flow = FakeFlow(error=AttributeError("'NoneType' object has no attribute 'replace'"), delay=0.1)

        with LocalRedirectAuthorization(flow, "http://127.0.0.1:0/cb", timeout_seconds=0.1) as pending:
            with pytest.raises(AuthenticationError, match=r"Timed out after 0\.1s"):
                pending.wait()

    def test_wait_timeout_cancels(self):
        release = threading.Event()
        flow = FakeFlow(result="late", release=release)
        try:
            with LocalRedirectAuthorization(flow, "http://127.0.0.1:0/cb", timeout_seconds=5) as pending:
                with pytest.raises(AuthenticationError, match=r"Timed out after 0\.1s"):
                    pending.wait(timeout=0.1)
                with pytest.raises(AuthenticationError, match="cancelled"):
                    pending.wait()
        finally:
            release.set()

    def test_cancel_unblocks_waiter(self):
        release = threading.Event()
        flow = FakeFlow(result="late", release=release)
        try:
            with LocalRedirectAuthorization(flow, "http://127.0.0.1:0/cb", timeout_seconds=5) as pending:
                timer = threading.Timer(0.05, pending.cancel)
                timer.start()
                with pytest.raises(AuthenticationError, match="cancelled"):
                    pending.wait()
                timer.join()
        finally:
            release.set()

    def test_settles_only_once(self):
        flow = FakeFlow(result="creds")

        with LocalRedirectAuthorization(flow, "http://127.0.0.1:0/cb", timeout_seconds=5) as pending:
            assert pending.wait() == "creds"
            assert pending.cancel() is False
            assert pending.wait() == "creds"
