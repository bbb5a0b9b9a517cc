"""Tests for the operator entry point handlers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import kopf
import pytest

from acm_import_operator import main
from acm_import_operator.constants import ANNOTATION_SECRET_VERSION, FINALIZER
from acm_import_operator.handlers import CertificateImportReconciler, ReconcileOutcome
from acm_import_operator.utils.errors import ConflictError, MalformedInputError, TransientError
from fakes import make_certificate_import, make_tls_secret


def make_memo(**kwargs) -> kopf.Memo:
    reconciler = MagicMock()
    reconciler.reconcile.return_value = ReconcileOutcome.SYNCED
    return kopf.Memo(reconciler=reconciler, **kwargs)


def secret_event(event_type: str = "MODIFIED", data: dict | None = None, version: str = "55") -> dict:
    body = {
        "metadata": {"name": "web-tls", "namespace": "default", "resourceVersion": version},
        "data": data if data is not None else {"tls.crt": "Y2VydA==", "tls.key": "a2V5"},
    }
    return {"event": {"type": event_type, "object": body}, "body": body}


class TestRetryDelay:
    """Test cases for the handler backoff."""

    @pytest.mark.parametrize("retry,base", [(0, 1.0), (1, 2.0), (3, 8.0), (10, 60.0)])
    def test_exponential_with_cap(self, retry, base):
        """Test that delays double per retry up to the cap, plus at most 10% jitter."""
        delay = main.retry_delay(retry)

        assert base <= delay <= base * 1.1


class TestRunReconcile:
    """Test cases for translating reconcile results into kopf outcomes."""

    def test_success(self):
        """Test that a synced pass completes the handler."""
        memo = make_memo()

        main.run_reconcile("prod", "web", memo, retry=0)

        memo.reconciler.reconcile.assert_called_once_with("prod", "web")
        assert memo.malformed is False

    def test_conflict_retries_immediately(self):
        """Test that a write conflict asks for an immediate retry."""
        memo = make_memo()
        memo.reconciler.reconcile.side_effect = ConflictError("conflict")

        with pytest.raises(kopf.TemporaryError) as exc_info:
            main.run_reconcile("prod", "web", memo, retry=4)

        assert exc_info.value.delay == 0

    def test_cleanup_progress_retries_immediately(self):
        """Test that a cleanup pass is followed right away by the release pass."""
        memo = make_memo()
        memo.reconciler.reconcile.return_value = ReconcileOutcome.CLEANED_UP

        with pytest.raises(kopf.TemporaryError) as exc_info:
            main.run_reconcile("prod", "web", memo, retry=0)

        assert exc_info.value.delay == 0

    def test_error_retries_with_backoff(self):
        """Test that other failures are retried after the backoff delay."""
        memo = make_memo()
        memo.reconciler.reconcile.side_effect = TransientError("could not import certificate: throttled")

        with pytest.raises(kopf.TemporaryError) as exc_info:
            main.run_reconcile("prod", "web", memo, retry=2)

        assert 4.0 <= exc_info.value.delay <= 4.4
        assert "TransientError" in str(exc_info.value)

    def test_malformed_input_is_not_retried(self):
        """Test that unusable certificate input fails permanently and is remembered."""
        memo = make_memo()
        memo.reconciler.reconcile.side_effect = MalformedInputError("secret 'web-tls' contains no certificates")

        with pytest.raises(kopf.PermanentError, match="no certificates"):
            main.run_reconcile("prod", "web", memo, retry=0)

        assert memo.malformed is True

    def test_next_pass_clears_malformed(self):
        """Test that a later successful pass clears the malformed marker."""
        memo = make_memo(malformed=True)

        main.run_reconcile("prod", "web", memo, retry=0)

        assert memo.malformed is False


class TestResync:
    """Test cases for the periodic resync timer."""

    def test_resync_reconciles(self):
        """Test that the timer runs a reconcile pass."""
        memo = make_memo()

        main.resync_certificate_import(name="web", namespace="prod", memo=memo, logger=MagicMock(), retry=0)

        memo.reconciler.reconcile.assert_called_once_with("prod", "web")

    def test_resync_skips_malformed(self):
        """Test that an object parked on malformed input is not retried by the timer."""
        memo = make_memo(malformed=True)

        main.resync_certificate_import(name="web", namespace="prod", memo=memo, logger=MagicMock(), retry=0)

        memo.reconciler.reconcile.assert_not_called()

    def test_resync_logs_newly_malformed(self):
        """Test that malformed input found by the timer is logged and parked."""
        memo = make_memo()
        memo.reconciler.reconcile.side_effect = MalformedInputError("bad")
        logger = MagicMock()

        main.resync_certificate_import(name="web", namespace="prod", memo=memo, logger=logger, retry=0)

        logger.warning.assert_called_once()
        assert memo.malformed is True


class TestSecretEvents:
    """Test cases for the Secret watch handler."""

    @pytest.mark.parametrize("event_type", ["ADDED", "MODIFIED"])
    def test_change_marks_imports(self, event_type):
        """Test that added and modified certificate Secrets are passed on with their version."""
        memo = make_memo()

        main.handle_secret_event(name="web-tls", namespace="default", memo=memo, **secret_event(event_type))

        memo.reconciler.secret_changed.assert_called_once_with("default", "web-tls", "55")

    @pytest.mark.parametrize("event_type", ["DELETED", None])
    def test_other_events_ignored(self, event_type):
        """Test that deletions and the initial listing trigger nothing."""
        memo = make_memo()

        main.handle_secret_event(name="web-tls", namespace="default", memo=memo, **secret_event(event_type))

        memo.reconciler.secret_changed.assert_not_called()

    def test_non_certificate_secret_ignored(self):
        """Test that Secrets without a certificate key trigger nothing."""
        memo = make_memo()

        main.handle_secret_event(
            name="web-tls", namespace="default", memo=memo, **secret_event(data={"password": "cw=="})
        )

        memo.reconciler.secret_changed.assert_not_called()


class TestMalformedSecretRecovery:
    """A Secret with unusable content is not retried until it changes."""

    def test_retried_only_after_secret_change(self, store, gateway, mock_kopf_event):
        """Test that resyncs leave a malformed import alone and a Secret change triggers a new pass."""
        store.add_secret("default", "web-tls", {"tls.crt": b"garbage", "tls.key": b"key"})
        store.add_certificate_import(make_certificate_import(finalizers=[FINALIZER]))
        memo = kopf.Memo(reconciler=CertificateImportReconciler(store, gateway))

        with pytest.raises(kopf.PermanentError):
            main.handle_certificate_import(name="web", namespace="default", memo=memo, retry=0)
        for _ in range(5):
            main.resync_certificate_import(name="web", namespace="default", memo=memo, logger=MagicMock(), retry=0)

        failures = [c for c in mock_kopf_event.call_args_list if c.kwargs["reason"] == "ReconcileFailed"]
        assert len(failures) == 1
        assert gateway.imports == []

        # The Secret is fixed: the import is marked, which kopf delivers as an update
        store.add_secret("default", "web-tls", make_tls_secret(1))
        main.handle_secret_event(name="web-tls", namespace="default", memo=memo, **secret_event(version="56"))
        annotations = store.certificate_import("default", "web")["metadata"]["annotations"]
        assert annotations[ANNOTATION_SECRET_VERSION] == "56"

        main.handle_certificate_import(name="web", namespace="default", memo=memo, retry=0)

        assert gateway.imports == [None]
        assert memo.malformed is False
        assert store.certificate_import("default", "web")["status"]["serialNumber"] == "1"


class TestLifecycle:
    """Test cases for startup and cleanup."""

    @patch("acm_import_operator.main.health.start_health_server")
    @patch("acm_import_operator.main.create_gateway_from_env")
    @patch("acm_import_operator.main.create_store_from_env")
    @patch("acm_import_operator.main.tracing.initialize_tracing")
    @patch("acm_import_operator.main.structured_logging.setup_structured_logging")
    def test_configure(self, mock_logging, mock_tracing, mock_store, mock_gateway, mock_health, monkeypatch):
        """Test that startup configures kopf and wires the reconciler into the memo."""
        monkeypatch.setenv("WORKER_COUNT", "2")
        monkeypatch.setenv("METRICS_PORT", "9090")
        settings = kopf.OperatorSettings()
        memo = kopf.Memo()

        main.configure(settings=settings, memo=memo)

        assert isinstance(memo.reconciler, CertificateImportReconciler)
        assert memo.reconciler.store is mock_store.return_value
        assert memo.reconciler.gateway is mock_gateway.return_value
        assert settings.execution.max_workers == 2
        assert settings.persistence.finalizer == FINALIZER
        assert isinstance(settings.persistence.progress_storage, kopf.AnnotationsProgressStorage)
        assert settings.posting.level == 0
        mock_health.assert_called_once_with(9090)
        assert memo.health_server is mock_health.return_value

    def test_shutdown_stops_server(self):
        """Test that cleanup stops the health server."""
        memo = kopf.Memo(health_server=MagicMock())

        main.shutdown(memo=memo, logger=MagicMock())

        memo.health_server.shutdown.assert_called_once()
