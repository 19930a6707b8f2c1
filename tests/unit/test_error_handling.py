"""Tests for error handling across components."""

import logging

from cluster_rotator.exceptions import (
    CollaboratorError,
    ConfigurationError,
    ExecutorTimeoutError,
    HealthCheckError,
    KubernetesError,
    ReplacementError,
    RotationError,
    SnapshotError,
)
from cluster_rotator.logging_config import get_logger, setup_logging
from cluster_rotator.models.cluster import HealthCheckName


def test_custom_exception_with_details():
    """Test that custom exceptions support message and details."""
    error = KubernetesError("Failed to list nodes", "403 Forbidden")

    assert error.message == "Failed to list nodes"
    assert error.details == "403 Forbidden"
    assert "Failed to list nodes" in str(error)
    assert "Details: 403 Forbidden" in str(error)


def test_custom_exception_without_details():
    """Test that custom exceptions work without details."""
    error = SnapshotError("Inventory incomplete")

    assert error.message == "Inventory incomplete"
    assert error.details is None
    assert str(error) == "Inventory incomplete"


def test_exception_hierarchy():
    """Test that all custom exceptions inherit from RotationError."""
    for cls in (
        CollaboratorError,
        KubernetesError,
        ExecutorTimeoutError,
        HealthCheckError,
        SnapshotError,
        ReplacementError,
        ConfigurationError,
    ):
        assert issubclass(cls, RotationError)
    assert issubclass(KubernetesError, CollaboratorError)


def test_fatal_errors_are_not_transient():
    """Fatal errors must never be mistaken for retryable collaborator failures."""
    for cls in (ExecutorTimeoutError, HealthCheckError, SnapshotError, ReplacementError):
        assert not issubclass(cls, CollaboratorError)


def test_timeout_error_carries_last_error():
    cause = CollaboratorError("node not ready")
    error = ExecutorTimeoutError("wait for 3 master nodes", 60, cause)

    assert error.attempts == 60
    assert error.last_error is cause
    assert "60 attempts" in error.message
    assert "node not ready" in error.details


def test_health_check_error_names_check():
    error = HealthCheckError(HealthCheckName.CONSENSUS_STORE, CollaboratorError("etcd down"))

    assert error.check == HealthCheckName.CONSENSUS_STORE
    assert "consensus-store" in error.message
    assert "etcd down" in error.details


def test_replacement_error_names_step_and_node():
    error = ReplacementError("terminate A", "A", CollaboratorError("boom"))

    assert error.step == "terminate A"
    assert error.node == "A"
    assert "for node 'A'" in error.message


def test_logging_setup():
    """Test that logging can be configured."""
    setup_logging()

    logger = get_logger("cluster_rotator.executor")
    assert logger.name == "cluster_rotator.executor"
    assert logger.isEnabledFor(logging.INFO)
    assert not logger.isEnabledFor(logging.DEBUG)
    assert logging.getLogger("kubernetes").getEffectiveLevel() == logging.WARNING
    assert [h.level for h in logging.getLogger().handlers] == [logging.WARNING]


def test_verbose_logging_shows_retry_attempts():
    setup_logging(verbose=True)

    assert get_logger("cluster_rotator.executor").isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("urllib3").isEnabledFor(logging.DEBUG)
    assert [h.level for h in logging.getLogger().handlers] == [logging.DEBUG]


def test_log_file_receives_debug_trail(tmp_path):
    log_file = tmp_path / "logs" / "rotation.log"

    setup_logging(log_file=log_file)
    get_logger("cluster_rotator.executor").debug("list masters: attempt 1/3 failed")

    assert "attempt 1/3 failed" in log_file.read_text()
    console_handler = logging.getLogger().handlers[0]
    assert console_handler.level == logging.WARNING
