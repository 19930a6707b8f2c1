"""Basic tests to verify project setup."""


def test_import_cluster_rotator():
    """Test that cluster_rotator package can be imported."""
    import cluster_rotator

    assert cluster_rotator.__version__ == "0.1.0"


def test_import_cli():
    """Test that CLI module can be imported."""
    from cluster_rotator import cli

    assert cli.app is not None


def test_import_models():
    """Test that models module can be imported."""
    from cluster_rotator import models

    assert models.ClusterSnapshot is not None
    assert models.RunResult is not None


def test_import_kubernetes_backend():
    from cluster_rotator.backend import ClusterBackend
    from cluster_rotator.kubernetes_backend import KubernetesBackend

    assert issubclass(KubernetesBackend, ClusterBackend)
