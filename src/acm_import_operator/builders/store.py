"""Builder for the Kubernetes resource store."""

from __future__ import annotations

import os

from kubernetes import client, config

from ..services.kube.store import KubernetesStore


def create_store_from_env() -> KubernetesStore:
    """Create a KubernetesStore using in-cluster config, falling back to kubeconfig.

    Environment Variables:
        K8S_REQUEST_TIMEOUT_SECONDS: Timeout for each API call (default: 30)

    Returns:
        Configured resource store
    """
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return KubernetesStore(
        custom_api=client.CustomObjectsApi(),
        core_api=client.CoreV1Api(),
        request_timeout=float(os.getenv("K8S_REQUEST_TIMEOUT_SECONDS", "30")),
    )
