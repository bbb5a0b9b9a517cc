"""Kubernetes resource store implementation."""

from __future__ import annotations

import base64
import time
from typing import Any, Callable

from kubernetes import client
from kubernetes.client.exceptions import ApiException

from ... import metrics
from ...constants import API_GROUP, API_VERSION, FIELD_MANAGER, PLURAL_CERTIFICATE_IMPORT
from ...utils.errors import NotFoundError, translate_api_exception
from ...utils.rate_limit import rate_limit_k8s

JSON_PATCH_CONTENT_TYPE = "application/json-patch+json"
MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"


class KubernetesStore:
    """Resource store backed by the Kubernetes API."""

    def __init__(
        self,
        custom_api: client.CustomObjectsApi,
        core_api: client.CoreV1Api,
        request_timeout: float = 30.0,
    ) -> None:
        """Initialize the store.

        Args:
            custom_api: API client for ACMCertificateImport objects
            core_api: API client for Secrets and Services
            request_timeout: Timeout applied to every API call, in seconds
        """
        self.custom_api = custom_api
        self.core_api = core_api
        self.request_timeout = request_timeout

    def _call(self, operation: str, what: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        """Perform one API call with rate limiting, metrics and error translation."""
        start_time = time.time()
        try:
            result = rate_limit_k8s(fn)(_request_timeout=self.request_timeout, **kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except ApiException as e:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            raise translate_api_exception(e, what) from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def get_certificate_import(self, namespace: str, name: str) -> dict[str, Any] | None:
        try:
            return self._call(
                "get_certificate_import",
                f"ACMCertificateImport {namespace}/{name}",
                self.custom_api.get_namespaced_custom_object,
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL_CERTIFICATE_IMPORT,
                name=name,
            )
        except NotFoundError:
            return None

    def list_certificate_imports(self, namespace: str) -> list[dict[str, Any]]:
        result = self._call(
            "list_certificate_imports",
            f"ACMCertificateImports in {namespace}",
            self.custom_api.list_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_CERTIFICATE_IMPORT,
        )
        return result.get("items", [])

    def annotate_certificate_import(self, namespace: str, name: str, annotations: dict[str, str]) -> None:
        self._call(
            "annotate_certificate_import",
            f"ACMCertificateImport {namespace}/{name}",
            self.custom_api.patch_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_CERTIFICATE_IMPORT,
            name=name,
            body={"metadata": {"annotations": annotations}},
            field_manager=FIELD_MANAGER,
            _content_type=MERGE_PATCH_CONTENT_TYPE,
        )

    def update_certificate_import(self, body: dict[str, Any]) -> dict[str, Any]:
        meta = body["metadata"]
        return self._call(
            "update_certificate_import",
            f"ACMCertificateImport {meta['namespace']}/{meta['name']}",
            self.custom_api.replace_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=meta["namespace"],
            plural=PLURAL_CERTIFICATE_IMPORT,
            name=meta["name"],
            body=body,
            field_manager=FIELD_MANAGER,
        )

    def update_certificate_import_status(self, body: dict[str, Any]) -> dict[str, Any]:
        meta = body["metadata"]
        return self._call(
            "update_certificate_import_status",
            f"ACMCertificateImport {meta['namespace']}/{meta['name']} status",
            self.custom_api.replace_namespaced_custom_object_status,
            group=API_GROUP,
            version=API_VERSION,
            namespace=meta["namespace"],
            plural=PLURAL_CERTIFICATE_IMPORT,
            name=meta["name"],
            body=body,
            field_manager=FIELD_MANAGER,
        )

    def get_secret_data(self, namespace: str, name: str) -> dict[str, bytes]:
        secret = self._call(
            "get_secret",
            f"secret {name!r}",
            self.core_api.read_namespaced_secret,
            name=name,
            namespace=namespace,
        )
        # The client returns base64 encoded strings
        return {key: base64.b64decode(value) for key, value in (secret.data or {}).items()}

    def get_service_metadata(self, namespace: str, name: str) -> dict[str, Any]:
        service = self._call(
            "get_service",
            f"service {name!r}",
            self.core_api.read_namespaced_service,
            name=name,
            namespace=namespace,
        )
        return {
            "annotations": service.metadata.annotations,
            "resourceVersion": service.metadata.resource_version,
        }

    def patch_service(
        self,
        namespace: str,
        name: str,
        operations: list[dict[str, Any]],
        field_manager: str,
    ) -> None:
        self._call(
            "patch_service",
            f"service {name!r}",
            self.core_api.patch_namespaced_service,
            name=name,
            namespace=namespace,
            body=operations,
            field_manager=field_manager,
            _content_type=JSON_PATCH_CONTENT_TYPE,
        )
