"""AWS Certificate Manager client implementation."""

from __future__ import annotations

import time
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ... import metrics
from ...utils.errors import NotFoundError, TransientError
from ...utils.rate_limit import rate_limit_acm

ERROR_CODE_NOT_FOUND = "ResourceNotFoundException"


class ACMGateway:
    """Certificate gateway backed by AWS Certificate Manager."""

    def __init__(self, client: Any) -> None:
        """Initialize the gateway.

        Args:
            client: boto3 ACM client
        """
        self.client = client

    def _call(self, operation: str, **params: Any) -> dict[str, Any]:
        """Perform one ACM call with rate limiting and metrics."""
        start_time = time.time()
        try:
            response = rate_limit_acm(getattr(self.client, operation))(**params)
            metrics.api_call_total.labels(api_type="acm", operation=operation, result="success").inc()
            return response
        except (ClientError, BotoCoreError):
            metrics.api_call_total.labels(api_type="acm", operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="acm", operation=operation).observe(duration)

    def import_certificate(
        self,
        arn: str | None,
        certificate: bytes,
        chain: bytes,
        private_key: bytes,
    ) -> str:
        """Import a certificate into ACM, re-importing in place when an ARN is given."""
        params: dict[str, Any] = {
            "Certificate": certificate,
            "PrivateKey": private_key,
        }
        if arn:
            params["CertificateArn"] = arn
        if chain:
            params["CertificateChain"] = chain

        try:
            response = self._call("import_certificate", **params)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if arn and code == ERROR_CODE_NOT_FOUND:
                raise NotFoundError(f"certificate {arn} not found") from e
            raise TransientError(f"could not import certificate: {e}") from e
        except BotoCoreError as e:
            raise TransientError(f"could not import certificate: {e}") from e

        return response["CertificateArn"]

    def delete_certificate(self, arn: str) -> None:
        """Delete a certificate from ACM."""
        try:
            self._call("delete_certificate", CertificateArn=arn)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == ERROR_CODE_NOT_FOUND:
                raise NotFoundError(f"certificate {arn} not found") from e
            raise TransientError(f"could not delete certificate {arn}: {e}") from e
        except BotoCoreError as e:
            raise TransientError(f"could not delete certificate {arn}: {e}") from e
