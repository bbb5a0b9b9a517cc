"""Builder for the ACM certificate gateway."""

from __future__ import annotations

import logging
import os

import boto3
from botocore.config import Config

from ..services.acm.client import ACMGateway

logger = logging.getLogger(__name__)


def create_gateway_from_env() -> ACMGateway:
    """Create an ACMGateway from environment configuration.

    Credentials come from the standard boto3 credential chain.

    Environment Variables:
        AWS_REGION / AWS_DEFAULT_REGION: Region holding the certificates
        ACM_ENDPOINT_URL: Optional alternate ACM endpoint
        ACM_CONNECT_TIMEOUT_SECONDS: Connect timeout (default: 10)
        ACM_READ_TIMEOUT_SECONDS: Read timeout (default: 30)

    Returns:
        Configured ACM gateway

    Raises:
        ValueError: If no region is configured
    """
    region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
    if not region:
        raise ValueError("AWS_REGION or AWS_DEFAULT_REGION is required")

    config = Config(
        connect_timeout=float(os.getenv("ACM_CONNECT_TIMEOUT_SECONDS", "10")),
        read_timeout=float(os.getenv("ACM_READ_TIMEOUT_SECONDS", "30")),
        # Retries are owned by the kopf handlers
        retries={"max_attempts": 1, "mode": "standard"},
    )

    client = boto3.client(
        "acm",
        region_name=region,
        endpoint_url=os.getenv("ACM_ENDPOINT_URL") or None,
        config=config,
    )
    logger.info(f"Created ACM client for region {region}")
    return ACMGateway(client)
