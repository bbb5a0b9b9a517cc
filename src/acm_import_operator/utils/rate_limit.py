"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))
_ACM_RATE_LIMIT_PER_SECOND = float(os.getenv("ACM_RATE_LIMIT_PER_SECOND", "5.0"))

# Track last call times, shared by all worker threads
_k8s_last_call_time: float = 0.0
_acm_last_call_time: float = 0.0
_k8s_lock = threading.Lock()
_acm_lock = threading.Lock()


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls.

    Enforces a minimum interval between calls so concurrent handlers cannot
    overwhelm the Kubernetes API server.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _k8s_last_call_time
        with _k8s_lock:
            min_interval = 1.0 / _K8S_RATE_LIMIT_PER_SECOND
            time_since_last_call = time.time() - _k8s_last_call_time
            if time_since_last_call < min_interval:
                time.sleep(min_interval - time_since_last_call)
            _k8s_last_call_time = time.time()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def rate_limit_acm(func: _F) -> _F:
    """Decorator to rate limit ACM API calls.

    ACM throttles ImportCertificate aggressively, so calls are spaced out
    client-side.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _acm_last_call_time
        with _acm_lock:
            min_interval = 1.0 / _ACM_RATE_LIMIT_PER_SECOND
            time_since_last_call = time.time() - _acm_last_call_time
            if time_since_last_call < min_interval:
                time.sleep(min_interval - time_since_last_call)
            _acm_last_call_time = time.time()
        return func(*args, **kwargs)

    return wrapper  # type: ignore
