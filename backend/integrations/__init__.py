"""
Property data providers.

Pluggable provider pattern for feeding the yield engine:
  - RemoteMetricsProvider     (property management API over HTTP)
  - SyntheticMetricsProvider  (seeded random data, degraded mode)
  - InMemoryMetricsProvider   (caller-supplied values)
  - FallbackMetricsProvider   (primary with timeout, secondary on failure)

Usage:
    from integrations import build_metrics_provider

    provider = build_metrics_provider(get_settings())
    snapshot = await provider.fetch_metrics("prop-1", datetime.utcnow())
"""

from integrations.base import (
    ActionExecutor,
    MetricsProvider,
    ProviderKind,
    get_provider,
    register_provider,
)
from integrations.fallback import FallbackMetricsProvider
from integrations.in_memory import InMemoryMetricsProvider, PropertyData
from integrations.remote import RemoteActionExecutor, RemoteMetricsProvider
from integrations.synthetic import SyntheticMetricsProvider


def _remote_config(settings) -> dict:
    return {
        "base_url": settings.metrics_api_url,
        "token": settings.metrics_api_token,
        "timeout": settings.upstream_timeout_seconds,
        "retry_attempts": settings.upstream_retry_attempts,
    }


def build_metrics_provider(settings) -> MetricsProvider:
    """Remote provider, wrapped in a synthetic fallback when the policy allows it."""
    remote = get_provider(ProviderKind.REMOTE, _remote_config(settings))
    if not settings.allow_synthetic_fallback:
        return remote
    synthetic = get_provider(ProviderKind.SYNTHETIC, {"seed": settings.synthetic_seed})
    return FallbackMetricsProvider(remote, synthetic, timeout=settings.upstream_timeout_seconds)


def build_action_executor(settings) -> ActionExecutor:
    return RemoteActionExecutor(_remote_config(settings))


__all__ = [
    "ActionExecutor",
    "MetricsProvider",
    "ProviderKind",
    "PropertyData",
    "get_provider",
    "register_provider",
    "build_metrics_provider",
    "build_action_executor",
    "FallbackMetricsProvider",
    "InMemoryMetricsProvider",
    "RemoteActionExecutor",
    "RemoteMetricsProvider",
    "SyntheticMetricsProvider",
]
