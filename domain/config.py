"""
Configuration module for the installment sales service.

All configuration values are loaded from environment variables with sensible defaults.
See .env.example for all available configuration options.
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from domain.services.amortization import PaymentBasis


def _get_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    return float(os.getenv(key, default))


def _get_int(key: str, default: int) -> int:
    """Get int from environment variable."""
    return int(os.getenv(key, default))


def _get_str(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get string from environment variable, treating empty as unset."""
    return os.getenv(key) or default


def _get_bool(key: str, default: bool) -> bool:
    """Get bool from environment variable ("1", "true", "yes" are true)."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class InstallmentPolicyConfig:
    """Limits applied to installment terms before they reach the engine."""

    # Caller-side cap; the amortization engine itself has no upper bound
    max_installments: int = field(default_factory=lambda: _get_int("INSTALLMENT_MAX_COUNT", 60))
    default_installments: int = field(default_factory=lambda: _get_int("INSTALLMENT_DEFAULT_COUNT", 12))
    default_annual_rate: float = field(default_factory=lambda: _get_float("INSTALLMENT_DEFAULT_ANNUAL_RATE", 36.0))
    # Payment basis used by the calculator preview when the request does not choose one
    preview_basis: str = field(default_factory=lambda: _get_str("INSTALLMENT_PREVIEW_BASIS", "rounded"))

    def get_preview_basis(self) -> PaymentBasis:
        """Return preview basis as PaymentBasis (unknown values fall back to rounded)."""
        try:
            return PaymentBasis(self.preview_basis.lower())
        except ValueError:
            return PaymentBasis.ROUNDED


@dataclass
class SmsConfig:
    """Kavenegar SMS provider settings."""

    enabled: bool = field(default_factory=lambda: _get_bool("SMS_ENABLED", True))
    api_key: Optional[str] = field(default_factory=lambda: _get_str("KAVENEGAR_API_KEY"))
    sender: Optional[str] = field(default_factory=lambda: _get_str("KAVENEGAR_SENDER"))
    base_url: str = field(default_factory=lambda: _get_str("KAVENEGAR_BASE_URL", "https://api.kavenegar.com/v1"))
    timeout_seconds: float = field(default_factory=lambda: _get_float("SMS_TIMEOUT_SECONDS", 30.0))
    max_retries: int = field(default_factory=lambda: _get_int("SMS_MAX_RETRIES", 3))


# Global config instances (lazy loaded)
_policy_config = None
_sms_config = None


def get_policy_config() -> InstallmentPolicyConfig:
    """Get installment policy configuration."""
    global _policy_config
    if _policy_config is None:
        _policy_config = InstallmentPolicyConfig()
    return _policy_config


def get_sms_config() -> SmsConfig:
    """Get SMS provider configuration."""
    global _sms_config
    if _sms_config is None:
        _sms_config = SmsConfig()
    return _sms_config


def reload_config():
    """Force reload of all configuration from environment variables."""
    global _policy_config, _sms_config
    _policy_config = InstallmentPolicyConfig()
    _sms_config = SmsConfig()
