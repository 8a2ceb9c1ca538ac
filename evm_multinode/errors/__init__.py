"""
Error definitions for evm_multinode
"""

from .exceptions import (
    ErrorCode,
    EvmClientError,
    ProviderError,
    AggregateError,
    EncodeError,
    DecodeError,
    ValidationError,
    SignerError,
    AbiFetchError,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "EvmClientError",
    "ProviderError",
    "AggregateError",
    "EncodeError",
    "DecodeError",
    "ValidationError",
    "SignerError",
    "AbiFetchError",
    "ConfigurationError",
]
