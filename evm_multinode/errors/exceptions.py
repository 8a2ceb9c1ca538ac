"""
Exception definitions for evm_multinode
"""

from enum import Enum
from typing import Dict, Optional


class ErrorCode(Enum):
    """
    Unified error codes

    1xxx - Provider errors
    2xxx - Aggregate (all providers) errors
    3xxx - Encoding errors
    4xxx - Decoding errors
    5xxx - Validation errors
    6xxx - Signer errors
    7xxx - ABI fetch / gas price feed errors
    9xxx - Configuration errors
    """
    # Provider errors (recoverable)
    PROVIDER_CONNECTION_FAILED = "1001"
    PROVIDER_TIMEOUT = "1002"
    PROVIDER_RATE_LIMITED = "1003"
    PROVIDER_INVALID_RESPONSE = "1004"
    PROVIDER_RPC_ERROR = "1005"
    PROVIDER_NOT_FOUND = "1006"

    # Every provider failed one logical call
    ALL_PROVIDERS_FAILED = "2001"
    NO_PROVIDERS = "2002"

    # Encoding errors
    ENCODE_FAILED = "3001"

    # Decoding errors
    DECODE_SELECTOR_UNKNOWN = "4001"
    DECODE_FAILED = "4002"

    # Validation errors
    VALIDATION_NEGATIVE_VALUE = "5001"
    VALIDATION_LENGTH_MISMATCH = "5002"
    VALIDATION_INSUFFICIENT_BALANCE = "5003"
    VALIDATION_INVALID_ADDRESS = "5004"

    # Signer errors
    SIGNER_NOT_CONFIGURED = "6001"
    SIGNER_FAILED = "6002"
    SIGNER_REJECTED = "6003"
    SIGNER_DEVICE_UNAVAILABLE = "6004"
    SIGNER_INVALID_SIGNATURE = "6005"

    # External data sources
    ABI_FETCH_FAILED = "7001"
    GAS_PRICE_UNAVAILABLE = "7002"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class EvmClientError(Exception):
    """
    Base exception for all evm_multinode errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class ProviderError(EvmClientError):
    """
    Failure of a single provider, tagged with the provider's name

    Raised when:
    - Connection to the endpoint fails
    - Request times out
    - The node answers with a JSON-RPC error
    - The requested object does not exist on the node
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PROVIDER_CONNECTION_FAILED,
        provider: Optional[str] = None,
        original_error: Optional[Exception] = None,
        recoverable: bool = True,
        details: Optional[dict] = None,
    ):
        merged = {"provider": provider} if provider else {}
        merged.update(details or {})
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details=merged,
        )
        self.provider = provider

    @property
    def is_not_found(self) -> bool:
        return self.code == ErrorCode.PROVIDER_NOT_FOUND

    @classmethod
    def connection_failed(cls, provider: str, error: Exception = None) -> "ProviderError":
        return cls(
            f"{provider}: connection failed: {error}",
            ErrorCode.PROVIDER_CONNECTION_FAILED,
            provider=provider,
            original_error=error,
        )

    @classmethod
    def timeout(cls, provider: str, timeout_seconds: float) -> "ProviderError":
        return cls(
            f"{provider}: request timed out after {timeout_seconds}s",
            ErrorCode.PROVIDER_TIMEOUT,
            provider=provider,
        )

    @classmethod
    def rate_limited(cls, provider: str) -> "ProviderError":
        return cls(
            f"{provider}: rate limit exceeded",
            ErrorCode.PROVIDER_RATE_LIMITED,
            provider=provider,
        )

    @classmethod
    def rpc_error(cls, provider: str, message: str, rpc_code: Optional[int] = None, data=None) -> "ProviderError":
        return cls(
            message,
            ErrorCode.PROVIDER_RPC_ERROR,
            provider=provider,
            recoverable=False,
            details={"rpc_error_code": rpc_code, "rpc_error_data": data},
        )

    @classmethod
    def not_found(cls, provider: str, what: str) -> "ProviderError":
        return cls(
            f"{provider}: {what} not found",
            ErrorCode.PROVIDER_NOT_FOUND,
            provider=provider,
            recoverable=False,
        )

    @classmethod
    def invalid_response(cls, provider: str, reason: str) -> "ProviderError":
        return cls(
            f"{provider}: {reason}",
            ErrorCode.PROVIDER_INVALID_RESPONSE,
            provider=provider,
        )


class AggregateError(EvmClientError):
    """
    Every configured provider failed one logical call

    Carries each provider's error under its name. An empty map means no
    provider was configured.
    """

    def __init__(self, operation: str, errors: Dict[str, Exception]):
        self.operation = operation
        self.errors = dict(errors)
        if self.errors:
            causes = "; ".join(f"{name}: {err}" for name, err in sorted(self.errors.items()))
            message = f"{operation} failed on all {len(self.errors)} providers ({causes})"
            code = ErrorCode.ALL_PROVIDERS_FAILED
        else:
            message = f"{operation} failed: no providers configured"
            code = ErrorCode.NO_PROVIDERS
        super().__init__(
            message,
            code,
            recoverable=bool(self.errors),
            details={"operation": operation, "providers": sorted(self.errors)},
        )

    @property
    def all_not_found(self) -> bool:
        """True when every provider reported the object as missing"""
        return bool(self.errors) and all(
            isinstance(err, ProviderError) and err.is_not_found
            for err in self.errors.values()
        )

    @property
    def any_not_found(self) -> bool:
        """True when at least one provider answered that the object is missing"""
        return any(
            isinstance(err, ProviderError) and err.is_not_found
            for err in self.errors.values()
        )


class EncodeError(EvmClientError):
    """Payload or wire encoding failed; always raised before any network call"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            ErrorCode.ENCODE_FAILED,
            recoverable=False,
            original_error=original_error,
        )


class DecodeError(EvmClientError):
    """Selector lookup or parameter unpack failed"""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.DECODE_FAILED,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, code, recoverable=False, original_error=original_error)

    @classmethod
    def unknown_selector(cls, selector: str) -> "DecodeError":
        return cls(
            f"no method with id: {selector}",
            ErrorCode.DECODE_SELECTOR_UNKNOWN,
        )


class ValidationError(EvmClientError):
    """
    Caller input rejected before any I/O

    Raised when:
    - A value is negative
    - Parallel lists differ in length
    - A balance cannot cover the fee reserve
    - An address is not 20 bytes of hex
    """

    def __init__(self, message: str, code: ErrorCode, details: Optional[dict] = None):
        super().__init__(message, code, recoverable=False, details=details)

    @classmethod
    def negative_value(cls, name: str, value) -> "ValidationError":
        return cls(
            f"{name} must be non-negative, got {value}",
            ErrorCode.VALIDATION_NEGATIVE_VALUE,
            details={name: str(value)},
        )

    @classmethod
    def length_mismatch(cls, left: str, left_len: int, right: str, right_len: int) -> "ValidationError":
        return cls(
            f"{left} and {right} must have the same length ({left_len} != {right_len})",
            ErrorCode.VALIDATION_LENGTH_MISMATCH,
            details={left: left_len, right: right_len},
        )

    @classmethod
    def insufficient_balance(cls, balance: int, fee: int, price_gwei: float) -> "ValidationError":
        return cls(
            f"not enough to do a tx with gas price: {price_gwei:f} gwei "
            f"(balance {balance} wei, fee reserve {fee} wei)",
            ErrorCode.VALIDATION_INSUFFICIENT_BALANCE,
            details={"balance": balance, "fee": fee},
        )

    @classmethod
    def invalid_address(cls, name: str, value) -> "ValidationError":
        return cls(
            f"{name} is not a valid address: {value}",
            ErrorCode.VALIDATION_INVALID_ADDRESS,
            details={name: str(value)},
        )


class SignerError(EvmClientError):
    """
    Signing-related errors

    Raised when:
    - No signer configured
    - Signing operation fails
    - Hardware device unreachable or the user rejected the request
    - Produced signature does not recover to the expected sender
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, code, recoverable=recoverable, original_error=original_error)

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No signer configured. Provide a private key or set EVM_PRIVATE_KEY",
            ErrorCode.SIGNER_NOT_CONFIGURED,
        )

    @classmethod
    def failed(cls, error: str, original_error: Optional[Exception] = None) -> "SignerError":
        return cls(
            f"Signing failed: {error}",
            ErrorCode.SIGNER_FAILED,
            original_error=original_error,
        )

    @classmethod
    def rejected(cls, reason: str = "user rejected the request") -> "SignerError":
        return cls(f"Signing rejected: {reason}", ErrorCode.SIGNER_REJECTED)

    @classmethod
    def device_unavailable(cls, error: Exception = None) -> "SignerError":
        return cls(
            f"Signing device unavailable: {error}",
            ErrorCode.SIGNER_DEVICE_UNAVAILABLE,
            recoverable=True,
            original_error=error,
        )

    @classmethod
    def invalid_signature(cls, expected: str, recovered: str) -> "SignerError":
        return cls(
            f"Signature recovers to {recovered}, expected {expected}",
            ErrorCode.SIGNER_INVALID_SIGNATURE,
        )


class AbiFetchError(EvmClientError):
    """ABI for an address could not be obtained or parsed"""

    def __init__(self, message: str, address: Optional[str] = None, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            ErrorCode.ABI_FETCH_FAILED,
            recoverable=True,
            original_error=original_error,
            details={"address": address} if address else None,
        )
        self.address = address


class ConfigurationError(EvmClientError):
    """Configuration errors - not recoverable without config change"""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.CONFIG_INVALID, key: Optional[str] = None):
        super().__init__(message, code, recoverable=False, details={"key": key} if key else None)
        self.key = key

    @classmethod
    def missing(cls, key: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {key}", ErrorCode.CONFIG_MISSING, key=key)

    @classmethod
    def invalid(cls, key: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration for {key}: {reason}", ErrorCode.CONFIG_INVALID, key=key)
