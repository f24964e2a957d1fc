"""
PeerCat SDK - Python client for the PeerCat image generation API.

Typed async client with automatic retry, capped exponential backoff and
classified errors.
"""

from .client import PeerCatClient
from .config import ClientConfig, SDK_VERSION
from .exceptions import (
    APIError,
    AuthenticationError,
    ConnectionError,
    ErrorKind,
    InsufficientCreditsError,
    InvalidRequestError,
    MalformedResponseError,
    NotFoundError,
    PeerCatError,
    RateLimitError,
    RateLimitInfo,
    ServerError,
    TimeoutError,
    is_retryable,
)
from .executor import RequestExecutor, classify_response
from .request import RequestDescriptor
from .retry import RetryConfig, calculate_backoff, parse_retry_after
from .types import (
    ApiKey,
    Balance,
    CreateKeyParams,
    CreateKeyResult,
    GenerateParams,
    GenerateResult,
    GenerateUsage,
    GenerationMode,
    HistoryItem,
    HistoryParams,
    HistoryResponse,
    HistoryStatus,
    KeyEnvironment,
    Model,
    ModelPrice,
    OnChainGenerationStatus,
    OnChainStatus,
    Pagination,
    PriceResponse,
    PromptSubmission,
    RequiredAmount,
    SubmitPromptParams,
)

__version__ = SDK_VERSION

__all__ = [
    # Version
    "__version__",
    # Client
    "PeerCatClient",
    "ClientConfig",
    "RequestDescriptor",
    "RequestExecutor",
    "classify_response",
    # Exceptions
    "APIError",
    "AuthenticationError",
    "ConnectionError",
    "ErrorKind",
    "InsufficientCreditsError",
    "InvalidRequestError",
    "MalformedResponseError",
    "NotFoundError",
    "PeerCatError",
    "RateLimitError",
    "RateLimitInfo",
    "ServerError",
    "TimeoutError",
    "is_retryable",
    # Retry
    "RetryConfig",
    "calculate_backoff",
    "parse_retry_after",
    # Types
    "ApiKey",
    "Balance",
    "CreateKeyParams",
    "CreateKeyResult",
    "GenerateParams",
    "GenerateResult",
    "GenerateUsage",
    "GenerationMode",
    "HistoryItem",
    "HistoryParams",
    "HistoryResponse",
    "HistoryStatus",
    "KeyEnvironment",
    "Model",
    "ModelPrice",
    "OnChainGenerationStatus",
    "OnChainStatus",
    "Pagination",
    "PriceResponse",
    "PromptSubmission",
    "RequiredAmount",
    "SubmitPromptParams",
]
