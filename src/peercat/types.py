"""
PeerCat API types.

Request parameter objects serialize to the API's camelCase JSON with
``to_dict``; response objects are built from it with ``from_dict``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def _compact(data: dict) -> dict:
    """Drop unset (None) fields from a request body."""
    return {key: value for key, value in data.items() if value is not None}


# ============ Generation ============


class GenerationMode(str, Enum):
    """Generation mode."""

    PRODUCTION = "production"  # uses credits
    DEMO = "demo"  # free, placeholder images


@dataclass
class GenerateParams:
    """Parameters for image generation."""

    prompt: str
    model: str | None = None
    mode: GenerationMode | None = None
    options: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.prompt:
            raise ValueError("prompt must be a non-empty string")

    def to_dict(self) -> dict:
        return _compact(
            {
                "prompt": self.prompt,
                "model": self.model,
                "mode": self.mode.value if self.mode else None,
                "options": self.options,
            }
        )

    @classmethod
    def demo(cls, prompt: str, model: str | None = None) -> "GenerateParams":
        """Create demo-mode parameters (no credits charged)."""
        return cls(prompt=prompt, model=model, mode=GenerationMode.DEMO)


@dataclass
class GenerateUsage:
    credits_used: float
    balance_remaining: float

    @classmethod
    def from_dict(cls, data: dict) -> "GenerateUsage":
        return cls(
            credits_used=float(data["creditsUsed"]),
            balance_remaining=float(data["balanceRemaining"]),
        )


@dataclass
class GenerateResult:
    """Result of an image generation."""

    id: str
    image_url: str
    model: str
    mode: GenerationMode
    usage: GenerateUsage
    ipfs_hash: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "GenerateResult":
        return cls(
            id=data["id"],
            image_url=data["imageUrl"],
            model=data["model"],
            mode=GenerationMode(data["mode"]),
            usage=GenerateUsage.from_dict(data["usage"]),
            ipfs_hash=data.get("ipfsHash"),
        )


# ============ Models & Pricing ============


@dataclass
class Model:
    """An image generation model."""

    id: str
    name: str
    description: str
    provider: str
    max_prompt_length: int
    output_format: str
    output_resolution: str
    price_usd: float

    @classmethod
    def from_dict(cls, data: dict) -> "Model":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data["description"],
            provider=data["provider"],
            max_prompt_length=int(data["maxPromptLength"]),
            output_format=data["outputFormat"],
            output_resolution=data["outputResolution"],
            price_usd=float(data["priceUsd"]),
        )


@dataclass
class ModelPrice:
    model: str
    price_usd: float
    price_sol: float
    price_sol_with_slippage: float

    @classmethod
    def from_dict(cls, data: dict) -> "ModelPrice":
        return cls(
            model=data["model"],
            price_usd=float(data["priceUsd"]),
            price_sol=float(data["priceSol"]),
            price_sol_with_slippage=float(data["priceSolWithSlippage"]),
        )


@dataclass
class PriceResponse:
    """Current pricing for all models."""

    sol_price: float
    slippage_tolerance: float
    updated_at: str
    treasury: str
    models: list[ModelPrice] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "PriceResponse":
        return cls(
            sol_price=float(data["solPrice"]),
            slippage_tolerance=float(data["slippageTolerance"]),
            updated_at=data["updatedAt"],
            treasury=data["treasury"],
            models=[ModelPrice.from_dict(item) for item in data["models"]],
        )


# ============ Account ============


@dataclass
class Balance:
    """Account balance in USD credits."""

    credits: float
    total_deposited: float
    total_spent: float
    total_withdrawn: float
    total_generated: int

    @classmethod
    def from_dict(cls, data: dict) -> "Balance":
        return cls(
            credits=float(data["credits"]),
            total_deposited=float(data["totalDeposited"]),
            total_spent=float(data["totalSpent"]),
            total_withdrawn=float(data["totalWithdrawn"]),
            total_generated=int(data["totalGenerated"]),
        )


@dataclass
class HistoryParams:
    """Pagination for usage history (server default limit: 50, max: 100)."""

    limit: int | None = None
    offset: int | None = None

    def to_query(self) -> dict:
        return _compact({"limit": self.limit, "offset": self.offset})


class HistoryStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


@dataclass
class HistoryItem:
    """A single usage record."""

    id: str
    endpoint: str
    credits_used: float
    status: HistoryStatus
    created_at: str
    model: str | None = None
    request_id: str | None = None
    completed_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryItem":
        return cls(
            id=data["id"],
            endpoint=data["endpoint"],
            credits_used=float(data["creditsUsed"]),
            status=HistoryStatus(data["status"]),
            created_at=data["createdAt"],
            model=data.get("model"),
            request_id=data.get("requestId"),
            completed_at=data.get("completedAt"),
        )


@dataclass
class Pagination:
    total: int
    limit: int
    offset: int
    has_more: bool

    @classmethod
    def from_dict(cls, data: dict) -> "Pagination":
        return cls(
            total=int(data["total"]),
            limit=int(data["limit"]),
            offset=int(data["offset"]),
            has_more=bool(data["hasMore"]),
        )


@dataclass
class HistoryResponse:
    items: list[HistoryItem]
    pagination: Pagination

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryResponse":
        return cls(
            items=[HistoryItem.from_dict(item) for item in data["items"]],
            pagination=Pagination.from_dict(data["pagination"]),
        )


# ============ API Keys ============


@dataclass
class CreateKeyParams:
    """
    Parameters for creating an API key.

    The wallet signs ``message``; the service verifies ``signature`` against
    ``public_key`` (both base58).
    """

    message: str
    signature: str
    public_key: str
    name: str | None = None

    def to_dict(self) -> dict:
        return _compact(
            {
                "name": self.name,
                "message": self.message,
                "signature": self.signature,
                "publicKey": self.public_key,
            }
        )


class KeyEnvironment(str, Enum):
    LIVE = "live"
    TEST = "test"


@dataclass
class ApiKey:
    id: str
    key_prefix: str
    environment: KeyEnvironment
    rate_limit_tier: str
    created_at: str
    revoked: bool
    name: str | None = None
    last_used_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ApiKey":
        return cls(
            id=data["id"],
            key_prefix=data["keyPrefix"],
            environment=KeyEnvironment(data["environment"]),
            rate_limit_tier=data["rateLimitTier"],
            created_at=data["createdAt"],
            revoked=bool(data["revoked"]),
            name=data.get("name"),
            last_used_at=data.get("lastUsedAt"),
        )


@dataclass
class CreateKeyResult:
    """A newly created API key. The full ``key`` is only returned once."""

    id: str
    key: str
    key_prefix: str
    environment: KeyEnvironment
    created_at: str
    warning: str
    name: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "CreateKeyResult":
        return cls(
            id=data["id"],
            key=data["key"],
            key_prefix=data["keyPrefix"],
            environment=KeyEnvironment(data["environment"]),
            created_at=data["createdAt"],
            warning=data["warning"],
            name=data.get("name"),
        )


# ============ On-Chain Payments ============


@dataclass
class SubmitPromptParams:
    """Parameters for submitting a prompt to be paid for on-chain."""

    prompt: str
    model: str | None = None
    options: dict[str, Any] | None = None
    callback_url: str | None = None

    def __post_init__(self) -> None:
        if not self.prompt:
            raise ValueError("prompt must be a non-empty string")

    def to_dict(self) -> dict:
        return _compact(
            {
                "prompt": self.prompt,
                "model": self.model,
                "options": self.options,
                "callbackUrl": self.callback_url,
            }
        )


@dataclass
class RequiredAmount:
    sol: float
    lamports: int
    usd: float

    @classmethod
    def from_dict(cls, data: dict) -> "RequiredAmount":
        return cls(
            sol=float(data["sol"]),
            lamports=int(data["lamports"]),
            usd=float(data["usd"]),
        )


@dataclass
class PromptSubmission:
    """Payment details for a submitted prompt."""

    submission_id: str
    prompt_hash: str
    payment_address: str
    required_amount: RequiredAmount
    memo: str
    model: str
    slippage_tolerance: float
    expires_at: str
    instructions: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "PromptSubmission":
        return cls(
            submission_id=data["submissionId"],
            prompt_hash=data["promptHash"],
            payment_address=data["paymentAddress"],
            required_amount=RequiredAmount.from_dict(data["requiredAmount"]),
            memo=data["memo"],
            model=data["model"],
            slippage_tolerance=float(data["slippageTolerance"]),
            expires_at=data["expiresAt"],
            instructions=dict(data.get("instructions") or {}),
        )


class OnChainStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass
class OnChainGenerationStatus:
    """Status and result of an on-chain generation."""

    tx_signature: str
    status: OnChainStatus
    model: str | None = None
    created_at: str | None = None
    image_url: str | None = None
    ipfs_hash: str | None = None
    completed_at: str | None = None
    error: str | None = None
    message: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "OnChainGenerationStatus":
        return cls(
            tx_signature=data["txSignature"],
            status=OnChainStatus(data["status"]),
            model=data.get("model"),
            created_at=data.get("createdAt"),
            image_url=data.get("imageUrl"),
            ipfs_hash=data.get("ipfsHash"),
            completed_at=data.get("completedAt"),
            error=data.get("error"),
            message=data.get("message"),
        )
