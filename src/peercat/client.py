"""
PeerCat API client.

Maps each API endpoint to one executor call and a typed result.
"""

import logging
from urllib.parse import quote

import httpx

from .config import USER_AGENT, ClientConfig
from .executor import RequestExecutor
from .request import RequestDescriptor
from .retry import RetryConfig
from .types import (
    ApiKey,
    Balance,
    CreateKeyParams,
    CreateKeyResult,
    GenerateParams,
    GenerateResult,
    HistoryParams,
    HistoryResponse,
    Model,
    OnChainGenerationStatus,
    PriceResponse,
    PromptSubmission,
    SubmitPromptParams,
)

logger = logging.getLogger(__name__)


def _ignore(data) -> None:
    return None


class PeerCatClient:
    """
    Async client for the PeerCat image generation API.

    Features:
    - Typed results for every endpoint
    - Automatic retry of rate limits, 5xx, timeouts and connection errors
    - Capped exponential backoff honoring Retry-After
    - One shared connection pool for concurrent calls

    Example:
        async with PeerCatClient("pcat_live_xxx") as client:
            result = await client.generate(GenerateParams("A sunset over mountains"))
            print(result.image_url)
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        retry_config: RetryConfig | None = None,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: PeerCat API key (default: PEERCAT_API_KEY env var)
            base_url: API base URL override
            timeout: Request timeout in seconds
            retry_config: Retry configuration for failed requests
            config: Complete configuration; other settings must not be given with it
            http_client: Existing httpx.AsyncClient to borrow instead of creating one
        """
        if config is None:
            overrides = {}
            if api_key is not None:
                overrides["api_key"] = api_key
            if base_url is not None:
                overrides["base_url"] = base_url
            if timeout is not None:
                overrides["timeout"] = timeout
            if retry_config is not None:
                overrides["retry"] = retry_config
            config = ClientConfig.from_env(**overrides)
        elif any(v is not None for v in (api_key, base_url, timeout, retry_config)):
            raise ValueError("Pass either config or individual settings, not both")

        self.config = config
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=config.timeout,
            headers={"User-Agent": USER_AGENT},
        )
        self._executor = RequestExecutor(self._http_client, config)

    async def __aenter__(self) -> "PeerCatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the connection pool if this client created it."""
        if self._owns_http_client:
            await self._http_client.aclose()

    def _request(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        params: dict | None = None,
    ) -> RequestDescriptor:
        return RequestDescriptor(
            method=method,
            path=path,
            api_key=self.config.api_key,
            body=body,
            params=params or None,
        )

    # ============ Image Generation ============

    async def generate(self, params: GenerateParams) -> GenerateResult:
        """Generate an image from a text prompt."""
        logger.debug(f"Generating image with model: {params.model or 'default'}")
        return await self._executor.execute(
            self._request("POST", "/v1/generate", body=params.to_dict()),
            GenerateResult.from_dict,
        )

    # ============ Models & Pricing ============

    async def get_models(self) -> list[Model]:
        """List available image generation models."""
        return await self._executor.execute(
            self._request("GET", "/v1/models"),
            lambda data: [Model.from_dict(item) for item in data["models"]],
        )

    async def get_prices(self) -> PriceResponse:
        """Get current SOL price and per-model pricing."""
        return await self._executor.execute(
            self._request("GET", "/v1/price"),
            PriceResponse.from_dict,
        )

    # ============ Account ============

    async def get_balance(self) -> Balance:
        return await self._executor.execute(
            self._request("GET", "/v1/balance"),
            Balance.from_dict,
        )

    async def get_history(self, params: HistoryParams | None = None) -> HistoryResponse:
        """Get usage history, newest first."""
        query = params.to_query() if params else None
        return await self._executor.execute(
            self._request("GET", "/v1/history", params=query),
            HistoryResponse.from_dict,
        )

    # ============ API Keys ============

    async def create_key(self, params: CreateKeyParams) -> CreateKeyResult:
        """
        Create a new API key (requires a wallet signature).

        The full key is only present in this response.
        """
        return await self._executor.execute(
            self._request("POST", "/v1/keys", body=params.to_dict()),
            CreateKeyResult.from_dict,
        )

    async def list_keys(self) -> list[ApiKey]:
        """List all API keys for the authenticated wallet."""
        return await self._executor.execute(
            self._request("GET", "/v1/keys"),
            lambda data: [ApiKey.from_dict(item) for item in data["keys"]],
        )

    async def revoke_key(self, key_id: str) -> None:
        await self._executor.execute(
            self._request("DELETE", f"/v1/keys/{quote(key_id, safe='')}"),
            _ignore,
        )

    async def update_key_name(self, key_id: str, name: str) -> None:
        await self._executor.execute(
            self._request("PATCH", f"/v1/keys/{quote(key_id, safe='')}", body={"name": name}),
            _ignore,
        )

    # ============ On-Chain Payments ============

    async def submit_prompt(self, params: SubmitPromptParams) -> PromptSubmission:
        """Submit a prompt and get the SOL payment details for it."""
        return await self._executor.execute(
            self._request("POST", "/v1/prompts", body=params.to_dict()),
            PromptSubmission.from_dict,
        )

    async def get_onchain_status(self, tx_signature: str) -> OnChainGenerationStatus:
        """Get the status of an on-chain generation by transaction signature."""
        return await self._executor.execute(
            self._request("GET", f"/v1/generate/{quote(tx_signature, safe='')}"),
            OnChainGenerationStatus.from_dict,
        )
