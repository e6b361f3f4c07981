"""Typed read access to the POAP ERC-721 contract."""

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, keccak, to_checksum_address
from loguru import logger

from src.poap.evm.client import EvmRpcClient
from src.poap.evm.rate_limiter import RateLimiter
from src.poap.exceptions import RpcResponseError
from src.poap.models import ChainConfig, CheckerConfig

BALANCE_OF = function_signature_to_4byte_selector("balanceOf(address)")
TOKEN_OF_OWNER_BY_INDEX = function_signature_to_4byte_selector(
    "tokenOfOwnerByIndex(address,uint256)"
)
TOKEN_EVENT = function_signature_to_4byte_selector("tokenEvent(uint256)")

# Transfer(address indexed from, address indexed to, uint256 indexed tokenId)
TRANSFER_TOPIC = "0x" + keccak(text="Transfer(address,address,uint256)").hex()


class PoapContract:
    """POAP contract bound to one endpoint connection."""

    def __init__(self, client: EvmRpcClient, address: str) -> None:
        self._client = client
        self._address = to_checksum_address(address)

    @property
    def endpoint(self) -> str:
        return self._client.url

    async def network_id(self) -> int:
        return await self._client.chain_id()

    async def balance_of(self, owner: str) -> int:
        data = BALANCE_OF + abi_encode(["address"], [to_checksum_address(owner)])
        return await self._call_uint(data, "balanceOf")

    async def token_of_owner_by_index(self, owner: str, index: int) -> int:
        data = TOKEN_OF_OWNER_BY_INDEX + abi_encode(
            ["address", "uint256"], [to_checksum_address(owner), index]
        )
        return await self._call_uint(data, "tokenOfOwnerByIndex")

    async def token_event(self, token_id: int) -> int:
        data = TOKEN_EVENT + abi_encode(["uint256"], [token_id])
        return await self._call_uint(data, "tokenEvent")

    async def transferred_token_ids(self, owner: str) -> list[int]:
        """Token ids ever transferred to owner, from the full Transfer log history.

        Deduplicated, first-seen order. Tokens later sent away are still
        included; the event lookup and filter downstream tolerate that.
        """
        logs = await self._client.get_logs(
            self._address,
            [TRANSFER_TOPIC, None, _address_topic(owner)],
            from_block="0x0",
            to_block="latest",
        )
        token_ids: dict[int, None] = {}
        for log in logs:
            topics = log.get("topics") or []
            if len(topics) < 4:
                logger.debug(f"[RPC] Skipping Transfer log without indexed tokenId: {topics}")
                continue
            try:
                token_ids.setdefault(int(topics[3], 16), None)
            except (TypeError, ValueError) as e:
                raise RpcResponseError(f"Transfer log has invalid tokenId topic {topics[3]!r}") from e
        return list(token_ids)

    async def close(self) -> None:
        await self._client.close()

    async def _call_uint(self, data: bytes, name: str) -> int:
        raw = await self._client.call(self._address, data)
        try:
            (value,) = abi_decode(["uint256"], raw)
        except DecodingError as e:
            raise RpcResponseError(f"{name} returned undecodable data ({len(raw)} bytes)") from e
        return value


def open_poap_contract(chain: ChainConfig, url: str, config: CheckerConfig) -> PoapContract:
    """Default handle factory: fresh client per endpoint attempt, no shared state."""
    client = EvmRpcClient(
        url,
        timeout=config.http_timeout,
        rate_limiter=RateLimiter(config.max_rps),
    )
    return PoapContract(client, config.contract_address)


def _address_topic(address: str) -> str:
    return "0x" + address.lower().removeprefix("0x").rjust(64, "0")
