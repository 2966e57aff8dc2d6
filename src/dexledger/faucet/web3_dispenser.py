"""Live token dispenser signing ERC-20 calls through web3.

Builds, signs, and broadcasts mint/transfer transactions from the faucet's
privileged key over JSON-RPC. Gas limits are fixed from settings because the
test network's gas estimation is unreliable. Every web3 failure is surfaced
as DeliveryError with a short message.
"""

from typing import Any

from web3 import AsyncWeb3, Web3
from web3.providers import AsyncHTTPProvider

from dexledger.config import FaucetSettings
from dexledger.exceptions import ConfigurationError, DeliveryError, DeliveryPendingError
from dexledger.faucet.dispenser import TokenDispenser
from dexledger.logging import get_logger

logger = get_logger(__name__)

TOKEN_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "mint",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


def _short_error(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or type(exc).__name__


class Web3TokenDispenser(TokenDispenser):
    """Dispenser that talks to the token contract through an RPC node.

    Args:
        settings: Faucet settings (RPC URL, signer key, token, gas limits).
        w3: Optional preconfigured AsyncWeb3 instance (tests inject one).

    Raises:
        ConfigurationError: If the RPC URL or signer key is missing.
    """

    def __init__(self, settings: FaucetSettings, w3: AsyncWeb3 | None = None) -> None:
        private_key = settings.private_key.get_secret_value()
        if w3 is None and not settings.rpc_url:
            raise ConfigurationError("RPC_URL missing")
        if not private_key:
            raise ConfigurationError("PRIVATE_KEY missing")

        self._settings = settings
        self._w3 = w3 or AsyncWeb3(AsyncHTTPProvider(settings.rpc_url))
        self._account = self._w3.eth.account.from_key(private_key)
        self._token = self._w3.eth.contract(
            address=Web3.to_checksum_address(settings.token_address),
            abi=TOKEN_ABI,
        )

    @property
    def signer_address(self) -> str:
        return self._account.address

    async def mint(self, to: str, amount_raw: int) -> str:
        fn = self._token.functions.mint(Web3.to_checksum_address(to), amount_raw)
        return await self._submit("mint", fn, self._settings.mint_gas_limit)

    async def transfer(self, to: str, amount_raw: int) -> str:
        fn = self._token.functions.transfer(Web3.to_checksum_address(to), amount_raw)
        return await self._submit("transfer", fn, self._settings.transfer_gas_limit)

    async def signer_balance(self) -> int:
        try:
            return int(await self._token.functions.balanceOf(self.signer_address).call())
        except Exception as e:
            raise DeliveryError(f"balance lookup failed: {_short_error(e)}") from e

    async def close(self) -> None:
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    async def _submit(self, method: str, fn: Any, gas_limit: int) -> str:
        """Simulate, sign, and broadcast one contract call.

        The eth_call preflight surfaces authorization reverts before any gas
        is spent. When confirm_timeout_seconds is set, the receipt is awaited:
        a reverted receipt counts as a failure, and a receipt that never
        arrives raises DeliveryPendingError.
        """
        sender = self.signer_address
        try:
            await fn.call({"from": sender})
            nonce = await self._w3.eth.get_transaction_count(sender, "pending")
            tx = await fn.build_transaction(
                {"from": sender, "nonce": nonce, "gas": gas_limit}
            )
            signed = self._account.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            logger.warning("faucet_tx_rejected", method=method, error=_short_error(e))
            raise DeliveryError(f"{method} failed: {_short_error(e)}") from e

        tx_hex = Web3.to_hex(tx_hash)
        logger.info("faucet_tx_sent", method=method, tx_hash=tx_hex, nonce=nonce)

        if self._settings.confirm_timeout_seconds > 0:
            await self._await_receipt(method, tx_hash, tx_hex)
        return tx_hex

    async def _await_receipt(self, method: str, tx_hash: Any, tx_hex: str) -> None:
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._settings.confirm_timeout_seconds
            )
        except Exception as e:
            # broadcast already happened; the outcome is unknown, not failed
            logger.warning(
                "faucet_tx_unconfirmed", method=method, tx_hash=tx_hex, error=_short_error(e)
            )
            raise DeliveryPendingError(method, tx_hex) from e
        if receipt["status"] != 1:
            raise DeliveryError(f"{method} reverted in {tx_hex}")
