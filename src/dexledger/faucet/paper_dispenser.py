"""Paper dispenser with simulated transactions.

Used for local development and demos: no RPC endpoint or signer key is
needed. Mint permission and the signer balance are configurable so the
transfer fallback path can be exercised end to end.
"""

from uuid import uuid4

from dexledger.exceptions import DeliveryError
from dexledger.faucet.dispenser import TokenDispenser
from dexledger.logging import get_logger

logger = get_logger(__name__)


class PaperTokenDispenser(TokenDispenser):
    """Simulated dispenser tracking virtual balances in memory.

    Args:
        signer_balance_raw: Starting balance of the simulated signer.
        can_mint: Whether the simulated signer holds the minter role.
    """

    def __init__(self, signer_balance_raw: int = 0, can_mint: bool = True) -> None:
        self._signer_balance = signer_balance_raw
        self._can_mint = can_mint
        self._balances: dict[str, int] = {}

    def balance_of(self, wallet: str) -> int:
        return self._balances.get(wallet.lower(), 0)

    async def mint(self, to: str, amount_raw: int) -> str:
        if not self._can_mint:
            raise DeliveryError("mint reverted: caller is not a minter")
        self._credit(to, amount_raw)
        return self._record("paper_mint", to, amount_raw)

    async def transfer(self, to: str, amount_raw: int) -> str:
        if self._signer_balance < amount_raw:
            raise DeliveryError("transfer amount exceeds balance")
        self._signer_balance -= amount_raw
        self._credit(to, amount_raw)
        return self._record("paper_transfer", to, amount_raw)

    async def signer_balance(self) -> int:
        return self._signer_balance

    def _credit(self, to: str, amount_raw: int) -> None:
        key = to.lower()
        self._balances[key] = self._balances.get(key, 0) + amount_raw

    @staticmethod
    def _record(event: str, to: str, amount_raw: int) -> str:
        tx_hash = "0x" + uuid4().hex + uuid4().hex
        logger.info(event, to=to, amount_raw=str(amount_raw), tx_hash=tx_hash)
        return tx_hash
