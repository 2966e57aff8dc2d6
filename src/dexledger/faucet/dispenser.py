"""Abstract token dispenser interface.

Defines the contract for delivering faucet tokens. Both PaperTokenDispenser
and Web3TokenDispenser implement this ABC, so the claim throttle is identical
regardless of FaucetSettings.mode.
"""

from abc import ABC, abstractmethod


class TokenDispenser(ABC):
    """Abstract base class for faucet token delivery.

    Amounts are in token minor units. Every method that submits a
    transaction returns its hash as a 0x-prefixed hex string.
    """

    @abstractmethod
    async def mint(self, to: str, amount_raw: int) -> str:
        """Mint ``amount_raw`` directly to ``to`` with the privileged signer.

        Raises:
            DeliveryError: If the mint is rejected (e.g. signer lacks the
                minter role) or cannot be submitted.
        """
        ...

    @abstractmethod
    async def transfer(self, to: str, amount_raw: int) -> str:
        """Transfer ``amount_raw`` from the signer's own balance to ``to``.

        Raises:
            DeliveryError: If the transfer is rejected or cannot be submitted.
        """
        ...

    @abstractmethod
    async def signer_balance(self) -> int:
        """Return the signer's token balance in minor units."""
        ...

    async def close(self) -> None:
        """Release network resources, if any."""
        return None
