"""Flash-swap callee protocol."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class FlashSwapCallee(Protocol):
    """Contract that receives a pair's optimistic transfer before paying.

    A pair calls ``on_flash_swap`` after transferring the requested outputs
    to the callee and before verifying the invariant. The callee may use
    other pairs and assets freely, but must leave the calling pair holding
    enough input for the fee-adjusted invariant to hold, or the whole swap
    is unwound.
    """

    address: str

    def on_flash_swap(self, sender: str, amount0: int, amount1: int, data: bytes) -> None:
        """Act on borrowed assets and repay the calling pair.

        Args:
            sender: Account that initiated the swap
            amount0: Amount of token0 sent to the callee
            amount1: Amount of token1 sent to the callee
            data: Opaque bytes forwarded from the swap call
        """
        ...


__all__ = ["FlashSwapCallee"]
