"""
Provider Interfaces: Abstract Contracts for Pluggable Backends

The quote engine and the swap submitter never talk to a wallet or a chain
directly. They depend on these abstract classes instead, so the demo
implementations (deterministic pseudo-balances, simulated execution) can be
swapped for real backends without touching the core logic.

Example:
    class WalletBalanceProvider(BalanceProvider):
        def balance_of(self, symbol):
            return self._wallet.get_balance(symbol)

    class ChainSwapExecutor(SwapExecutor):
        async def execute(self, quote):
            tx = await self._router.swap(quote.from_symbol, quote.to_symbol, quote.input_amount)
            ...
"""

from abc import ABC, abstractmethod
from typing import Optional

from core.schemas import QuoteResult, SwapReceipt


class BalanceProvider(ABC):
    """
    Source of available balances per token symbol.

    Implementations must return a non-negative float and 0.0 for an
    unset or unknown symbol.
    """

    @abstractmethod
    def balance_of(self, symbol: Optional[str]) -> float:
        """
        Get the balance available for a token.

        Args:
            symbol: Token symbol (None or empty when nothing is selected)

        Returns:
            float: Available amount of the token
        """
        pass


class SwapExecutor(ABC):
    """
    Executes a validated swap quote.

    The submitter only calls execute() with quotes whose is_valid is True.
    Implementations raise on failure (network, chain rejection, ...); the
    submitter turns that into its "failed" state.
    """

    @abstractmethod
    async def execute(self, quote: QuoteResult) -> SwapReceipt:
        """
        Execute the swap described by a quote.

        Args:
            quote: A valid quote (from/to resolved, amount within balance)

        Returns:
            SwapReceipt: Confirmation of the executed swap

        Raises:
            Exception: Any failure of the underlying execution
        """
        pass
