import asyncio

from .errors import OperationCancelled


class CancellationToken:
    """Cooperative cancel flag, checked between stages. In-flight calls finish."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Operation was cancelled")

    async def wait(self) -> None:
        await self._event.wait()
