class UploadCancelled(Exception):
    """Raised inside a transfer once its item has been removed from the queue."""


class CancelToken:
    """Cooperative cancellation flag checked by transfers at every chunk boundary."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise UploadCancelled("Upload cancelled")
