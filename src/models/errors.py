# src/models/errors.py

"""Exception taxonomy for the comparison core.

``UpstreamError`` subclasses are recovered locally by advancing to the
next transport, reformulation or store and never reach a caller.
``ValidationError``, ``ProductNotFound`` and ``StoresUnavailable`` are
the only caller-visible failures.
"""


class GroceryCompareError(Exception):
    """Base class for every error raised by grocery_compare."""

    status_code: int = 500


class UpstreamError(GroceryCompareError):
    """A retailer transport failed; the next strategy should run."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"[{source}] {message}")
        self.source = source


class UpstreamTimeout(UpstreamError):
    """The call did not complete within its timeout."""


class UpstreamSchemaMismatch(UpstreamError):
    """The payload did not have the shape the normalizer expects."""


class UpstreamEmpty(UpstreamError):
    """Valid response with zero usable items."""


class BarcodeMismatch(UpstreamError):
    """The returned item's code differs from the requested code."""

    def __init__(
        self, source: str, requested: str, returned: str,
    ) -> None:
        super().__init__(
            source,
            f"barcode mismatch: requested {requested!r}, "
            f"got {returned!r}",
        )
        self.requested = requested
        self.returned = returned


class ValidationError(GroceryCompareError):
    """Malformed caller input (e.g. an empty query)."""

    status_code = 400


class ProductNotFound(GroceryCompareError):
    """No store produced a verified match for a barcode."""

    status_code = 404

    def __init__(self, code: str) -> None:
        super().__init__(f"Product not found with barcode: {code}")
        self.code = code


class StoresUnavailable(GroceryCompareError):
    """Every queried store hard-errored, so absence proves nothing."""

    status_code = 500

    def __init__(self, code: str) -> None:
        super().__init__(f"No store could be reached to look up: {code}")
        self.code = code
