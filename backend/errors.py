class PayloadError(ValueError):
    """The inbound form submission cannot be turned into an order."""


class OdooError(RuntimeError):
    """A call against the Odoo XML-RPC API failed."""

    def __init__(self, message: str, *, model: str | None = None, method: str | None = None):
        super().__init__(message)
        self.model = model
        self.method = method


class UpstreamError(RuntimeError):
    """Order processing stopped because a remote service failed."""

    def __init__(self, message: str, *, step: str):
        super().__init__(message)
        self.step = step
