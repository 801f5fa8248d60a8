"""Project error hierarchy."""

from __future__ import annotations


class SimGateError(Exception):
    """Base error. ``status_code`` is what the HTTP layer answers with."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"error": self.message}


class Unauthorized(SimGateError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class BadRequest(SimGateError):
    status_code = 400


class ModelNotFound(SimGateError):
    status_code = 404


class UpstreamError(SimGateError):
    """Non-2xx or unusable reply from the upstream provider."""

    def __init__(self, status_code: int, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class ConfigurationError(SimGateError):
    """
    Raised by ``create_app`` when the model registry cannot be built. Startup
    fails with it; it is never turned into an HTTP response.
    """
