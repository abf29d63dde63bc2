"""
Exceptions raised by the Vipps client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .responses import ApiFailure, ProblemDetails

__all__ = [
    "ApiError",
    "TransportError",
    "VippsError",
]


class VippsError(Exception):
    """Base class for every error raised while talking to the API."""


class TransportError(VippsError):
    """The request could not be sent, or the response envelope could not be read."""


class ApiError(VippsError):
    """The API answered with a non-success status code."""

    def __init__(
        self,
        code: int,
        title: str,
        detail: str = "",
        problem: Optional["ProblemDetails"] = None,
    ) -> None:
        super().__init__(f"api error {code} ({title!r})")
        self.code = code
        self.title = title
        self.detail = detail
        self.problem = problem

    @classmethod
    def from_failure(cls, failure: "ApiFailure") -> "ApiError":
        return cls(
            code=failure.code,
            title=failure.title,
            detail=failure.detail,
            problem=failure.problem,
        )
