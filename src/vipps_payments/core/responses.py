"""
Classification of raw HTTP responses into success or structured failure.

Every response the client receives goes through :func:`classify` (or
:func:`classify_lookup` for lookups where a 404 simply means "no such
object"). Classification never raises: a failure body that cannot be read
degrades to an ``"Unknown error"`` failure carrying only the status code.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

import requests

from .errors import TransportError

__all__ = [
    "Absent",
    "ApiFailure",
    "Classified",
    "InvalidParam",
    "ProblemDetails",
    "Success",
    "UNKNOWN_ERROR_TITLE",
    "classify",
    "classify_lookup",
]

UNKNOWN_ERROR_TITLE = "Unknown error"


@dataclass(frozen=True)
class InvalidParam:
    name: str
    reason: str


def _invalid_params(raw: Any) -> Optional[Tuple[InvalidParam, ...]]:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError("expected a list of invalid parameters")
    params: List[InvalidParam] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise ValueError("invalid parameter entries must be objects")
        name, reason = entry.get("name"), entry.get("reason")
        if not isinstance(name, str) or not isinstance(reason, str):
            raise ValueError("invalid parameter entries need a name and a reason")
        params.append(InvalidParam(name=name, reason=reason))
    return tuple(params)


@dataclass(frozen=True)
class ProblemDetails:
    """Standard error body returned by the API on failures."""

    title: str
    detail: str
    instance: str
    type: Optional[str] = None
    invalid_params: Optional[Tuple[InvalidParam, ...]] = None
    extra_details: Optional[Tuple[InvalidParam, ...]] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ProblemDetails":
        """
        Build problem details from a decoded JSON body.

        Raises :class:`ValueError` when the body does not have the expected
        shape.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("problem details must be a JSON object")
        title = payload.get("title")
        detail = payload.get("detail")
        instance = payload.get("instance")
        problem_type = payload.get("type")
        if not isinstance(title, str) or not isinstance(detail, str):
            raise ValueError("problem details need a title and a detail")
        if not isinstance(instance, str):
            raise ValueError("problem details need an instance")
        if problem_type is not None and not isinstance(problem_type, str):
            raise ValueError("problem details type must be a string")
        return cls(
            title=title,
            detail=detail,
            instance=instance,
            type=problem_type,
            invalid_params=_invalid_params(payload.get("invalidParams")),
            extra_details=_invalid_params(payload.get("extraDetails")),
        )


@dataclass(frozen=True)
class Success:
    response: requests.Response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def json(self) -> Any:
        """Decode the body, treating malformed JSON as a transport failure."""
        try:
            return self.response.json()
        except (ValueError, RecursionError) as exc:
            raise TransportError(
                f"Failed to decode JSON response from {self.response.url}"
            ) from exc

    def json_object(self) -> Mapping[str, Any]:
        payload = self.json()
        if not isinstance(payload, Mapping):
            raise TransportError(f"Expected a JSON object from {self.response.url}")
        return payload


@dataclass(frozen=True)
class ApiFailure:
    code: int
    title: str
    detail: str = ""
    problem: Optional[ProblemDetails] = None


@dataclass(frozen=True)
class Absent:
    code: int = 404


Classified = Union[Success, ApiFailure, Absent]


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _decode_problem(response: requests.Response) -> Optional[ProblemDetails]:
    try:
        payload = json.loads(response.content or b"")
        return ProblemDetails.from_payload(payload)
    except (ValueError, UnicodeDecodeError, RecursionError):
        return None


def classify(response: requests.Response) -> Union[Success, ApiFailure]:
    code = response.status_code
    if _is_success(code):
        return Success(response)

    problem = _decode_problem(response)
    if problem is None:
        logging.debug("Request to %s failed with %s and no readable details", response.url, code)
        return ApiFailure(code=code, title=UNKNOWN_ERROR_TITLE, detail="")

    logging.debug("Error details for %s (%s): %s", response.url, code, problem)
    return ApiFailure(code=code, title=problem.title, detail=problem.detail, problem=problem)


def classify_lookup(response: requests.Response) -> Classified:
    """Like :func:`classify`, but a 404 is reported as :class:`Absent`."""
    if response.status_code == 404:
        return Absent(code=404)
    return classify(response)
