"""
Typed outcomes for service operations.

Every SessionService / AuthorizationGate call returns a Result: either a
value, or a ServiceError whose ErrorKind fixes the wire code and HTTP status.
Callers branch on `result.ok` / `result.error.kind` instead of catching.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(enum.Enum):
    VALIDATION = ("VALIDATION_ERROR", 400)
    CONFLICT = ("CONFLICT", 409)
    NOT_FOUND = ("NOT_FOUND", 404)
    INVALID_CREDENTIALS = ("INVALID_CREDENTIALS", 401)
    UNAUTHORIZED = ("UNAUTHORIZED", 401)
    INTERNAL = ("INTERNAL_ERROR", 500)

    def __init__(self, code: str, status: int):
        self.code = code
        self.status = status


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str

    @property
    def status(self) -> int:
        return self.kind.status


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result[Any]":
        return cls(error=ServiceError(kind, message))


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: dict = field(default_factory=dict)

    @property
    def tokens(self) -> TokenPair:
        return TokenPair(self.access_token, self.refresh_token)
