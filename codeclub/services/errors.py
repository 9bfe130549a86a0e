from __future__ import annotations

import enum
from dataclasses import dataclass


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    CONFLICT = "conflict"
    UPSTREAM_FAILED = "upstream_failed"


_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UPSTREAM_FAILED: 502,
}


@dataclass(eq=False, slots=True)
class LearningError(Exception):
    """Domain error raised by the learning services.

    ``kind`` drives the HTTP status, ``code`` is a stable machine-readable
    reason (``chapter_not_found``, ``answer_count_mismatch``...).
    """

    kind: ErrorKind
    code: str

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self.kind]

    def __str__(self) -> str:  # pragma: no cover - human readable message
        return self.code


def not_found(code: str) -> LearningError:
    return LearningError(ErrorKind.NOT_FOUND, code)


def validation_failed(code: str) -> LearningError:
    return LearningError(ErrorKind.VALIDATION_FAILED, code)


def conflict(code: str) -> LearningError:
    return LearningError(ErrorKind.CONFLICT, code)


def upstream_failed(code: str) -> LearningError:
    return LearningError(ErrorKind.UPSTREAM_FAILED, code)
