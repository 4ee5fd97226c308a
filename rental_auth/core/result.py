# rental_auth/core/result.py
from dataclasses import dataclass, field
from typing import Generic, List, TypeVar, Union

from rental_auth.core.exceptions import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T
    message: str = ""

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return False


Result = Union[Ok[T], Err]
