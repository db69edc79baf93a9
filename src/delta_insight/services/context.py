"""Requester identity passed explicitly into every service call."""

from dataclasses import dataclass
from typing import Optional

from ..exceptions import AuthenticationError


@dataclass(frozen=True)
class OwnerContext:
    """The data owner a call acts for. All reads and writes are scoped to it."""

    owner_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.owner_id, str) or not self.owner_id.strip():
            raise AuthenticationError()

    @classmethod
    def from_header(cls, value: Optional[str]) -> "OwnerContext":
        """Build a context from a raw header/CLI value, rejecting blanks."""
        if value is None:
            raise AuthenticationError()
        return cls(owner_id=value.strip())
