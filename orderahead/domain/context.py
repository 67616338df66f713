# orderahead/domain/context.py
from dataclasses import dataclass


@dataclass(frozen=True)
class OwnerContext:
    """Identity of the business owner issuing a request."""

    owner_id: str
