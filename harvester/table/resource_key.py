# =============================================================================
# Resource Key
# =============================================================================
# Row identity of a data table.
# =============================================================================

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from harvester.models.resource import ResourceMember

__all__ = ["ResourceKey"]


@dataclass(frozen=True)
class ResourceKey:
    """
    Row key ``<member.id>_<local-row-number>``.

    Join output rows get composite keys ``<right-row-key>_<n>`` owned by the
    output member. Equality uses the key id and the owning member.
    """

    key_id: str
    member: "ResourceMember"

    def __str__(self) -> str:
        return self.key_id
