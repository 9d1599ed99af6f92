"""
Association table for the user -> property "like" relationship.
"""

from sqlalchemy import Column, ForeignKey, Table, Uuid
from rental_api.database import Base


# The composite primary key makes a (user, property) pair unique at the
# storage layer, so concurrent duplicate likes cannot both be written.
property_likes = Table(
    "property_likes",
    Base.metadata,
    Column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "property_id",
        Uuid,
        ForeignKey("properties.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)
