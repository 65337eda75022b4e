"""Listing parameters for identity and profile records."""

from typing import Optional

from pydantic import Field

from .base import CamelModel
from .enums import Gender, MaritalStatus


class UserListParams(CamelModel):
    """Caller parameters of the identity-record listing.

    Every field is optional. ``expansion_gated`` selects whether profile predicates only gate the
    expanded profile (``True``) or restrict the listed identity records themselves (``False``).
    """

    limit: Optional[int] = Field(None, ge=1)
    page: int = Field(1, ge=1)
    populate: Optional[str] = None
    search: Optional[str] = None
    branch_id: Optional[str] = None
    gender: Optional[Gender] = None
    marital_status: Optional[MaritalStatus] = None
    card_type: Optional[str] = None
    card_code: Optional[str] = None
    id_search: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    sort: Optional[str] = None
    select: Optional[str] = None
    include_deleted: bool = False
    expansion_gated: bool = True


class ProfileListParams(CamelModel):
    limit: Optional[int] = Field(None, ge=1)
    page: int = Field(1, ge=1)
    select: Optional[str] = None
    sort: Optional[str] = None
