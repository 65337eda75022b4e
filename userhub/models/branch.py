"""Branch request models."""

from typing import Optional

from pydantic import Field

from .base import CamelModel


class BranchBase(CamelModel):
    """Base attributes shared by branch models."""

    name: str = Field(..., min_length=1, description="Branch name")
    code: str = Field(..., min_length=1, max_length=64, description="Unique branch code")
    address: Optional[str] = Field(None, description="Postal address")
    phone_number: Optional[str] = Field(None, description="Contact number")
    is_active: bool = Field(True, description="Whether the branch is active")


class BranchCreateRequest(BranchBase):
    """Request model for creating a new branch."""

    pass


class BranchUpdateRequest(CamelModel):
    """Request model for updating an existing branch."""

    name: Optional[str] = Field(None, min_length=1, description="Updated branch name")
    code: Optional[str] = Field(None, min_length=1, max_length=64, description="Updated branch code")
    address: Optional[str] = Field(None, description="Updated address")
    phone_number: Optional[str] = Field(None, description="Updated contact number")
    is_active: Optional[bool] = Field(None, description="Updated active flag")
