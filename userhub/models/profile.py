"""Profile request models and their field rules."""

import re
from datetime import date, datetime, time
from typing import Any, List, Optional

from pydantic import EmailStr, Field, field_validator

from .base import CamelModel
from .enums import Gender, MaritalStatus

_LETTERS_AND_SPACES = re.compile(r"^[A-Za-z\s]+$")
_PHONE_CHARS = re.compile(r"^[\d+\s()-]+$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Fields a caller may change on a profile record.
PROFILE_UPDATE_FIELDS = (
    "first_name",
    "last_name",
    "gender",
    "date_of_birth",
    "marital_status",
    "occupation",
    "address",
    "phone_number",
    "email",
    "identifications",
)


class IdentificationIn(CamelModel):
    card_type: Optional[str] = None
    card_code: Optional[str] = None

    @field_validator("card_type", "card_code")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v


class ProfileFields(CamelModel):
    """Profile fields with their validation rules; every field optional."""

    first_name: Optional[str] = Field(None, description="Letters and spaces only")
    last_name: Optional[str] = Field(None, description="Letters and spaces only")
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = Field(None, description="ISO 8601 date (YYYY-MM-DD)")
    marital_status: Optional[MaritalStatus] = None
    occupation: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[EmailStr] = None
    identifications: Optional[List[IdentificationIn]] = None

    @field_validator("first_name", "last_name", "occupation", mode="before")
    @classmethod
    def _letters_and_spaces(cls, v: Any, info) -> Any:
        if v is None:
            return v
        if not isinstance(v, str):
            raise ValueError("must be a string")
        v = v.strip()
        if info.field_name == "occupation" and v == "":
            return None
        if not v:
            raise ValueError("is required")
        if not _LETTERS_AND_SPACES.match(v):
            raise ValueError("Only letters and spaces are allowed.")
        return v

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _strict_iso_date(cls, v: Any) -> Any:
        if v is None or isinstance(v, date):
            return v
        if not isinstance(v, str) or not _ISO_DATE.match(v.strip()):
            raise ValueError("Date of Birth must be a valid ISO 8601 date (YYYY-MM-DD).")
        return v.strip()

    @field_validator("address", mode="before")
    @classmethod
    def _trim(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone_number", mode="before")
    @classmethod
    def _phone(cls, v: Any) -> Any:
        if v is None:
            return v
        if not isinstance(v, str):
            raise ValueError("Phone Number must be a string.")
        v = v.strip()
        if v == "":
            return v
        if not _PHONE_CHARS.match(v):
            raise ValueError("Phone number contains invalid characters.")
        digits = re.sub(r"\D", "", v)
        if len(digits) < 3 or len(digits) > 15:
            raise ValueError("Phone number must contain between 3 and 15 digits.")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    def to_document_fields(self, *, only_set: bool = True) -> dict[str, Any]:
        """Return snake_case fields ready for storage.

        ``date_of_birth`` becomes a ``datetime`` at midnight since BSON has no date type.
        """
        data = self.model_dump(exclude_unset=only_set, by_alias=False)
        data = {k: v for k, v in data.items() if k in PROFILE_UPDATE_FIELDS}
        if data.get("date_of_birth") is not None:
            data["date_of_birth"] = datetime.combine(data["date_of_birth"], time.min)
        if "gender" in data and data["gender"] is not None:
            data["gender"] = Gender(data["gender"]).value
        if "marital_status" in data and data["marital_status"] is not None:
            data["marital_status"] = MaritalStatus(data["marital_status"]).value
        if data.get("identifications") is None and "identifications" in data:
            data["identifications"] = []
        return data


class ProfileCreateRequest(ProfileFields):
    """Request model for creating a profile record."""

    first_name: str = Field(..., description="Letters and spaces only")
    last_name: str = Field(..., description="Letters and spaces only")
    gender: Gender
    date_of_birth: date = Field(..., description="ISO 8601 date (YYYY-MM-DD)")
    marital_status: MaritalStatus
    address: str = ""
    phone_number: str = ""
    identifications: List[IdentificationIn] = Field(default_factory=list)

    def to_document_fields(self, *, only_set: bool = False) -> dict[str, Any]:
        return super().to_document_fields(only_set=only_set)


class ProfileUpdateRequest(ProfileFields):
    """Request model for a partial profile update."""
