"""Enums for the UserHub application."""

from enum import Enum


class Gender(str, Enum):
    """Gender values accepted on profile records."""

    MALE = "M"
    FEMALE = "F"
    OTHER = "Other"


class MaritalStatus(str, Enum):
    """Marital status values accepted on profile records."""

    SINGLE = "Single"
    MARRIED = "Married"
    DIVORCED = "Divorced"
    WIDOWED = "Widowed"
    OTHER = "Other"


class Relation(str, Enum):
    """Identity-record references that can be expanded in listings."""

    ROLE = "roleId"
    BRANCH = "branchId"
    PROFILE = "userInfoId"


class DeleteMode(str, Enum):
    """Deletion policy for identity records.

    ``soft`` keeps a tombstone (``deleted=True``), ``hard`` removes the document.
    """

    SOFT = "soft"
    HARD = "hard"
