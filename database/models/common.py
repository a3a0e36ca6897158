"""
Column helpers shared by the engagement models.
"""

import uuid
from enum import Enum as PyEnum
from typing import Type

from sqlalchemy import Enum as SQLEnum

from core.utils.datetime import now


def new_id() -> str:
    """Generate a string UUID primary key."""
    return str(uuid.uuid4())


def utcnow():
    """Python-side timestamp default, so values are known without a refetch."""
    return now()


def status_enum(enum_cls: Type[PyEnum], length: int = 32) -> SQLEnum:
    """Non-native enum column storing the member values."""
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
