from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

USER_CODE_SEQUENCE = "user_code"


class UserCodeSequence(Base):
    """Counter row handing out user codes with an atomic increment."""

    __tablename__ = "user_code_sequences"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False)
