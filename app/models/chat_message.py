from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import SoftDeleteMixin, TimestampMixin, UUIDMixin

class ChatMessage(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "chat_messages"
    room_code: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    sender_name: Mapped[str] = mapped_column(String(200), nullable=False)
    message_type: Mapped[str] = mapped_column(String(20), nullable=False, default="text")  # text|image|system
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
