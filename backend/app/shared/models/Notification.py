# app/shared/models/Notification.py
"""
Notifications in-app. La livraison (cloche UI, email) est hors moteur :
ici seule la ligne persistée fait foi.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func

from app.core.database import Base
from app.shared.enums import NotificationType, enum_values


class Notification(Base):
    __tablename__ = "notifications"

    id      = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type    = Column(
        SAEnum(NotificationType, name="notificationtype", values_callable=enum_values),
        nullable=False,
    )
    title    = Column(String, nullable=False)
    message  = Column(String, nullable=False)
    link     = Column(String, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    is_read  = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Notification id={self.id} user={self.user_id} type={self.type}>"
