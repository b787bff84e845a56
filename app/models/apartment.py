"""Apartments owned by the authenticated host."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Apartment(Base):
    __tablename__ = "apartments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    # Hosted auth user id (uuid as text); every query is scoped by it
    owner_id = Column(String(64), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    stays = relationship("Stay", back_populates="apartment")
