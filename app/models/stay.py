"""Guest stays recorded per apartment."""
from sqlalchemy import Column, Integer, String, Date, ForeignKey, DateTime, Numeric, Text, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

LINEN_WITH = "Com Roupa"
LINEN_WITHOUT = "Sem Roupa"
LINEN_OPTIONS = (LINEN_WITH, LINEN_WITHOUT)


class Stay(Base):
    __tablename__ = "stays"
    __table_args__ = (
        CheckConstraint("people_count > 0", name="stays_people_count_check"),
        CheckConstraint("nights_count > 0", name="stays_nights_count_check"),
        CheckConstraint("year BETWEEN 2000 AND 2100", name="stays_year_check"),
        CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 10)", name="stays_rating_check"),
        CheckConstraint(
            f"linen IS NULL OR linen IN ('{LINEN_WITH}', '{LINEN_WITHOUT}')",
            name="stays_linen_check",
        ),
        CheckConstraint(
            "check_in IS NULL OR check_out IS NULL OR check_out > check_in",
            name="stays_dates_check",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    apartment_id = Column(Integer, ForeignKey("apartments.id", ondelete="RESTRICT"), nullable=False)

    guest_name = Column(String(120), nullable=False)
    guest_phone = Column(String(20), nullable=False)
    guest_email = Column(String(255), nullable=False)
    guest_address = Column(String(200), nullable=False)

    people_count = Column(Integer, nullable=False, default=1)
    nights_count = Column(Integer, nullable=False, default=1)  # synced from dates when both are set
    linen = Column(String(20), nullable=True)  # LINEN_WITH / LINEN_WITHOUT
    rating = Column(Numeric(3, 1), nullable=True)  # legacy register, 0-10
    notes = Column(Text, nullable=True)

    # Legacy rows imported from the old register have no dates
    check_in = Column(Date, nullable=True)
    check_out = Column(Date, nullable=True)
    year = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    apartment = relationship("Apartment", back_populates="stays")
