"""
All SQLAlchemy models. Base.metadata.create_all() creates every table.
"""
from app.models.apartment import Apartment
from app.models.stay import Stay

__all__ = [
    "Apartment",
    "Stay",
]
