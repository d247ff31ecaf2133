"""Data models package."""

from .property_models import (
    Property, PropertyFields, PropertySchema, PropertyPage,
    Location, Rates, SellerInfo,
)

__all__ = [
    "Property",
    "PropertyFields",
    "PropertySchema",
    "PropertyPage",
    "Location",
    "Rates",
    "SellerInfo",
]
