"""
SQLAlchemy models for the Shiptrack application.
Import all models here to ensure they're registered with SQLAlchemy.
"""
from shiptrack.models.user import User
from shiptrack.models.supplier import Supplier, Category
from shiptrack.models.product import Product
from shiptrack.models.shipment import Shipment, ShipmentItem

__all__ = [
    "User",
    "Supplier",
    "Category",
    "Product",
    "Shipment",
    "ShipmentItem",
]
