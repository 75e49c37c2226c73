"""
Payments Infrastructure Module

MamoPay gateway client and subscriber reconciliation.
"""

from app.infrastructure.payments.mamopay_service import (
    MamoPayService,
    fetch_and_store_subscriber_id,
    get_mamopay_service,
)

__all__ = ["MamoPayService", "fetch_and_store_subscriber_id", "get_mamopay_service"]
