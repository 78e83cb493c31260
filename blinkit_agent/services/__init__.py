"""
Blinkit workflow services.

This module contains the user-facing operations built on the worker supervisor.
"""

from blinkit_agent.services.auth_service import AuthService
from blinkit_agent.services.cart_service import CartService
from blinkit_agent.services.checkout_service import CheckoutService
from blinkit_agent.services.location_service import LocationService
from blinkit_agent.services.payment_service import PaymentService
from blinkit_agent.services.product_service import ProductService
from blinkit_agent.services.quick_checkout_service import QuickCheckoutService

__all__ = [
    "AuthService",
    "CartService",
    "CheckoutService",
    "LocationService",
    "PaymentService",
    "ProductService",
    "QuickCheckoutService",
]
