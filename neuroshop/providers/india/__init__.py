"""Indian marketplaces: Amazon.in, Flipkart, BigBasket, JioMart."""

from .amazon import AmazonProvider
from .bigbasket import BigBasketProvider
from .flipkart import FlipkartProvider
from .jiomart import JioMartProvider

__all__ = ["AmazonProvider", "BigBasketProvider", "FlipkartProvider", "JioMartProvider"]
