"""
Flash sales component - Time-boxed storefront discounts.
"""

from .component import FlashSaleService, match_flash_sale, validate_flash_sale
from .models import FLASH_SALE_ITEM_TYPES, ActiveFlashSale, FlashSaleError, FlashSaleInput
from .ports import CatalogLookupPort, FlashSaleRepoPort

__all__ = [
    "FlashSaleService",
    "match_flash_sale",
    "validate_flash_sale",
    "FLASH_SALE_ITEM_TYPES",
    "ActiveFlashSale",
    "FlashSaleError",
    "FlashSaleInput",
    "CatalogLookupPort",
    "FlashSaleRepoPort",
]
