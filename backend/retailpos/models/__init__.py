from .catalog import Location, Product, InventoryItem, LOCATION_TYPES
from .sales import Sale, SaleLine
from .pricing import ExchangeRate, ExchangeRateHistory

__all__ = [
    'Location', 'Product', 'InventoryItem', 'LOCATION_TYPES',
    'Sale', 'SaleLine',
    'ExchangeRate', 'ExchangeRateHistory',
]
