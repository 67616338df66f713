#import all models so SQLAlchemy registers them in Base.metadata

from orderahead.data.models.business import BusinessModel
from orderahead.data.models.product import ProductModel
from orderahead.data.models.order import OrderModel
from orderahead.data.models.order_item import OrderItemModel
from orderahead.data.models.push_subscription import PushSubscriptionModel

__all__ = [
    "BusinessModel",
    "ProductModel",
    "OrderModel",
    "OrderItemModel",
    "PushSubscriptionModel",
]
