#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_line import CartLineModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.address import AddressModel
from storefront.data.models.sequence import SequenceModel
from storefront.data.models.pos_sale import PosSaleModel, PosSaleItemModel

__all__ = [
    "CartModel",
    "CartLineModel",
    "OrderModel",
    "OrderItemModel",
    "AddressModel",
    "SequenceModel",
    "PosSaleModel",
    "PosSaleItemModel",
]
