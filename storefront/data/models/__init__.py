#import all models so SQLAlchemy registers them in Base.metadata

from storefront.data.models.user import UserModel
from storefront.data.models.item import ItemModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel

__all__ = ["UserModel", "ItemModel", "CartModel", "CartItemModel"]
