from flask import Flask

from .auth import create_auth_blueprint
from .cart import create_cart_blueprint
from .categories import create_categories_blueprint
from .orders import create_orders_blueprint
from .products import create_products_blueprint
from .users import create_users_blueprint
from .wishlist import create_wishlist_blueprint


def register_routes(app: Flask, db, *, auth_service, store, guard, limiter=None) -> None:
    app.register_blueprint(
        create_auth_blueprint(auth_service, limiter), url_prefix="/api/auth"
    )
    app.register_blueprint(create_users_blueprint(db, store, guard), url_prefix="/api/users")
    app.register_blueprint(
        create_categories_blueprint(db, guard), url_prefix="/api/categories"
    )
    app.register_blueprint(create_products_blueprint(db, guard), url_prefix="/api/products")
    app.register_blueprint(create_cart_blueprint(db, guard), url_prefix="/api/cart")
    app.register_blueprint(create_wishlist_blueprint(db, guard), url_prefix="/api/wishlist")
    app.register_blueprint(create_orders_blueprint(db, guard), url_prefix="/api/orders")
