def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def insert_product(db, name="Banana", stock=5, price=1.25, **extra):
    document = {"name": name, "price": price, "stock": stock, "images": [], "is_deleted": False}
    document.update(extra)
    return str(db.products.insert_one(document).inserted_id)
