"""Sample catalog used by the ``seed`` CLI command."""

from typing import Dict, List, Tuple

from .security import utcnow

SEED_CATEGORIES: List[Dict[str, str]] = [
    {
        "name": "Shoes",
        "slug": "shoes",
        "description": "All types of shoes for men, women, and kids.",
        "image": "https://images.unsplash.com/photo-1598970434795-0c54fe7c0642?auto=format&fit=crop&w=600&q=60",
    },
    {
        "name": "Men's Clothing",
        "slug": "mens_clothing",
        "description": "T-shirts, shirts, jackets, and more for men.",
        "image": "https://images.unsplash.com/photo-1593032465177-fcb53b83bfa0?auto=format&fit=crop&w=600&q=60",
    },
    {
        "name": "Women's Clothing",
        "slug": "womens_clothing",
        "description": "Dresses, tops, and trendy clothing for women.",
        "image": "https://images.unsplash.com/photo-1526170375885-4d8ecf77b99f?auto=format&fit=crop&w=600&q=60",
    },
    {
        "name": "Electronics",
        "slug": "electronics",
        "description": "Smartphones, gadgets, headphones, and other electronics.",
        "image": "https://images.unsplash.com/photo-1580894894512-8c6b7e4f93b0?auto=format&fit=crop&w=600&q=60",
    },
    {
        "name": "Accessories",
        "slug": "accessories",
        "description": "Wallets, bags, belts, sunglasses, and other accessories.",
        "image": "https://images.unsplash.com/photo-1566013608983-0bba88c77f06?auto=format&fit=crop&w=600&q=60",
    },
]

# Products reference their category by slug until seeding resolves the id.
SEED_PRODUCTS: List[Dict] = [
    {
        "name": "Trail Runner Sneakers",
        "description": "Lightweight running shoes with a grippy outsole.",
        "price": 79.99,
        "stock": 40,
        "category": "shoes",
        "featured": True,
    },
    {
        "name": "Classic Denim Jacket",
        "description": "Washed denim jacket with a relaxed fit.",
        "price": 59.5,
        "stock": 25,
        "category": "mens_clothing",
        "featured": False,
    },
    {
        "name": "Floral Summer Dress",
        "description": "Breezy midi dress in a floral print.",
        "price": 45.0,
        "stock": 30,
        "category": "womens_clothing",
        "featured": True,
    },
    {
        "name": "Wireless Headphones",
        "description": "Over-ear headphones with active noise cancelling.",
        "price": 129.0,
        "stock": 15,
        "category": "electronics",
        "featured": True,
    },
    {
        "name": "Leather Wallet",
        "description": "Slim bifold wallet in full-grain leather.",
        "price": 24.99,
        "stock": 60,
        "category": "accessories",
        "featured": False,
    },
]


def seed_catalog(db) -> Tuple[int, int]:
    """Replace categories and products with the sample catalog."""
    db.categories.delete_many({})
    db.products.delete_many({})

    timestamp = utcnow()
    category_ids: Dict[str, object] = {}
    for category in SEED_CATEGORIES:
        document = {**category, "created_at": timestamp, "updated_at": timestamp}
        category_ids[category["slug"]] = db.categories.insert_one(document).inserted_id

    product_documents = [
        {
            **product,
            "category": category_ids[product["category"]],
            "images": [],
            "ratings": 0,
            "is_deleted": False,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        for product in SEED_PRODUCTS
    ]
    db.products.insert_many(product_documents)
    return len(category_ids), len(product_documents)
