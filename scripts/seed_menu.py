import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

from database import SessionLocal, init_db
from models import MenuItem

MENU = [
    # --- RICE DISHES ---
    {
        "name": "Jollof Rice & Chicken",
        "description": "Smoky party jollof served with grilled chicken and fried plantain.",
        "price": 3500.0,
        "category": "Rice Dishes",
        "image_url": "https://source.unsplash.com/featured/400x300/?jollof-rice",
    },
    {
        "name": "Fried Rice & Turkey",
        "description": "Vegetable fried rice with peppered turkey wings.",
        "price": 4000.0,
        "category": "Rice Dishes",
        "image_url": "https://source.unsplash.com/featured/400x300/?fried-rice",
    },
    {
        "name": "Ofada Rice & Ayamase",
        "description": "Local ofada rice with spicy green pepper sauce and assorted meat.",
        "price": 3800.0,
        "category": "Rice Dishes",
        "image_url": "https://source.unsplash.com/featured/400x300/?rice,stew",
    },

    # --- SWALLOW & SOUPS ---
    {
        "name": "Pounded Yam & Egusi",
        "description": "Smooth pounded yam with melon seed soup and goat meat.",
        "price": 4500.0,
        "category": "Swallow & Soups",
        "image_url": "https://source.unsplash.com/featured/400x300/?egusi-soup",
    },
    {
        "name": "Amala & Ewedu",
        "description": "Yam flour swallow with ewedu, gbegiri and beef stew.",
        "price": 3000.0,
        "category": "Swallow & Soups",
        "image_url": "https://source.unsplash.com/featured/400x300/?african-soup",
    },

    # --- SMALL CHOPS ---
    {
        "name": "Suya Platter",
        "description": "Spiced grilled beef skewers with onions and yaji.",
        "price": 2500.0,
        "category": "Small Chops",
        "image_url": "https://source.unsplash.com/featured/400x300/?suya,skewers",
    },
    {
        "name": "Puff-Puff (6 pcs)",
        "description": "Sweet fried dough balls, dusted with sugar.",
        "price": 1000.0,
        "category": "Small Chops",
        "image_url": "https://source.unsplash.com/featured/400x300/?puff-puff",
    },

    # --- DRINKS ---
    {
        "name": "Chilled Zobo",
        "description": "Hibiscus drink with ginger and pineapple.",
        "price": 800.0,
        "category": "Drinks",
        "image_url": "https://source.unsplash.com/featured/400x300/?hibiscus-drink",
    },
    {
        "name": "Chapman",
        "description": "Classic Nigerian fruit punch with cucumber and citrus.",
        "price": 1200.0,
        "category": "Drinks",
        "image_url": "https://source.unsplash.com/featured/400x300/?fruit-punch",
    },
]


def seed_menu():
    init_db()
    db = SessionLocal()

    # clear existing items
    db.query(MenuItem).delete()
    db.commit()

    for item_data in MENU:
        db.add(MenuItem(is_available=True, **item_data))

    db.commit()
    print(f"Database seeded with {len(MENU)} menu items")
    db.close()


if __name__ == "__main__":
    seed_menu()
