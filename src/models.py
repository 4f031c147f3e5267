from typing import List, Optional

from sqlalchemy import Column, Integer, String, Boolean, Float, Text
from sqlalchemy.orm import Session

from cart import CartItem
from database import Base


# MenuItem Model - read-only catalog the cart resolves ids against
class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), index=True, nullable=False)
    description = Column(Text)
    price = Column(Float, nullable=False)
    category = Column(String(50))
    image_url = Column(String(255))
    is_available = Column(Boolean, default=True)

    def to_cart_item(self) -> CartItem:
        return CartItem(id=self.id, name=self.name, price=self.price, image_url=self.image_url or "")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "image_url": self.image_url,
        }


def get_available_items(db: Session) -> List[MenuItem]:
    return db.query(MenuItem).filter(MenuItem.is_available == True).order_by(MenuItem.category, MenuItem.id).all()


def get_available_item(db: Session, item_id: int) -> Optional[MenuItem]:
    return db.query(MenuItem).filter(MenuItem.id == item_id, MenuItem.is_available == True).first()
