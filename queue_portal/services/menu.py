"""
Menu Catalog

Read-mostly list of orderable items. The starter menu is inserted once;
after that prices and availability are edited directly in the store.
"""

import logging
from decimal import Decimal
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from queue_portal.models import MenuItem

logger = logging.getLogger(__name__)

# (name, description, price, category)
STARTER_MENU = [
    ("Margherita Pizza", "Classic tomato and mozzarella", "12.99", "Main"),
    ("Caesar Salad", "Romaine lettuce with Caesar dressing", "8.99", "Starter"),
    ("Cheeseburger", "Beef patty with cheese and toppings", "10.99", "Main"),
    ("French Fries", "Crispy golden fries", "4.99", "Side"),
    ("Spaghetti Carbonara", "Creamy pasta with bacon", "13.99", "Main"),
    ("Chicken Wings", "Spicy buffalo wings", "9.99", "Starter"),
    ("Onion Rings", "Crispy fried onion rings", "5.99", "Side"),
    ("Coca Cola", "Refreshing soft drink", "2.99", "Drink"),
    ("Lemonade", "Fresh squeezed lemonade", "3.99", "Drink"),
    ("Iced Tea", "Cold brewed tea", "2.99", "Drink"),
    ("Tiramisu", "Italian coffee-flavored dessert", "6.99", "Dessert"),
    ("Chocolate Cake", "Rich chocolate cake", "5.99", "Dessert"),
    ("Ice Cream Sundae", "Vanilla ice cream with toppings", "4.99", "Dessert"),
]


class MenuCatalog:
    """Queries against the menu_items table."""

    @staticmethod
    async def list_available(db: AsyncSession) -> Sequence[MenuItem]:
        """Available items in insertion order."""
        result = await db.execute(
            select(MenuItem).where(MenuItem.available.is_(True)).order_by(MenuItem.id)
        )
        return result.scalars().all()

    @staticmethod
    async def seed(db: AsyncSession) -> int:
        """
        Insert the starter menu if the catalog is empty.

        Returns:
            Number of items inserted (0 when the catalog already had rows)
        """
        async with db.begin():
            count = (await db.execute(select(func.count(MenuItem.id)))).scalar() or 0
            if count:
                logger.debug(f"Menu already seeded ({count} items)")
                return 0

            db.add_all([
                MenuItem(
                    name=name,
                    description=description,
                    price=Decimal(price),
                    category=category,
                    available=True,
                )
                for name, description, price, category in STARTER_MENU
            ])

        logger.info(f"Seeded menu with {len(STARTER_MENU)} items")
        return len(STARTER_MENU)
