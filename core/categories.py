"""
Supported eBay Categories - static table of top-level marketplace categories.

Matches eBay's top-level categories (https://www.ebay.com/n/all-categories);
ids are the Browse API category ids.

Usage:
    from core.categories import get_category_by_id, list_categories

    category = get_category_by_id("293")
    # Returns: CategoryInfo(id="293", name="Electronics", description="...")
"""
from enum import Enum
from typing import Dict, List, Optional

from core.models.category import CategoryInfo


class Category(str, Enum):
    """Supported category keys."""
    MOTORS = "MOTORS"
    ELECTRONICS = "ELECTRONICS"
    COLLECTIBLES = "COLLECTIBLES"
    HOME_GARDEN = "HOME_GARDEN"
    CLOTHING = "CLOTHING"
    TOYS = "TOYS"
    SPORTING_GOODS = "SPORTING_GOODS"
    BOOKS = "BOOKS"
    HEALTH_BEAUTY = "HEALTH_BEAUTY"
    BUSINESS = "BUSINESS"
    JEWELRY = "JEWELRY"
    BABY = "BABY"
    PETS = "PETS"


CATEGORIES: Dict[Category, CategoryInfo] = {
    Category.MOTORS: CategoryInfo(
        id="6000",
        name="eBay Motors",
        description="Parts, Accessories, Cars, Motorcycles",
    ),
    Category.ELECTRONICS: CategoryInfo(
        id="293",
        name="Electronics",
        description="Cameras, TV, Audio, Computers, Smart Home",
    ),
    Category.COLLECTIBLES: CategoryInfo(
        id="1",
        name="Collectibles & Art",
        description="Trading Cards, Vintage, Art, Memorabilia",
    ),
    Category.HOME_GARDEN: CategoryInfo(
        id="11700",
        name="Home & Garden",
        description="Furniture, Kitchen, Bedding, Garden Tools",
    ),
    Category.CLOTHING: CategoryInfo(
        id="11450",
        name="Clothing, Shoes & Accessories",
        description="Men's, Women's, Kids, Shoes, Accessories",
    ),
    Category.TOYS: CategoryInfo(
        id="220",
        name="Toys & Hobbies",
        description="Action Figures, Models, Games, RC",
    ),
    Category.SPORTING_GOODS: CategoryInfo(
        id="888",
        name="Sporting Goods",
        description="Fitness, Outdoor, Cycling, Team Sports",
    ),
    Category.BOOKS: CategoryInfo(
        id="267",
        name="Books, Movies & Music",
        description="Books, DVDs, Vinyl, CDs, Video Games",
    ),
    Category.HEALTH_BEAUTY: CategoryInfo(
        id="26395",
        name="Health & Beauty",
        description="Makeup, Skincare, Fragrance, Vitamins",
    ),
    Category.BUSINESS: CategoryInfo(
        id="12576",
        name="Business & Industrial",
        description="Healthcare, Lab, Office, Construction",
    ),
    Category.JEWELRY: CategoryInfo(
        id="281",
        name="Jewelry & Watches",
        description="Fine Jewelry, Fashion Jewelry, Watches",
    ),
    Category.BABY: CategoryInfo(
        id="2984",
        name="Baby Essentials",
        description="Clothing, Gear, Feeding, Nursery",
    ),
    Category.PETS: CategoryInfo(
        id="1281",
        name="Pet Supplies",
        description="Dog, Cat, Fish, Bird, Small Animals",
    ),
}

_BY_ID: Dict[str, CategoryInfo] = {info.id: info for info in CATEGORIES.values()}


def list_categories() -> List[CategoryInfo]:
    """All supported categories, in display order."""
    return list(CATEGORIES.values())


def get_category_by_id(category_id: str) -> Optional[CategoryInfo]:
    return _BY_ID.get(str(category_id).strip())


def get_all_category_ids() -> List[str]:
    return [info.id for info in CATEGORIES.values()]


def is_supported_category(category_id: str) -> bool:
    return get_category_by_id(category_id) is not None
