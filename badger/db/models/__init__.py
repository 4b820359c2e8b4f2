from badger.db.models.badge_applications import BadgeApplication
from badger.db.models.base import Base
from badger.db.models.catalog_badges import CatalogBadge
from badger.db.models.promotion_badges import PromotionBadge
from badger.db.models.promotion_templates import PromotionTemplate
from badger.db.models.promotions import Promotion

__all__ = [
    "BadgeApplication",
    "Base",
    "CatalogBadge",
    "Promotion",
    "PromotionBadge",
    "PromotionTemplate",
]
