from badger.db.repo.badge_applications_repo import BadgeApplicationsRepo
from badger.db.repo.catalog_badges_repo import CatalogBadgesRepo
from badger.db.repo.promotion_badges_repo import PromotionBadgesRepo
from badger.db.repo.promotion_templates_repo import PromotionTemplatesRepo
from badger.db.repo.promotions_repo import PromotionsRepo
