"""ORM models. Importing this package registers every table on Base.metadata."""

from caterhub.models.dish import Dish, dish_free_forms
from caterhub.models.lookup import (
    Category,
    CuisineType,
    FreeForm,
    Occasion,
    PackageType,
    SubCategory,
)
from caterhub.models.package import (
    CustomisationType,
    Package,
    PackageCategorySelection,
    PackageItem,
    package_occasions,
)
from caterhub.models.user import Role, User

__all__ = [
    "Category",
    "CuisineType",
    "CustomisationType",
    "Dish",
    "FreeForm",
    "Occasion",
    "Package",
    "PackageCategorySelection",
    "PackageItem",
    "PackageType",
    "Role",
    "SubCategory",
    "User",
    "dish_free_forms",
    "package_occasions",
]
