# catalog/schemas/__init__.py
from catalog.schemas.common import Pagination
from catalog.schemas.product import (
    ProductBase,
    ProductCreate,
    ProductInDB,
    ProductSummary,
    ProductListResponse,
)
from catalog.schemas.category import (
    CategoryBase,
    CategoryCreate,
    CategoryUpdate,
    CategoryInDB,
    CategoryWithCounts,
    CategoryRef,
    BreadcrumbItem,
    CategoryChildSummary,
    CategoryDetail,
    CategoryTreeNode,
    CategoryListResponse,
    CategoryTreeResponse,
    CategoriesResponse,
    CategoryResponse,
    AncestorsResponse,
    BreadcrumbsResponse,
    ProductIdsRequest,
    ProductMembershipResponse,
)
from catalog.schemas.user import (
    UserCreate,
    UserInDB,
    AuthTokenResponse,
)
