# tests/services/test_category_service.py
import pytest
from uuid import uuid4

from catalog.core.exceptions import (
    CategoryCycleError,
    CategoryNotEmptyError,
    CategorySelfParentError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from catalog.db.models.category import Category
from catalog.schemas.category import CategoryCreate, CategoryUpdate


def test_create_category(category_service):
    """Test creating a top-level category."""
    category = category_service.create_category(
        CategoryCreate(
            name="Clothing",
            description="Everything to wear",
            image="https://cdn.example.com/clothing.png",
            order=2,
            metadata={"banner": "spring"},
        )
    )

    assert category.id is not None
    assert category.name == "Clothing"
    assert category.slug == "clothing"
    assert category.parent_id is None
    assert category.parent is None
    assert category.is_active is True
    assert category.is_featured is False
    assert category.order == 2
    assert category.metadata == {"banner": "spring"}
    assert category.product_count == 0
    assert category.child_count == 0
    assert category.children == []


def test_create_derives_slug_from_name(make_category):
    category = make_category("Men's Wear!!")
    assert category.slug == "mens-wear"
    assert category.name == "Men's Wear!!"


def test_create_child_category(make_category, category_service):
    clothing = make_category("Clothing")
    dresses = make_category("Dresses", parent=clothing)

    assert dresses.slug == "dresses"
    assert dresses.parent_id == clothing.id
    assert dresses.parent.slug == "clothing"

    refreshed = category_service.get_category(clothing.id)
    assert refreshed.child_count == 1
    assert [child.slug for child in refreshed.children] == ["dresses"]


def test_create_rejects_duplicate_slug(make_category):
    make_category("Men's Wear")

    with pytest.raises(ConflictError) as exc_info:
        make_category("Mens Wear")

    assert exc_info.value.details == {"slug": "mens-wear"}


def test_create_rejects_missing_parent(category_service, db_session):
    with pytest.raises(NotFoundError):
        category_service.create_category(CategoryCreate(name="Orphan", parent_id=uuid4()))

    assert db_session.query(Category).count() == 0


def test_create_rejects_name_without_slug_characters(category_service):
    with pytest.raises(ValidationError):
        category_service.create_category(CategoryCreate(name="!!!"))


def test_get_category_not_found(category_service):
    with pytest.raises(NotFoundError):
        category_service.get_category(uuid4())


def test_get_category_without_parent_and_children(make_category, category_service):
    clothing = make_category("Clothing")
    dresses = make_category("Dresses", parent=clothing)

    detail = category_service.get_category(dresses.id, include_parent=False, include_children=False)

    assert detail.parent is None
    assert detail.children is None
    assert detail.parent_id == clothing.id


def test_update_category_fields(make_category, category_service):
    category = make_category("Shoes")

    updated = category_service.update_category(
        category.id,
        CategoryUpdate(description="Footwear", is_featured=True, order=5),
    )

    assert updated.description == "Footwear"
    assert updated.is_featured is True
    assert updated.order == 5
    assert updated.name == "Shoes"
    assert updated.slug == "shoes"


def test_update_name_regenerates_slug(make_category, category_service):
    category = make_category("Shoes")

    updated = category_service.update_category(category.id, CategoryUpdate(name="Running Shoes"))

    assert updated.slug == "running-shoes"
    with pytest.raises(NotFoundError):
        category_service.get_by_slug("shoes")


def test_update_name_to_own_slug_is_allowed(make_category, category_service):
    category = make_category("Shoes")

    updated = category_service.update_category(category.id, CategoryUpdate(name="SHOES"))

    assert updated.name == "SHOES"
    assert updated.slug == "shoes"


def test_update_name_collision(make_category, category_service):
    make_category("Boots")
    shoes = make_category("Shoes")

    with pytest.raises(ConflictError):
        category_service.update_category(shoes.id, CategoryUpdate(name="Boots"))

    assert category_service.get_category(shoes.id).slug == "shoes"


def test_update_rejects_null_for_required_field(make_category, category_service):
    category = make_category("Shoes")

    with pytest.raises(ValidationError):
        category_service.update_category(category.id, CategoryUpdate(name=None))


def test_update_not_found(category_service):
    with pytest.raises(NotFoundError):
        category_service.update_category(uuid4(), CategoryUpdate(description="x"))


def test_update_rejects_self_parent(make_category, category_service):
    category = make_category("Shoes")

    with pytest.raises(CategorySelfParentError):
        category_service.update_category(category.id, CategoryUpdate(parent_id=category.id))

    assert category_service.get_category(category.id).parent_id is None


def test_update_rejects_missing_parent(make_category, category_service):
    category = make_category("Shoes")

    with pytest.raises(ValidationError) as exc_info:
        category_service.update_category(category.id, CategoryUpdate(parent_id=uuid4()))

    assert not isinstance(exc_info.value, CategoryCycleError)


def test_update_rejects_descendant_as_parent(make_category, category_service):
    """A -> B -> C -> D; making D the parent of A would close a loop."""
    a = make_category("A")
    b = make_category("B", parent=a)
    c = make_category("C", parent=b)
    d = make_category("D", parent=c)

    with pytest.raises(CategoryCycleError):
        category_service.update_category(a.id, CategoryUpdate(parent_id=d.id))

    with pytest.raises(CategoryCycleError):
        category_service.update_category(b.id, CategoryUpdate(parent_id=c.id))

    # Nothing was written
    assert category_service.get_category(a.id).parent_id is None
    assert category_service.get_ancestors(d.id) == [a.id, b.id, c.id]

    e = make_category("E")
    moved = category_service.update_category(a.id, CategoryUpdate(parent_id=e.id))
    assert moved.parent_id == e.id
    assert category_service.get_ancestors(d.id) == [e.id, a.id, b.id, c.id]


def test_update_moves_category_within_tree(make_category, category_service):
    a = make_category("A")
    b = make_category("B", parent=a)
    c = make_category("C", parent=b)
    d = make_category("D", parent=c)

    moved = category_service.update_category(d.id, CategoryUpdate(parent_id=a.id))

    assert moved.parent_id == a.id
    assert category_service.get_ancestors(d.id) == [a.id]


def test_update_null_parent_moves_to_top_level(make_category, category_service):
    clothing = make_category("Clothing")
    dresses = make_category("Dresses", parent=clothing)

    moved = category_service.update_category(dresses.id, CategoryUpdate(parent_id=None))

    assert moved.parent_id is None
    assert category_service.get_category(clothing.id).child_count == 0


def test_update_rejects_parent_whose_chain_already_loops(make_category, category_service, db_session):
    x = make_category("X")
    y = make_category("Y")
    target = make_category("Target")

    # Corrupt the stored tree: X and Y point at each other
    db_session.query(Category).filter(Category.id == x.id).update({"parent_id": y.id})
    db_session.query(Category).filter(Category.id == y.id).update({"parent_id": x.id})
    db_session.commit()

    with pytest.raises(CategoryCycleError):
        category_service.update_category(target.id, CategoryUpdate(parent_id=x.id))


def test_clothing_dresses_lifecycle(make_category, category_service):
    clothing = make_category("Clothing")
    dresses = make_category("Dresses", parent=clothing)
    assert clothing.slug == "clothing"
    assert dresses.slug == "dresses"
    assert dresses.parent_id == clothing.id

    with pytest.raises(CategoryCycleError):
        category_service.update_category(clothing.id, CategoryUpdate(parent_id=dresses.id))

    with pytest.raises(CategoryNotEmptyError) as exc_info:
        category_service.delete_category(clothing.id)
    assert exc_info.value.code == "CATEGORY_HAS_CHILDREN"

    category_service.delete_category(dresses.id)
    category_service.delete_category(clothing.id)

    with pytest.raises(NotFoundError):
        category_service.get_category(clothing.id)
    with pytest.raises(NotFoundError):
        category_service.get_category(dresses.id)


def test_delete_rejects_category_with_products(make_category, make_product, category_service):
    category = make_category("Shoes")
    product = make_product("Sneaker")
    category_service.attach_products(category.id, [product.id])

    with pytest.raises(CategoryNotEmptyError) as exc_info:
        category_service.delete_category(category.id)

    assert exc_info.value.code == "CATEGORY_HAS_PRODUCTS"
    assert exc_info.value.status_code == 400
    assert category_service.get_category(category.id).product_count == 1


def test_delete_not_found(category_service):
    with pytest.raises(NotFoundError):
        category_service.delete_category(uuid4())


def test_delete_frees_slug(make_category, category_service):
    category = make_category("Seasonal")
    category_service.delete_category(category.id)

    recreated = make_category("Seasonal")
    assert recreated.slug == "seasonal"
    assert recreated.id != category.id


def test_list_categories_top_level_and_children(make_category, category_service):
    clothing = make_category("Clothing", order=1)
    make_category("Books", order=2)
    make_category("Dresses", parent=clothing)
    make_category("Coats", parent=clothing)

    top = category_service.list_categories(top_level_only=True)
    assert [c.slug for c in top.categories] == ["clothing", "books"]
    assert top.pagination.total == 2
    assert top.categories[0].child_count == 2

    children = category_service.list_categories(parent_id=clothing.id, sort_by="name")
    assert [c.slug for c in children.categories] == ["coats", "dresses"]

    everything = category_service.list_categories()
    assert everything.pagination.total == 4


def test_list_categories_filters_and_pagination(make_category, category_service):
    for index in range(5):
        make_category(f"Category {index}", order=index, is_featured=index % 2 == 0)
    make_category("Hidden", is_active=False)

    page = category_service.list_categories(page=2, limit=2)
    assert [c.slug for c in page.categories] == ["category-2", "category-3"]
    assert page.pagination.total == 5
    assert page.pagination.total_pages == 3

    featured = category_service.list_categories(featured=True)
    assert {c.slug for c in featured.categories} == {"category-0", "category-2", "category-4"}

    with_inactive = category_service.list_categories(include_inactive=True)
    assert with_inactive.pagination.total == 6

    newest_first = category_service.list_categories(sort_by="order", sort_order="desc")
    assert newest_first.categories[0].slug == "category-4"


def test_list_categories_rejects_bad_arguments(category_service):
    with pytest.raises(ValidationError):
        category_service.list_categories(page=0)
    with pytest.raises(ValidationError):
        category_service.list_categories(limit=101)
    with pytest.raises(ValidationError):
        category_service.list_categories(sort_by="slug")


def test_get_featured(make_category, category_service):
    make_category("Sale", is_featured=True, order=2)
    make_category("New In", is_featured=True, order=1)
    make_category("Archive", is_featured=True, is_active=False)
    make_category("Basics")

    featured = category_service.get_featured()
    assert [c.slug for c in featured] == ["new-in", "sale"]

    assert len(category_service.get_featured(limit=1)) == 1


def test_get_children(make_category, category_service):
    clothing = make_category("Clothing")
    make_category("Dresses", parent=clothing, order=2)
    make_category("Coats", parent=clothing, order=1)
    make_category("Retired", parent=clothing, is_active=False)

    assert [c.slug for c in category_service.get_children(clothing.id)] == ["coats", "dresses"]
    assert len(category_service.get_children(clothing.id, include_inactive=True)) == 3
    assert [c.slug for c in category_service.get_children()] == ["clothing"]


def test_unique_slug_violation_at_commit_is_a_conflict(make_category, category_service, monkeypatch):
    make_category("Shoes")
    boots = make_category("Boots")

    # Let the duplicate slug reach the database unique constraint
    monkeypatch.setattr(category_service.category_repo, "get_by_slug", lambda slug: None)

    with pytest.raises(ConflictError) as exc_info:
        category_service.create_category(CategoryCreate(name="Shoes"))
    assert exc_info.value.details == {"slug": "shoes"}

    with pytest.raises(ConflictError):
        category_service.update_category(boots.id, CategoryUpdate(name="Shoes"))

    # The session was rolled back and is still usable
    assert category_service.get_category(boots.id).slug == "boots"
    assert category_service.list_categories().pagination.total == 2


def test_delete_rejects_subcategory_added_after_check(make_category, category_service, monkeypatch):
    clothing = make_category("Clothing")
    dresses = make_category("Dresses", parent=clothing)

    # The child count check sees no subcategories, the foreign key still does
    monkeypatch.setattr(category_service.category_repo, "child_counts", lambda ids, **kwargs: {})

    with pytest.raises(CategoryNotEmptyError) as exc_info:
        category_service.delete_category(clothing.id)
    assert exc_info.value.code == "CATEGORY_HAS_CHILDREN"

    monkeypatch.undo()
    assert category_service.get_category(dresses.id).parent_id == clothing.id
    assert category_service.get_category(clothing.id).child_count == 1
