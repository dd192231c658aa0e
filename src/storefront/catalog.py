"""Static product catalog: categories, sub-products and their variants."""

from dataclasses import dataclass, field

from .errors import CatalogNotFoundError
from .models import CartItem, WishlistItem


@dataclass(frozen=True)
class Variant:
    id: str
    name: str
    price: int
    finish: str | None = None
    color: str | None = None
    image: str = ""


@dataclass(frozen=True)
class SubProduct:
    id: str
    name: str
    specs: tuple[str, ...] = ()
    variants: tuple[Variant, ...] = ()


@dataclass(frozen=True)
class Category:
    slug: str
    name: str
    subtitle: str = ""
    sub_products: tuple[SubProduct, ...] = field(default_factory=tuple)


def _v(id: str, name: str, price: int, finish: str, color: str) -> Variant:
    return Variant(id=id, name=name, price=price, finish=finish, color=color, image=f"images/{id}.jpg")


CATALOG: tuple[Category, ...] = (
    Category(
        slug="natural-stones",
        name="Natural Stones",
        subtitle="Marble, Granite, Onyx",
        sub_products=(
            SubProduct(
                id="marble",
                name="Marble",
                specs=("Thickness: 18mm, 20mm, 30mm", "Finish: Polished, Honed, Brushed"),
                variants=(
                    _v("calacatta-gold", "Calacatta Gold", 42500, "Polished", "White/Gold"),
                    _v("carrara-white", "Carrara White", 12500, "Polished", "White/Grey"),
                    _v("carrara-cd", "Carrara CD", 9800, "Honed", "White/Grey"),
                    _v("nero-marquina", "Nero Marquina", 16500, "Polished", "Black"),
                    _v("crema-marfil", "Crema Marfil", 9500, "Polished", "Cream"),
                ),
            ),
            SubProduct(
                id="granite",
                name="Granite",
                specs=("Thickness: 20mm, 30mm", "Finish: Polished, Flamed, Leathered"),
                variants=(
                    _v("602", "602", 5200, "Polished", "Grey"),
                    _v("616", "616", 5800, "Polished", "Dark Grey"),
                    _v("623", "623", 5500, "Polished", "Beige"),
                ),
            ),
            SubProduct(
                id="onyx",
                name="Onyx",
                specs=("Thickness: 18mm, 20mm", "Backlit applications available"),
                variants=(
                    _v("honey-onyx", "Honey Onyx", 32000, "Polished", "Honey Gold"),
                    _v("white-onyx", "White Onyx", 45000, "Polished", "White"),
                ),
            ),
        ),
    ),
    Category(
        slug="synthetic-stones",
        name="Synthetic Stones",
        subtitle="Quartz, Solid Surface",
        sub_products=(
            SubProduct(
                id="quartz",
                name="Quartz",
                specs=("Thickness: 20mm, 30mm", "Warranty: 15-year limited"),
                variants=(
                    _v("calacatta-nuvo", "Calacatta Nuvo", 21500, "Polished", "White/Grey"),
                    _v("london-grey", "London Grey", 17200, "Polished", "Grey"),
                    _v("jet-black", "Jet Black", 15500, "Polished", "Black"),
                ),
            ),
            SubProduct(
                id="solid-surface",
                name="Solid Surface",
                specs=("Thickness: 12mm", "Seamless joints"),
                variants=(
                    _v("glacier-white", "Glacier White", 8500, "Matte", "White"),
                    _v("designer-white", "Designer White", 9200, "Matte", "White"),
                ),
            ),
        ),
    ),
)


def list_categories() -> list[Category]:
    return list(CATALOG)


def get_category(slug: str) -> Category:
    """
    Raises:
        CatalogNotFoundError: With fallback "/products".
    """
    for category in CATALOG:
        if category.slug == slug:
            return category
    raise CatalogNotFoundError(f"Category '{slug}'", "/products")


def get_sub_product(category_slug: str, sub_product_id: str) -> tuple[Category, SubProduct]:
    """
    Raises:
        CatalogNotFoundError: With fallback to the category (or catalog) page.
    """
    category = get_category(category_slug)
    for sub in category.sub_products:
        if sub.id == sub_product_id:
            return category, sub
    raise CatalogNotFoundError(
        f"Product '{category_slug}/{sub_product_id}'", f"/products/{category_slug}"
    )


def get_variant(
    category_slug: str, sub_product_id: str, variant_id: str
) -> tuple[Category, SubProduct, Variant]:
    """
    Resolve a full catalog path.

    Raises:
        CatalogNotFoundError: With fallback to the deepest page that exists.
    """
    category, sub = get_sub_product(category_slug, sub_product_id)
    for variant in sub.variants:
        if variant.id == variant_id:
            return category, sub, variant
    raise CatalogNotFoundError(
        f"Variant '{category_slug}/{sub_product_id}/{variant_id}'",
        f"/products/{category_slug}/{sub_product_id}",
    )


def make_cart_item(
    category_slug: str,
    sub_product_id: str,
    variant_id: str,
    quantity: int = 1,
    thickness: str | None = None,
    size: str | None = None,
) -> CartItem:
    """Build a cart line for a catalog variant."""
    category, sub, variant = get_variant(category_slug, sub_product_id, variant_id)
    return CartItem(
        id=f"{category.slug}-{sub.id}-{variant.id}",
        product_id=sub.id,
        product_name=f"{sub.name} - {variant.name}",
        price=variant.price,
        quantity=quantity,
        variant_id=variant.id,
        variant_name=variant.name,
        category_slug=category.slug,
        sub_product_id=sub.id,
        image=variant.image,
        finish=variant.finish,
        thickness=thickness,
        size=size,
    )


def make_wishlist_item(category_slug: str, sub_product_id: str, variant_id: str) -> WishlistItem:
    """Build a wishlist entry for a catalog variant."""
    category, sub, variant = get_variant(category_slug, sub_product_id, variant_id)
    return WishlistItem(
        id=f"{category.slug}-{sub.id}-{variant.id}",
        product_id=sub.id,
        product_name=f"{sub.name} - {variant.name}",
        price=variant.price,
        variant_id=variant.id,
        variant_name=variant.name,
        category_slug=category.slug,
        sub_product_id=sub.id,
        image=variant.image,
    )
