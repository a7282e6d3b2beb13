"""Fixed product catalog.

The cart and checkout only ever read from this module; products are frozen
dataclasses so nothing downstream can mutate them.
"""

from decimal import Decimal

from .errors import ProductNotFoundError
from .models import Category, Product

CURRENCY = "€"


def _product(
    id: str,
    name: str,
    price: str,
    category: Category,
    description: str,
    history: str,
    image: str,
    in_stock: bool = True,
) -> Product:
    return Product(
        id=id,
        name=name,
        price=Decimal(price),
        currency=CURRENCY,
        category=category,
        description=description,
        detailed_history=history,
        image_url=image,
        in_stock=in_stock,
    )


PRODUCTS: tuple[Product, ...] = (
    _product(
        "habesha-kemis",
        "Habesha Kemis",
        "185.00",
        Category.CLOTHES,
        "Hand-woven cotton dress with a tibeb border.",
        "Worn for holidays and weddings, the kemis is woven on pit looms in "
        "Addis Ababa's Shiro Meda district.",
        "https://picsum.photos/id/1011/800/800",
    ),
    _product(
        "gabi-shawl",
        "Gabi Shawl",
        "95.00",
        Category.CLOTHES,
        "Four-layer cotton wrap for highland evenings.",
        "The gabi doubles as blanket and cloak; its thickness marks the season.",
        "https://picsum.photos/id/1012/800/800",
    ),
    _product(
        "coptic-icon",
        "Coptic Icon of St. George",
        "320.00",
        Category.ART,
        "Tempera on goatskin, painted in the Gondarine style.",
        "Iconography in the Gondarine tradition dates to the 17th century "
        "royal courts north of Lake Tana.",
        "https://picsum.photos/id/1025/800/800",
    ),
    _product(
        "lalibela-canvas",
        "Lalibela at Dawn",
        "240.00",
        Category.ART,
        "Contemporary oil on canvas of the rock-hewn churches.",
        "Eleven monolithic churches carved in the 12th century under King Lalibela.",
        "https://picsum.photos/id/1036/800/800",
    ),
    _product(
        "jebena",
        "Clay Jebena",
        "40.00",
        Category.MISC,
        "Traditional coffee pot for the buna ceremony.",
        "Coffee is brewed three times in the jebena: abol, tona and baraka.",
        "https://picsum.photos/id/1060/800/800",
    ),
    _product(
        "sini-set",
        "Sini Cup Set",
        "32.50",
        Category.MISC,
        "Six handle-less porcelain cups with a rekebot tray.",
        "Sini cups are served in rounds, eldest guest first.",
        "https://picsum.photos/id/1070/800/800",
    ),
    _product(
        "meskel-cross",
        "Silver Meskel Cross",
        "68.00",
        Category.ACCESSORIES,
        "Lost-wax cast pendant from Axum silversmiths.",
        "Cross designs vary by region; the Axum pattern interlaces eight arms.",
        "https://picsum.photos/id/1080/800/800",
    ),
    _product(
        "amber-beads",
        "Harar Amber Beads",
        "54.00",
        Category.ACCESSORIES,
        "Strand of resin beads from the walled city of Harar.",
        "Harari jewellery traditions mark each life stage with a new strand.",
        "https://picsum.photos/id/1084/800/800",
        in_stock=False,
    ),
)


def list_products(
    category: Category | str | None = None,
    query: str | None = None,
) -> list[Product]:
    """
    List catalog products.

    Args:
        category: Category (or its display name) to filter by. ``None`` or
            ``"All"`` returns every category.
        query: Case-insensitive substring matched against name and description.
    """
    products = list(PRODUCTS)

    if category is not None and category != "All":
        wanted = Category(category)
        products = [p for p in products if p.category is wanted]

    if query:
        needle = query.strip().lower()
        products = [
            p
            for p in products
            if needle in p.name.lower() or needle in p.description.lower()
        ]

    return products


def get_product(product_id: str) -> Product:
    """
    Get a product by ID.

    Raises:
        ProductNotFoundError: If the product isn't in the catalog.
    """
    for p in PRODUCTS:
        if p.id == product_id:
            return p
    raise ProductNotFoundError(product_id)
