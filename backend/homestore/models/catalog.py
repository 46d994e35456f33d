from __future__ import annotations

from ..extensions import db
from homestore.time_utils import to_utc_z


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Catalog product with size/color variants.

    STOCK DESIGN DECISION:
    variant_stock is the canonical stock source, keyed "{size}-{color}".
    - The map may be sparse (not every size x color pair is stocked)
    - Values are never negative (enforced on write and on deduction)
    - stock is the aggregate fallback, used only while variant_stock is empty

    Stock mutations must go through services.variant_stock so that
    validation and deduction resolve the same key.

    version_id is the optimistic lock: two sales racing on the same
    product cannot both commit a stale variant_stock map.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_storefront", "show_on_storefront"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(120), nullable=False)

    # Pricing (base price; per-size overrides live in variants)
    price = db.Column(db.Float, nullable=False)
    sale_price = db.Column(db.Float, nullable=True)
    is_on_sale = db.Column(db.Boolean, nullable=False, default=False)
    cost_price = db.Column(db.Float, nullable=True)
    express_charge = db.Column(db.Float, nullable=False, default=0)

    image = db.Column(db.String(1024), nullable=False, default="")
    images = db.Column(db.JSON, nullable=False, default=list)
    colors = db.Column(db.JSON, nullable=False, default=list)
    color_images = db.Column(db.JSON, nullable=False, default=dict)
    variants = db.Column(db.JSON, nullable=False, default=list)  # [{"size": str, "price": float}]

    stock = db.Column(db.Integer, nullable=False, default=0)
    variant_stock = db.Column(db.JSON, nullable=False, default=dict)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=5)

    show_on_storefront = db.Column(db.Boolean, nullable=False, default=True)
    is_new = db.Column(db.Boolean, nullable=False, default=False)
    is_best_seller = db.Column(db.Boolean, nullable=False, default=False)
    rating = db.Column(db.Float, nullable=False, default=5)
    reviews = db.Column(db.Integer, nullable=False, default=0)

    size_guide = db.Column(db.JSON, nullable=False, default=list)
    certifications = db.Column(db.JSON, nullable=False, default=list)
    product_details = db.Column(db.Text, nullable=True)
    materials_and_care = db.Column(db.Text, nullable=True)

    is_pre_order = db.Column(db.Boolean, nullable=False, default=False)
    pre_order_price = db.Column(db.Float, nullable=True)
    pre_order_initial_payment = db.Column(db.Float, nullable=True)
    pre_order_eta = db.Column(db.String(120), nullable=True)

    sku = db.Column(db.String(64), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} category={self.category!r}>"

    @property
    def sizes(self) -> list[str]:
        return [v.get("size") for v in (self.variants or []) if isinstance(v, dict) and v.get("size")]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "price": self.price,
            "salePrice": self.sale_price,
            "isOnSale": self.is_on_sale,
            "costPrice": self.cost_price,
            "expressCharge": self.express_charge,
            "image": self.image,
            "images": self.images or [],
            "colors": self.colors or [],
            "colorImages": self.color_images or {},
            "variants": self.variants or [],
            "stock": self.stock,
            "variantStock": self.variant_stock or {},
            "lowStockThreshold": self.low_stock_threshold,
            "showOnStorefront": self.show_on_storefront,
            "isNew": self.is_new,
            "isBestSeller": self.is_best_seller,
            "rating": self.rating,
            "reviews": self.reviews,
            "sizeGuide": self.size_guide or [],
            "certifications": self.certifications or [],
            "productDetails": self.product_details,
            "materialsAndCare": self.materials_and_care,
            "isPreOrder": self.is_pre_order,
            "preOrderPrice": self.pre_order_price,
            "preOrderInitialPayment": self.pre_order_initial_payment,
            "preOrderEta": self.pre_order_eta,
            "sku": self.sku,
            "barcode": self.barcode,
            "versionId": self.version_id,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
