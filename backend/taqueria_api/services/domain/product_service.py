"""
Product Service.

Catalog CRUD plus the inventory operations on top of it. Stock is never
edited directly: creation documents the initial stock and every later change
goes through ``apply_stock_change``.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import Limits, MovementReason, MovementType
from shared.config.logging import inventory_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import transaction
from shared.utils.exceptions import DuplicateEntityError, NotFoundError, ValidationError
from shared.utils.schemas import (
    InventoryMovementOutput,
    ProductCreate,
    ProductOutput,
    ProductUpdate,
    StockAdjustRequest,
)
from taqueria_api.models import InventoryMovement, Product
from taqueria_api.services.audit import log_create, log_update, serialize_model
from taqueria_api.services.inventory import apply_stock_change


class ProductService:
    """Service for product and inventory management."""

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Reads
    # =========================================================================

    def list_products(
        self,
        *,
        is_available: bool | None = None,
        category: str | None = None,
    ) -> list[ProductOutput]:
        stmt = select(Product)
        if is_available is not None:
            stmt = stmt.where(Product.is_available.is_(is_available))
        if category:
            stmt = stmt.where(Product.category == category)
        products = self._db.scalars(stmt.order_by(Product.category, Product.name)).all()
        return [ProductOutput.model_validate(p) for p in products]

    def get_product(self, product_id: int) -> ProductOutput:
        return ProductOutput.model_validate(self._get(product_id))

    def list_categories(self) -> list[str]:
        return list(
            self._db.scalars(
                select(Product.category).distinct().order_by(Product.category)
            ).all()
        )

    def list_low_stock(self) -> list[ProductOutput]:
        """Products at or below their stock minimum, lowest stock first."""
        products = self._db.scalars(
            select(Product)
            .where(Product.stock <= Product.stock_minimum)
            .order_by(Product.stock, Product.name)
        ).all()
        return [ProductOutput.model_validate(p) for p in products]

    def list_movements(
        self,
        *,
        product_id: int | None = None,
        order_id: int | None = None,
    ) -> list[InventoryMovementOutput]:
        """Read the inventory ledger, newest first."""
        stmt = select(InventoryMovement)
        if product_id is not None:
            stmt = stmt.where(InventoryMovement.product_id == product_id)
        if order_id is not None:
            stmt = stmt.where(InventoryMovement.order_id == order_id)
        movements = self._db.scalars(
            stmt.order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
        ).all()
        return [InventoryMovementOutput.model_validate(m) for m in movements]

    # =========================================================================
    # Writes
    # =========================================================================

    def create_product(self, data: ProductCreate, user_id: int | None) -> ProductOutput:
        """
        Create a product.

        Missing ``stock``/``stock_minimum`` take the configured defaults. A
        positive initial stock is documented with one ``entrada`` movement.
        """
        stock = settings.default_product_stock if data.stock is None else data.stock
        stock_minimum = (
            settings.default_stock_minimum if data.stock_minimum is None else data.stock_minimum
        )

        self._validate_fields(
            name=data.name,
            price_cents=data.price_cents,
            category=data.category,
            stock_minimum=stock_minimum,
            prep_time_minutes=data.prep_time_minutes,
        )
        if stock < 0:
            raise ValidationError("El stock no puede ser negativo", field="stock")
        code = _clean(data.code)
        if code:
            self._ensure_code_free(code)

        with transaction(
            self._db, "crear producto", on_duplicate=lambda: DuplicateEntityError("Producto", code)
        ):
            product = Product(
                code=code,
                name=data.name.strip(),
                description=_clean(data.description),
                price_cents=data.price_cents,
                category=data.category.strip(),
                prep_time_minutes=data.prep_time_minutes,
                image=_clean(data.image),
                is_available=data.is_available,
                stock=0,
                stock_minimum=stock_minimum,
            )
            product.set_created_by(user_id)
            self._db.add(product)
            self._db.flush()

            if stock > 0:
                apply_stock_change(
                    self._db,
                    product,
                    stock,
                    reason=MovementReason.STOCK_INICIAL,
                    user_id=user_id,
                )
            log_create(self._db, user_id, product)

        logger.info("Product created", product_id=product.id, name=product.name, stock=stock)
        return ProductOutput.model_validate(product)

    def update_product(
        self, product_id: int, data: ProductUpdate, user_id: int | None
    ) -> ProductOutput:
        """
        Partial update. Id, creation metadata and stock are preserved; price
        changes never touch existing order lines.
        """
        product = self._get(product_id)
        changes = data.model_dump(exclude_unset=True)

        self._validate_fields(
            name=changes.get("name", product.name),
            price_cents=changes.get("price_cents", product.price_cents),
            category=changes.get("category", product.category),
            stock_minimum=changes.get("stock_minimum", product.stock_minimum),
            prep_time_minutes=changes.get("prep_time_minutes", product.prep_time_minutes),
        )
        if "code" in changes:
            changes["code"] = _clean(changes["code"])
            if changes["code"] and changes["code"] != product.code:
                self._ensure_code_free(changes["code"])
        for key in ("name", "category"):
            if key in changes:
                changes[key] = changes[key].strip()
        for key in ("description", "image"):
            if key in changes:
                changes[key] = _clean(changes[key])
        if changes.get("is_available") is None:
            changes.pop("is_available", None)

        with transaction(
            self._db,
            "actualizar producto",
            on_duplicate=lambda: DuplicateEntityError("Producto", changes.get("code")),
        ):
            before = serialize_model(product)
            for key, value in changes.items():
                setattr(product, key, value)
            product.set_updated_by(user_id)
            log_update(self._db, user_id, product, before)

        logger.info("Product updated", product_id=product.id, fields=sorted(changes))
        return ProductOutput.model_validate(product)

    def adjust_stock(
        self, product_id: int, data: StockAdjustRequest, user_id: int | None
    ) -> ProductOutput:
        """
        Apply a signed stock change.

        Fails without mutation if the result would be negative. Writes
        exactly one movement: ``entrada``/``salida`` by sign, or ``ajuste``
        when requested.
        """
        product = self._get(product_id)
        if data.movement_type is not None and data.movement_type != MovementType.AJUSTE.value:
            raise ValidationError(
                "Solo se puede indicar el tipo 'ajuste' en un ajuste manual",
                field="movement_type",
            )
        reason = (data.reason or "").strip()
        if not reason:
            raise ValidationError("El motivo es requerido", field="reason")

        with transaction(self._db, "ajustar stock"):
            before = serialize_model(product)
            apply_stock_change(
                self._db,
                product,
                data.delta,
                reason=reason,
                user_id=user_id,
                movement_type=data.movement_type,
            )
            product.set_updated_by(user_id)
            log_update(self._db, user_id, product, before)

        logger.info(
            "Stock adjusted",
            product_id=product.id,
            delta=data.delta,
            stock=product.stock,
            user_id=user_id,
        )
        return ProductOutput.model_validate(product)

    def toggle_availability(self, product_id: int, user_id: int | None) -> ProductOutput:
        """Flip the availability flag. Stock is not looked at."""
        product = self._get(product_id)

        with transaction(self._db, "cambiar disponibilidad"):
            before = serialize_model(product)
            product.is_available = not product.is_available
            product.set_updated_by(user_id)
            log_update(self._db, user_id, product, before)

        logger.info(
            "Product availability toggled",
            product_id=product.id,
            is_available=product.is_available,
        )
        return ProductOutput.model_validate(product)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get(self, product_id: int) -> Product:
        product = self._db.get(Product, product_id)
        if not product:
            raise NotFoundError("Producto", product_id)
        return product

    def _ensure_code_free(self, code: str) -> None:
        if self._db.scalar(select(Product.id).where(Product.code == code)) is not None:
            raise DuplicateEntityError("Producto", code)

    @staticmethod
    def _validate_fields(
        *,
        name: str | None,
        price_cents: int | None,
        category: str | None,
        stock_minimum: int | None,
        prep_time_minutes: int | None,
    ) -> None:
        if not name or not name.strip():
            raise ValidationError("El nombre es requerido", field="name")
        if len(name) > Limits.MAX_NAME_LENGTH:
            raise ValidationError(
                f"El nombre no puede superar {Limits.MAX_NAME_LENGTH} caracteres", field="name"
            )
        if price_cents is None or price_cents < Limits.MIN_PRICE_CENTS:
            raise ValidationError("El precio no puede ser negativo", field="price_cents")
        if price_cents > Limits.MAX_PRICE_CENTS:
            raise ValidationError("El precio excede el máximo permitido", field="price_cents")
        if not category or not category.strip():
            raise ValidationError("La categoría es requerida", field="category")
        if stock_minimum is None or stock_minimum < 0:
            raise ValidationError("El stock mínimo no puede ser negativo", field="stock_minimum")
        if prep_time_minutes is not None and prep_time_minutes < 0:
            raise ValidationError(
                "El tiempo de preparación no puede ser negativo", field="prep_time_minutes"
            )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None
