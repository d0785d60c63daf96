# inventory/commands.py
"""
Command layer for products.

Quantity edits made through the product form are recorded as
ADJUSTMENT stock movements so the movement history always adds up to
the on-hand quantity.
"""

import logging
import os
import uuid

from django.core.files.storage import default_storage
from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from accounting.money import to_decimal
from inventory.models import Product, StockMovement
from inventory.stock import adjust_stock
from ops import cache as ops_cache

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = {
    "name", "description", "sku", "price", "cost", "quantity", "unit_code",
    "disable_stock_management", "image_url", "is_active",
}
# PATCH is the quick-edit from the inventory list
PATCH_FIELDS = {"price", "quantity", "disable_stock_management", "image_url"}


def _invalidate(company_id):
    ops_cache.invalidate(company_id, ops_cache.PRODUCTS, ops_cache.DASHBOARD)


def _duplicate_sku(company, sku, exclude_id=None) -> bool:
    if not sku:
        return False
    qs = Product.objects.filter(company=company, sku=sku)
    if exclude_id:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


def can_delete_product(actor, product) -> tuple[bool, str]:
    if product.company_id != actor.company.id:
        return False, "Cross-company action denied."
    if product.invoice_items.exists():
        return False, "Cannot delete a product used on invoices."
    if product.pos_order_items.exists():
        return False, "Cannot delete a product used on POS orders."
    return True, ""


@transaction.atomic
def create_product(actor: ActorContext, **data) -> CommandResult:
    require(actor, "products.manage")

    fields = {k: v for k, v in data.items() if k in PRODUCT_FIELDS}
    fields["sku"] = (fields.get("sku") or "").strip()
    if _duplicate_sku(actor.company, fields["sku"]):
        return CommandResult.fail(f"A product with SKU '{fields['sku']}' already exists.", code="duplicate")

    quantity = to_decimal(fields.pop("quantity", 0))
    product = Product.objects.create(company=actor.company, **fields)
    if quantity:
        product = adjust_stock(product, quantity, StockMovement.Reason.ADJUSTMENT, "opening")

    _invalidate(actor.company.id)
    logger.info("Product created", extra={"company_id": actor.company.id, "product_id": product.id})
    return CommandResult.ok(product)


@transaction.atomic
def update_product(actor: ActorContext, product_id: int, partial: bool = False, **data) -> CommandResult:
    """
    Update a product.

    partial=False replaces every editable field (PUT); partial=True only
    accepts the quick-edit fields (PATCH).
    """
    require(actor, "products.manage")

    product = Product.objects.select_for_update().filter(company=actor.company, pk=product_id).first()
    if product is None:
        return CommandResult.fail("Product not found", code="not_found")

    allowed = PATCH_FIELDS if partial else PRODUCT_FIELDS
    updates = {k: v for k, v in data.items() if k in allowed}

    if "sku" in updates:
        updates["sku"] = (updates["sku"] or "").strip()
        if _duplicate_sku(actor.company, updates["sku"], exclude_id=product.id):
            return CommandResult.fail(f"A product with SKU '{updates['sku']}' already exists.", code="duplicate")

    if "image_url" in updates and updates["image_url"] != product.image_url:
        _delete_stored_image(product)
        product.image_path = ""

    new_quantity = updates.pop("quantity", None)
    for field, value in updates.items():
        setattr(product, field, value)
    product.save()

    if new_quantity is not None:
        delta = to_decimal(new_quantity) - product.quantity
        product = adjust_stock(product, delta, StockMovement.Reason.ADJUSTMENT, "edit")

    _invalidate(actor.company.id)
    return CommandResult.ok(product)


@transaction.atomic
def delete_product(actor: ActorContext, product_id: int) -> CommandResult:
    require(actor, "products.manage")

    product = Product.objects.filter(company=actor.company, pk=product_id).first()
    if product is None:
        return CommandResult.fail("Product not found", code="not_found")

    allowed, reason = can_delete_product(actor, product)
    if not allowed:
        return CommandResult.fail(reason)

    _delete_stored_image(product)
    product.delete()
    _invalidate(actor.company.id)
    logger.info("Product deleted", extra={"company_id": actor.company.id, "product_id": product_id})
    return CommandResult.ok({"deleted": True})


# =============================================================================
# Product images
# =============================================================================

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
MAX_IMAGE_SIZE = 5 * 1024 * 1024


def _delete_stored_image(product) -> None:
    if not product.image_path:
        return
    try:
        default_storage.delete(product.image_path)
    except OSError as exc:
        logger.warning(
            "Product image could not be deleted",
            extra={"product_id": product.id, "path": product.image_path, "error": str(exc)},
        )


@transaction.atomic
def upload_product_image(actor: ActorContext, product_id: int, image_file, build_url=None) -> CommandResult:
    """
    Store an uploaded product image and point image_url at it.

    The file goes to default_storage under products/<company>/; a previous
    upload for the product is removed. ``build_url`` turns the storage URL
    into an absolute one (the view passes request.build_absolute_uri).
    """
    require(actor, "products.manage")

    product = Product.objects.select_for_update().filter(company=actor.company, pk=product_id).first()
    if product is None:
        return CommandResult.fail("Product not found", code="not_found")

    if image_file is None:
        return CommandResult.fail("Image file is required")

    ext = os.path.splitext(image_file.name or "")[1].lower()
    content_type = getattr(image_file, "content_type", "") or ""
    if ext not in IMAGE_EXTENSIONS or not content_type.startswith("image/"):
        return CommandResult.fail("Only image uploads are allowed")

    if image_file.size > MAX_IMAGE_SIZE:
        return CommandResult.fail("Image is too large (max 5MB)", code="too_large")

    saved_path = default_storage.save(
        f"products/{actor.company.public_id}/{uuid.uuid4().hex}{ext}", image_file,
    )
    _delete_stored_image(product)

    url = default_storage.url(saved_path)
    product.image_path = saved_path
    product.image_url = build_url(url) if build_url else url
    product.save(update_fields=["image_path", "image_url", "updated_at"])

    _invalidate(actor.company.id)
    logger.info(
        "Product image uploaded",
        extra={"company_id": actor.company.id, "product_id": product.id, "path": saved_path},
    )
    return CommandResult.ok(product)


@transaction.atomic
def delete_product_image(actor: ActorContext, product_id: int) -> CommandResult:
    require(actor, "products.manage")

    product = Product.objects.select_for_update().filter(company=actor.company, pk=product_id).first()
    if product is None:
        return CommandResult.fail("Product not found", code="not_found")

    _delete_stored_image(product)
    product.image_path = ""
    product.image_url = ""
    product.save(update_fields=["image_path", "image_url", "updated_at"])

    _invalidate(actor.company.id)
    return CommandResult.ok(product)
