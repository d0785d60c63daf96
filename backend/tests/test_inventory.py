# tests/test_inventory.py
"""
Inventory tests: products, stock movements, availability checks.
"""

from decimal import Decimal
from unittest import mock

import pytest

from inventory.commands import (
    create_product,
    delete_product,
    delete_product_image,
    update_product,
    upload_product_image,
)
from inventory.models import Product, StockMovement
from inventory.stock import StockLine, adjust_stock, apply_lines, check_availability, inventory_value


@pytest.mark.django_db
class TestStock:
    def test_adjust_records_movement(self, product):
        product = adjust_stock(product, Decimal("-3"), StockMovement.Reason.INVOICE_ISSUED, "INV-1")
        assert product.quantity == Decimal("17")

        movement = StockMovement.objects.get(product=product)
        assert movement.delta == Decimal("-3")
        assert movement.quantity_after == Decimal("17")
        assert movement.reference == "INV-1"

    def test_untracked_product_is_left_alone(self, service_product):
        adjust_stock(service_product, -10, StockMovement.Reason.POS_SALE)
        service_product.refresh_from_db()
        assert service_product.quantity == 0
        assert not StockMovement.objects.exists()

    def test_zero_delta_is_a_no_op(self, product):
        adjust_stock(product, 0, StockMovement.Reason.ADJUSTMENT)
        assert not StockMovement.objects.exists()

    def test_availability_sums_lines_per_product(self, company, product):
        ok, _ = check_availability(company, [StockLine(product.id, Decimal("20"))])
        assert ok

        ok, reason = check_availability(
            company, [StockLine(product.id, Decimal("12")), StockLine(product.id, Decimal("9"))],
        )
        assert not ok
        assert reason == "Insufficient stock for Nasi Lemak Pack"

    def test_availability_skips_untracked_and_free_text(self, company, service_product):
        lines = [StockLine(service_product.id, Decimal("99")), StockLine(None, Decimal("1"))]
        assert check_availability(company, lines) == (True, "")

    def test_locked_check_selects_for_update(self, company, product):
        from django.db import transaction
        from django.db.models import QuerySet

        original = QuerySet.select_for_update
        with mock.patch.object(QuerySet, "select_for_update", autospec=True, side_effect=original) as locking:
            with transaction.atomic():
                assert check_availability(company, [StockLine(product.id, Decimal("1"))], lock=True) == (True, "")
        assert locking.called

    def test_unlocked_check_does_not_lock(self, company, product):
        from django.db.models import QuerySet

        with mock.patch.object(QuerySet, "select_for_update", autospec=True) as locking:
            check_availability(company, [StockLine(product.id, Decimal("1"))])
        assert not locking.called

    def test_apply_lines(self, company, product):
        apply_lines(company, [StockLine(product.id, Decimal("2")), StockLine(product.id, Decimal("1"))], -1,
                    StockMovement.Reason.POS_SALE, "D0001")
        product.refresh_from_db()
        assert product.quantity == Decimal("17")
        assert StockMovement.objects.get().delta == Decimal("-3")

    def test_inventory_value(self, company, product, service_product):
        assert inventory_value(company) == Decimal("250.00")


@pytest.mark.django_db
class TestProductCommands:
    def test_opening_quantity_is_a_movement(self, actor):
        result = create_product(actor, name="Teh Tarik", sku="TT-1", price=Decimal("3.50"), quantity=Decimal("40"))
        assert result.success
        assert result.data.quantity == Decimal("40")
        movement = result.data.movements.get()
        assert (movement.reason, movement.reference) == (StockMovement.Reason.ADJUSTMENT, "opening")

    def test_duplicate_sku(self, actor, product):
        result = create_product(actor, name="Copy", sku=" NL-001 ", price=Decimal("1"))
        assert result.error_code == "duplicate"
        assert result.error == "A product with SKU 'NL-001' already exists."

    def test_blank_skus_do_not_clash(self, actor):
        assert create_product(actor, name="A", price=Decimal("1")).success
        assert create_product(actor, name="B", sku="", price=Decimal("1")).success

    def test_quantity_edit_is_adjusted(self, actor, product):
        result = update_product(actor, product.id, partial=True, quantity=Decimal("15"), price=Decimal("13.00"))
        assert result.data.quantity == Decimal("15")
        assert result.data.price == Decimal("13.00")
        assert product.movements.get().delta == Decimal("-5")

    def test_patch_ignores_other_fields(self, actor, product):
        update_product(actor, product.id, partial=True, name="Renamed")
        product.refresh_from_db()
        assert product.name == "Nasi Lemak Pack"

    def test_delete_blocked_by_invoice_lines(self, actor, customer, product, invoice_dates):
        from invoicing.models import Invoice, InvoiceItem

        issue, due = invoice_dates
        invoice = Invoice.objects.create(
            company=actor.company, invoice_number="INV-1", customer=customer, issue_date=issue, due_date=due,
        )
        InvoiceItem.objects.create(
            invoice=invoice, product=product, quantity=1, unit_price=product.price, amount=product.price,
        )
        result = delete_product(actor, product.id)
        assert result.error == "Cannot delete a product used on invoices."

    def test_delete(self, actor, product):
        assert delete_product(actor, product.id).success
        assert not Product.objects.filter(pk=product.pk).exists()

    def test_viewer_denied(self, viewer_actor):
        from django.core.exceptions import PermissionDenied

        with pytest.raises(PermissionDenied):
            create_product(viewer_actor, name="X", price=Decimal("1"))


@pytest.mark.django_db
class TestProductAPI:
    def test_create(self, auth_client):
        response = auth_client.post(
            "/api/products/", {"name": "Kopi O", "price": "2.50", "quantity": "10"}, format="json",
        )
        assert response.status_code == 201
        assert response.data["price"] == "2.50"
        assert response.data["unit_code"] == Product.DEFAULT_UNIT_CODE

    def test_negative_price(self, auth_client):
        response = auth_client.post("/api/products/", {"name": "X", "price": "-1"}, format="json")
        assert response.status_code == 400

    def test_low_stock_filter(self, auth_client, product, service_product, company):
        Product.objects.create(company=company, name="Roti", price=Decimal("1.00"), quantity=Decimal("5"))
        response = auth_client.get("/api/products/?low_stock=1")
        assert [p["name"] for p in response.data] == ["Roti"]

    def test_search(self, auth_client, product, service_product):
        response = auth_client.get("/api/products/?search=nl-0")
        assert [p["name"] for p in response.data] == ["Nasi Lemak Pack"]

    def test_detail_lists_movements(self, auth_client, product):
        adjust_stock(product, 5, StockMovement.Reason.ADJUSTMENT)
        response = auth_client.get(f"/api/products/{product.id}/")
        assert response.status_code == 200
        assert len(response.data["movements"]) == 1

    def test_patch(self, auth_client, product):
        response = auth_client.patch(f"/api/products/{product.id}/", {"quantity": "25"}, format="json")
        assert response.status_code == 200
        assert response.data["quantity"] == "25.00"

    def test_other_company_is_404(self, auth_client, second_company):
        other = Product.objects.create(company=second_company, name="Other", price=Decimal("1"))
        assert auth_client.get(f"/api/products/{other.id}/").status_code == 404
        assert auth_client.delete(f"/api/products/{other.id}/").status_code == 404


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    settings.MEDIA_URL = "/media/"
    return tmp_path


def _png(name="nasi.png"):
    from django.core.files.uploadedfile import SimpleUploadedFile

    return SimpleUploadedFile(name, PNG_BYTES, content_type="image/png")


@pytest.mark.django_db
class TestProductImage:
    def test_upload_stores_file_and_sets_url(self, actor, product, media_root):
        result = upload_product_image(actor, product.id, _png())
        assert result.success, result.error

        product.refresh_from_db()
        assert product.image_path.startswith(f"products/{actor.company.public_id}/")
        assert product.image_path.endswith(".png")
        assert product.image_url == f"/media/{product.image_path}"
        assert (media_root / product.image_path).read_bytes() == PNG_BYTES

    def test_new_upload_replaces_previous_file(self, actor, product, media_root):
        first = upload_product_image(actor, product.id, _png()).data.image_path
        second = upload_product_image(actor, product.id, _png("again.png")).data.image_path
        assert first != second
        assert not (media_root / first).exists()
        assert (media_root / second).exists()

    @pytest.mark.parametrize("name,content_type", [
        ("menu.pdf", "application/pdf"),
        ("fake.png", "text/plain"),
        ("noext", "image/png"),
    ])
    def test_only_images(self, actor, product, media_root, name, content_type):
        from django.core.files.uploadedfile import SimpleUploadedFile

        upload = SimpleUploadedFile(name, b"data", content_type=content_type)
        result = upload_product_image(actor, product.id, upload)
        assert result.error == "Only image uploads are allowed"

    def test_too_large(self, actor, product, media_root):
        from django.core.files.uploadedfile import SimpleUploadedFile

        upload = SimpleUploadedFile("big.png", b"\x00" * (5 * 1024 * 1024 + 1), content_type="image/png")
        result = upload_product_image(actor, product.id, upload)
        assert result.error_code == "too_large"
        assert not list(media_root.rglob("*.png"))

    def test_missing_file(self, actor, product, media_root):
        assert upload_product_image(actor, product.id, None).error == "Image file is required"

    def test_delete_image(self, actor, product, media_root):
        path = upload_product_image(actor, product.id, _png()).data.image_path
        result = delete_product_image(actor, product.id)
        assert result.data.image_url == ""
        assert result.data.image_path == ""
        assert not (media_root / path).exists()

    def test_external_url_drops_uploaded_file(self, actor, product, media_root):
        path = upload_product_image(actor, product.id, _png()).data.image_path
        update_product(actor, product.id, partial=True, image_url="https://cdn.example.com/nasi.jpg")
        product.refresh_from_db()
        assert product.image_path == ""
        assert not (media_root / path).exists()

    def test_viewer_denied(self, viewer_actor, product, media_root):
        from django.core.exceptions import PermissionDenied

        with pytest.raises(PermissionDenied):
            upload_product_image(viewer_actor, product.id, _png())

    def test_api_upload(self, auth_client, product, media_root):
        response = auth_client.post(f"/api/products/{product.id}/image/", {"file": _png()}, format="multipart")
        assert response.status_code == 200, response.data
        assert response.data["image_url"].startswith("http://testserver/media/products/")

        response = auth_client.delete(f"/api/products/{product.id}/image/")
        assert response.status_code == 200
        assert response.data["image_url"] == ""

    def test_api_rejects_non_image(self, auth_client, product, media_root):
        from django.core.files.uploadedfile import SimpleUploadedFile

        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        response = auth_client.post(f"/api/products/{product.id}/image/", {"file": upload}, format="multipart")
        assert response.status_code == 400
        assert response.data["detail"] == "Only image uploads are allowed"

    def test_api_other_company_is_404(self, auth_client, second_company, media_root):
        other = Product.objects.create(company=second_company, name="Other", price=Decimal("1"))
        response = auth_client.post(f"/api/products/{other.id}/image/", {"file": _png()}, format="multipart")
        assert response.status_code == 404
