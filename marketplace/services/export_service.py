"""Plain-text data exports for the admin dashboard."""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from marketplace.domain.exceptions import ValidationException
from marketplace.domain.models import Order, Product
from marketplace.infrastructure.repositories import OrderRepository, ProductRepository
from marketplace.utils import epoch_ms, now

logger = logging.getLogger(__name__)

EXPORT_TYPES = ("orders", "products")

RULE = "=" * 80
SEPARATOR = "-" * 80


def _amount(value: Optional[float]) -> str:
    if value is None:
        return "0"
    return str(int(value)) if float(value).is_integer() else str(value)


def _date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y %H:%M:%S")


def _header(title: str, exported_at: datetime) -> List[str]:
    return [RULE, title, f"Date d'export: {_date(exported_at)}", RULE, ""]


def render_orders(orders: List[Order], exported_at: datetime) -> str:
    lines = _header("RAPPORT COMPLET DES COMMANDES - ZST", exported_at)
    for order in orders:
        lines += [
            f"COMMANDE #{order.order_number}",
            SEPARATOR,
            f"Date: {_date(order.created_at)}",
            f"Client: {order.customer_name}",
            f"Email: {order.customer_email or ''}",
            f"Téléphone: {order.customer_phone}",
            f"Adresse: {order.customer_address}, {order.customer_wilaya}",
            f"Statut: {order.status.value}",
            f"Paiement: {order.payment_status.value}",
        ]
        if order.tracking_number:
            lines.append(f"Numéro de suivi: {order.tracking_number}")
        lines += ["", "Articles:"]
        for item in order.items:
            lines.append(f"  - {item.product_name} x{item.quantity} = {_amount(item.subtotal)} DA")
        lines += ["", f"Total: {_amount(order.total)} DA", "", RULE, ""]
    return "\n".join(lines) + "\n"


def render_products(products: List[Product], exported_at: datetime) -> str:
    lines = _header("CATALOGUE DES PRODUITS - ZST", exported_at)
    for product in products:
        lines += [
            f"PRODUIT: {product.name}",
            SEPARATOR,
            f"ID: {product.product_id}",
            f"Marque: {product.brand}",
            f"Prix: {_amount(product.price)} DA",
            f"Catégorie: {product.category}",
            f"Type: {product.product_type or ''}",
            f"En stock: {'Oui' if product.in_stock else 'Non'}",
            f"Promotion: {'Oui' if product.is_promo else 'Non'}",
            f"Note: {product.rating if product.rating else 'N/A'}/5",
            f"Vues: {product.viewers_count}",
            "",
            "Description:",
            product.description,
            "",
            RULE,
            "",
        ]
    return "\n".join(lines) + "\n"


class ExportService:
    """Builds the TXT order report and product catalogue."""

    def __init__(self, order_repository: OrderRepository, product_repository: ProductRepository):
        self.order_repository = order_repository
        self.product_repository = product_repository

    async def export(self, export_type: Optional[str]) -> Tuple[str, str]:
        """Return `(filename, content)` for an export type."""
        if export_type not in EXPORT_TYPES:
            raise ValidationException(
                'Invalid export type. Must be "orders" or "products"', code="INVALID_EXPORT_TYPE"
            )

        exported_at = now()
        if export_type == "orders":
            orders = await self.order_repository.list_all()
            content = render_orders(orders, exported_at)
            count = len(orders)
        else:
            products = await self.product_repository.list_all()
            content = render_products(products, exported_at)
            count = len(products)

        logger.info(f"Exported {count} {export_type}")
        return f"zst-export-{export_type}-{epoch_ms(exported_at)}.txt", content
