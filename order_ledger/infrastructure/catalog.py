from sqlalchemy import update
from sqlalchemy.orm import Session
from order_ledger.domain.models import Product

class CatalogStore:
    """Product reads and stock/sold counter mutation."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_ids(self, ids) -> list[Product]:
        ids = list(ids)
        if not ids:
            return []
        return (
            self.db.query(Product)
            .filter(Product.id.in_(ids), Product.is_active.is_(True))
            .all()
        )

    def apply_delta(self, product_id: int, stock_delta: int, sold_delta: int) -> bool:
        """Shift stock and sold in one conditional UPDATE.

        The guards are evaluated by the database together with the write, so a
        concurrent checkout can never push either counter below zero. Returns
        False when the row is missing or a guard rejects the write.
        """
        stmt = update(Product).where(Product.id == product_id)
        if stock_delta < 0:
            stmt = stmt.where(Product.stock >= -stock_delta)
        if sold_delta < 0:
            stmt = stmt.where(Product.sold >= -sold_delta)
        stmt = stmt.values(
            stock=Product.stock + stock_delta,
            sold=Product.sold + sold_delta,
        ).execution_options(synchronize_session=False)

        result = self.db.execute(stmt)
        self._expire(product_id)
        return result.rowcount == 1

    def _expire(self, product_id: int) -> None:
        # Loaded instances would otherwise keep the pre-update counters
        key = self.db.identity_key(Product, product_id)
        product = self.db.identity_map.get(key)
        if product is not None:
            self.db.expire(product, ["stock", "sold"])
