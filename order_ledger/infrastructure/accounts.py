from sqlalchemy import update
from sqlalchemy.orm import Session
from order_ledger.domain.models import Customer

class AccountStore:
    def __init__(self, db: Session):
        self.db = db

    def increment_order_count(self, customer_id: int) -> bool:
        result = self.db.execute(
            update(Customer)
            .where(Customer.id == customer_id)
            .values(orders_count=Customer.orders_count + 1)
            .execution_options(synchronize_session=False)
        )
        customer = self.db.identity_map.get(self.db.identity_key(Customer, customer_id))
        if customer is not None:
            self.db.expire(customer, ["orders_count"])
        return result.rowcount == 1
