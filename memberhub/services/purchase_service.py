"""
Purchase Service

Records paid orders and revokes their access.
"""
from datetime import datetime, timezone
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from memberhub.models.purchase import Purchase, PurchaseStatus


class PurchaseService:
    """Service for managing purchases and the access they grant."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_order_id(self, order_id: str) -> Purchase | None:
        """
        Get purchase by the payment provider's order id.
        
        Args:
            order_id: External order id
            
        Returns:
            Purchase or None if not found
        """
        stmt = select(Purchase).where(Purchase.order_id == order_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def record_paid(
        self,
        order_id: str,
        product_id: str | None,
        customer_email: str,
        customer_name: str | None,
        user_id: str | None,
        raw_payload: dict
    ) -> Purchase:
        """
        Insert a paid purchase with access granted.
        
        Args:
            order_id: External order id (unique)
            product_id: External product id
            customer_email: Buyer email
            customer_name: Buyer name
            user_id: Profile id of the buyer's account
            raw_payload: Delivery body, kept for audit
            
        Returns:
            Newly created Purchase

        Raises:
            IntegrityError: a purchase for this order id already exists
        """
        purchase = Purchase(
            order_id=order_id,
            product_id=product_id,
            customer_email=customer_email.lower(),
            customer_name=customer_name,
            user_id=user_id,
            status=PurchaseStatus.PAID,
            access_granted=True,
            purchase_date=datetime.now(timezone.utc),
            raw_payload=raw_payload
        )
        self.db.add(purchase)
        await self.db.commit()
        await self.db.refresh(purchase)
        return purchase
    
    async def revoke_access(self, purchase: Purchase, raw_payload: dict) -> Purchase:
        """
        Mark a purchase refunded and remove its access.
        
        Args:
            purchase: Purchase to revoke
            raw_payload: Revocation delivery body, replaces the stored payload
            
        Returns:
            The updated Purchase
        """
        purchase.status = PurchaseStatus.REFUNDED
        purchase.access_granted = False
        purchase.access_revoked_at = datetime.now(timezone.utc)
        purchase.raw_payload = raw_payload
        
        await self.db.commit()
        await self.db.refresh(purchase)
        return purchase
