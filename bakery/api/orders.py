"""Order management API endpoints (admin)"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.api.auth import AdminUser, get_current_admin
from bakery.database import get_db
from bakery.models.order import Order, OrderStatus
from bakery.payments.audit import record_audit
from bakery.schemas.order import OrderListResponse, OrderResponse, OrderStatusUpdate

router = APIRouter()


@router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = None,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """List orders with pagination"""
    query = select(Order)
    count_query = select(func.count(Order.id))

    if status:
        query = query.where(Order.status == status.value)
        count_query = count_query.where(Order.status == status.value)

    total_result = await db.execute(count_query)
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = query.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(page_size)

    result = await db.execute(query)
    orders = result.scalars().all()

    return OrderListResponse(
        items=[OrderResponse.from_order(order) for order in orders],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Get order details"""
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return OrderResponse.from_order(order)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    status_update: OrderStatusUpdate,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Move an order along its lifecycle"""
    result = await db.execute(select(Order).where(Order.id == order_id).with_for_update())
    order = result.scalar_one_or_none()

    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    new_status = OrderStatus(status_update.status)
    previous = order.status
    if previous != new_status.value and not order.can_transition_to(new_status):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot move an order from {previous} to {new_status.value}.",
        )

    order.status = new_status.value
    await db.commit()
    response = OrderResponse.from_order(order)

    await record_audit(
        db,
        action="order.status.update",
        entity_type="Order",
        entity_id=order_id,
        details={"from": previous, "to": new_status.value, "stripe_session_id": order.stripe_session_id},
        actor_email=admin.email,
    )
    return response
