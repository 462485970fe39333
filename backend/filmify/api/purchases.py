"""
purchases.py

API endpoints for listing and recording movie purchases.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload
from typing import Optional
import logging

from ..core.database import get_db
from ..crud import MovieNotFound
from ..models import Purchase
from ..schemas import PurchaseCreate, PurchaseSchema
from ..services.entitlements import create_purchase, PurchaseRejected

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_purchases(
    user_id: Optional[str] = None,
    movie_id: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List purchases, newest first, optionally filtered."""
    try:
        query = db.query(Purchase).options(joinedload(Purchase.movie))
        if user_id:
            query = query.filter(Purchase.user_id == user_id)
        if movie_id:
            query = query.filter(Purchase.movie_id == movie_id)
        if status:
            query = query.filter(Purchase.status == status)
        purchases = query.order_by(Purchase.created_at.desc()).all()
        return {"purchases": [PurchaseSchema.model_validate(p).model_dump(mode="json") for p in purchases]}
    except Exception as e:
        logger.error(f"Error fetching purchases: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch purchases")


@router.post("", status_code=201)
async def record_purchase(payload: PurchaseCreate, db: Session = Depends(get_db)):
    """Record a completed purchase (payment is settled upstream)."""
    try:
        purchase = create_purchase(
            db,
            movie_id=payload.movie_id,
            user_id=payload.user_id,
            amount=payload.amount,
            currency=payload.currency,
            payment_method=payload.payment_method,
            transaction_id=payload.transaction_id,
        )
        return PurchaseSchema.model_validate(purchase).model_dump(mode="json")
    except MovieNotFound:
        raise HTTPException(status_code=404, detail="Movie not found")
    except PurchaseRejected as e:
        raise HTTPException(status_code=400, detail=e.reason)
    except Exception as e:
        logger.error(f"Error creating purchase: {e}")
        raise HTTPException(status_code=500, detail="Failed to create purchase")
