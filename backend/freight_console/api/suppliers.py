"""
Supplier API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from freight_console.db.database import get_db
from freight_console.models import Supplier
from freight_console.schemas.supplier import SupplierCreate, SupplierResponse

router = APIRouter()


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    supplier_data: SupplierCreate,
    db: Session = Depends(get_db)
):
    """Create a new supplier."""
    name = (supplier_data.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Supplier name is required")
    if db.query(Supplier).filter(Supplier.name == name).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Supplier '{name}' already exists"
        )
    supplier = Supplier(**{**supplier_data.model_dump(), "name": name})
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.get("", response_model=List[SupplierResponse])
async def list_suppliers(db: Session = Depends(get_db)):
    """List all suppliers."""
    return db.query(Supplier).order_by(Supplier.name).all()
