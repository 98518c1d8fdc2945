"""
Supplier and category API endpoints.
"""
from typing import Type
import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from shiptrack.core.database import Base, get_db
from shiptrack.core.security import OwnerScope, get_owner_scope
from shiptrack.error_handlers import ResourceNotFoundError
from shiptrack.models.supplier import Supplier, Category
from shiptrack.schemas.supplier import (
    SupplierCreate,
    SupplierUpdate,
    SupplierResponse,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse
)

suppliers_router = APIRouter(prefix="/suppliers", tags=["Suppliers"])
categories_router = APIRouter(prefix="/categories", tags=["Categories"])


async def _get_owned(db: AsyncSession, model: Type[Base], obj_id: uuid.UUID, scope: OwnerScope):
    query = select(model).where(model.id == obj_id)
    if not scope.is_admin:
        query = query.where(model.user_id == scope.user_id)
    obj = (await db.execute(query)).scalar_one_or_none()
    if obj is None:
        raise ResourceNotFoundError(model.__name__, obj_id)
    return obj


async def _list_owned(db: AsyncSession, model: Type[Base], scope: OwnerScope):
    query = select(model).order_by(model.name, model.id)
    if not scope.is_admin:
        query = query.where(model.user_id == scope.user_id)
    return (await db.execute(query)).scalars().all()


# --- Suppliers ---

@suppliers_router.get("", response_model=list[SupplierResponse])
async def list_suppliers(
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    return await _list_owned(db, Supplier, scope)


@suppliers_router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    supplier_data: SupplierCreate,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    supplier = Supplier(user_id=scope.user_id, **supplier_data.model_dump())
    db.add(supplier)
    await db.commit()
    return supplier


@suppliers_router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: uuid.UUID,
    supplier_data: SupplierUpdate,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    supplier = await _get_owned(db, Supplier, supplier_id, scope)
    for field, value in supplier_data.model_dump(exclude_unset=True).items():
        setattr(supplier, field, value)
    await db.commit()
    return supplier


@suppliers_router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(
    supplier_id: uuid.UUID,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    """Products keep existing; their supplier link is cleared."""
    supplier = await _get_owned(db, Supplier, supplier_id, scope)
    await db.delete(supplier)
    await db.commit()


# --- Categories ---

@categories_router.get("", response_model=list[CategoryResponse])
async def list_categories(
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    return await _list_owned(db, Category, scope)


@categories_router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    category = Category(user_id=scope.user_id, **category_data.model_dump())
    db.add(category)
    await db.commit()
    return category


@categories_router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    category_data: CategoryUpdate,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    category = await _get_owned(db, Category, category_id, scope)
    for field, value in category_data.model_dump(exclude_unset=True).items():
        setattr(category, field, value)
    await db.commit()
    return category


@categories_router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: uuid.UUID,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    category = await _get_owned(db, Category, category_id, scope)
    await db.delete(category)
    await db.commit()
