"""Organization product endpoints."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

import structlog
from fastapi import APIRouter, Response

from org_products_service.auth.deps import admit
from org_products_service.auth.guards import is_uuid
from org_products_service.auth.models import AuthenticatedRequestContext
from org_products_service.auth.pipeline import CREATE, DELETE, READ, update_policy
from org_products_service.db.deps import ProductsRepoDep
from org_products_service.errors import Conflict, InvalidInput, ResourceNotFound
from org_products_service.rest.schemas import (
    ProductCreateRequest,
    ProductListResponse,
    ProductSchema,
    ProductUpdateRequest,
)

router = APIRouter(prefix="/organizations/{org_id}/products", tags=["products"])
log = structlog.get_logger(__name__)


def _org_uuid(context: AuthenticatedRequestContext) -> UUID:
    return UUID(context.organization.id)


def _product_uuid(product_id: str) -> UUID:
    if not is_uuid(product_id):
        raise InvalidInput("Valid product_id must be provided")
    return UUID(product_id)


def _product_to_schema(product) -> ProductSchema:
    return ProductSchema(
        id=str(product.id),
        organization_id=str(product.organization_id),
        name=product.name,
        description=product.description,
        price=product.price,
        quantity=product.quantity,
        category=product.category,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


@router.post("", response_model=ProductSchema, status_code=201)
async def create_product(
    request: ProductCreateRequest,
    repo: ProductsRepoDep,
    context: AuthenticatedRequestContext = admit(CREATE),
) -> ProductSchema:
    org_id = _org_uuid(context)
    if await repo.get_by_name(org_id, request.name):
        raise Conflict(f"Product {request.name!r} already exists in this organization")
    product = await repo.create(org_id, **request.model_dump())
    log.info("product_created", org_id=str(org_id), product_id=str(product.id), user_id=context.user.id)
    return _product_to_schema(product)


@router.get("/search", response_model=ProductListResponse)
async def search_products(
    repo: ProductsRepoDep,
    name: str | None = None,
    category: str | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    limit: int = 20,
    offset: int = 0,
    context: AuthenticatedRequestContext = admit(READ),
) -> ProductListResponse:
    if min_price is not None and max_price is not None and min_price > max_price:
        raise InvalidInput("min_price must not exceed max_price")
    products, total = await repo.search(
        _org_uuid(context),
        name=name,
        category=category,
        min_price=min_price,
        max_price=max_price,
        limit=limit,
        offset=offset,
    )
    return ProductListResponse(
        products=[_product_to_schema(p) for p in products],
        total=total,
    )


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: str,
    repo: ProductsRepoDep,
    context: AuthenticatedRequestContext = admit(DELETE),
) -> Response:
    product = await repo.get(_org_uuid(context), _product_uuid(product_id))
    if product is None:
        raise ResourceNotFound("Product not found")
    await repo.delete(product)
    log.info("product_deleted", product_id=product_id, user_id=context.user.id)
    return Response(status_code=204)


@router.patch("/{product_id}", response_model=ProductSchema)
async def update_product(
    product_id: str,
    request: ProductUpdateRequest,
    repo: ProductsRepoDep,
    context: AuthenticatedRequestContext = admit(update_policy),
) -> ProductSchema:
    product = await repo.get(_org_uuid(context), _product_uuid(product_id))
    if product is None:
        raise ResourceNotFound("Product not found")
    changes = request.model_dump(exclude_unset=True)
    # Name is required on the row; an explicit null leaves it unchanged.
    if changes.get("name", "") is None:
        del changes["name"]
    if not changes:
        raise InvalidInput("No fields to update")
    if "name" in changes:
        existing = await repo.get_by_name(product.organization_id, changes["name"])
        if existing is not None and existing.id != product.id:
            raise Conflict(f"Product {changes['name']!r} already exists in this organization")
    product = await repo.update(product, **changes)
    log.info("product_updated", product_id=product_id, fields=sorted(changes), user_id=context.user.id)
    return _product_to_schema(product)
