"""Item API endpoints (seller side)"""

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from ..exceptions import NotFoundError
from ..models import User
from ..schemas.item import (
    ImageResponse,
    ImageUrlsRequest,
    ItemCreate,
    ItemDetailResponse,
    ItemUpdate,
    TagIdsRequest,
    TagResponse,
)
from ..services.catalog import CatalogService
from ..utils.dependencies import get_catalog_service, get_current_user, require_seller

router = APIRouter()


@router.post("/", response_model=ItemDetailResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    item: ItemCreate,
    current_user: User = Depends(require_seller),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Create a new item with its images and tags"""
    return catalog.create_item(
        seller_id=current_user.id,
        title=item.title,
        description=item.description,
        price_amount=item.price_amount,
        price_currency=item.price_currency,
        image_urls=item.image_urls,
        tag_ids=item.tag_ids,
    )


@router.get("/mine", response_model=List[ItemDetailResponse])
def list_my_items(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(require_seller),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """List the current seller's items"""
    return catalog.get_seller_items(current_user.id, skip=skip, limit=limit)


@router.get("/{item_id}", response_model=ItemDetailResponse)
def get_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Get a specific item"""
    item = catalog.get_item(item_id)
    if item is None:
        raise NotFoundError("item", item_id)
    return item


@router.put("/{item_id}", response_model=ItemDetailResponse)
def update_item(
    item_id: int,
    item_update: ItemUpdate,
    current_user: User = Depends(require_seller),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Update an item owned by the current seller"""
    changes = item_update.model_dump(exclude_unset=True)
    return catalog.update_item(item_id, current_user.id, **changes)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int,
    current_user: User = Depends(require_seller),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Delete an item along with its images, interactions and feed entries"""
    catalog.delete_item(item_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{item_id}/images", response_model=List[ImageResponse], status_code=status.HTTP_201_CREATED)
def add_images(
    item_id: int,
    body: ImageUrlsRequest,
    current_user: User = Depends(require_seller),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.add_images(item_id, current_user.id, body.image_urls)


@router.delete("/{item_id}/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_image(
    item_id: int,
    image_id: int,
    current_user: User = Depends(require_seller),
    catalog: CatalogService = Depends(get_catalog_service),
):
    if not catalog.delete_image(item_id, current_user.id, image_id):
        raise NotFoundError("image", image_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{item_id}/tags", response_model=List[TagResponse])
def add_tags(
    item_id: int,
    body: TagIdsRequest,
    current_user: User = Depends(require_seller),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.add_tags(item_id, current_user.id, body.tag_ids)


@router.delete("/{item_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_tag(
    item_id: int,
    tag_id: int,
    current_user: User = Depends(require_seller),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Detach a tag from an item; the tag itself is kept"""
    catalog.remove_tag(item_id, current_user.id, tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
