"""Tag API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..models import User
from ..schemas.item import TagCreate, TagResponse
from ..services.catalog import CatalogService
from ..utils.dependencies import get_catalog_service, get_current_user, require_seller

router = APIRouter()


@router.post("/", response_model=TagResponse)
def find_or_create_tag(
    tag: TagCreate,
    current_user: User = Depends(require_seller),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Return the tag with this name, creating it if needed"""
    return catalog.find_or_create_tag(tag.name, tag.category)


@router.get("/", response_model=List[TagResponse])
def list_tags(
    category: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """List tags with optional category filter"""
    return catalog.list_tags(category, skip=skip, limit=limit)
