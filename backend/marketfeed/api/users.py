"""User administration endpoints"""

from fastapi import APIRouter, Depends, status

from ..models import User, UserRole
from ..schemas.user import UserCreate, UserResponse
from ..services.auth import AuthService
from ..utils.dependencies import get_auth_service, require_admin
from ..utils.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/sellers", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_seller(
    user_in: UserCreate,
    current_user: User = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create a seller account (admin only)"""
    seller = auth_service.create_user(user_in.email, user_in.password, name=user_in.name, role=UserRole.SELLER)
    logger.info("Seller account created", seller_id=seller.id, admin_id=current_user.id)
    return seller
