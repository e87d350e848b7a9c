# storefront/api/deps.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import ForbiddenError
from storefront.services.auth_service import AuthService
from storefront.services.cart_service import CartService
from storefront.services.catalog import Catalog, SqlCatalog
from storefront.services.image_storage import ImageStorage
from storefront.services.item_service import ItemService
from storefront.services.revocation_registry import RevocationRegistry
from storefront.services.token_service import TokenService
from storefront.tasks.images import schedule_image_delete
from storefront.utils.settings import SESSION_COOKIE_NAME

# every collaborator is built per request from app.state or settings,
# tests swap them through app.dependency_overrides


def get_redis(request: Request):
    return request.app.state.redis


def get_token_service() -> TokenService:
    return TokenService()


def get_revocation_registry(client=Depends(get_redis)) -> RevocationRegistry:
    return RevocationRegistry(client)


def get_auth_service(
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    registry: RevocationRegistry = Depends(get_revocation_registry),
) -> AuthService:
    return AuthService(db=db, token_service=tokens, registry=registry)


def get_catalog(db: Session = Depends(get_db)) -> Catalog:
    return SqlCatalog(db)


def get_cart_service(
    db: Session = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
) -> CartService:
    return CartService(db=db, catalog=catalog)


def get_image_storage() -> ImageStorage:
    return ImageStorage()


def get_image_cleanup():
    return schedule_image_delete


def get_item_service(
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    cleanup=Depends(get_image_cleanup),
) -> ItemService:
    return ItemService(db=db, image_storage=storage, image_cleanup=cleanup)


def get_session_token(request: Request) -> str | None:
    # an explicit "Authorization: Bearer <token>" wins over the cookie
    scheme, _, value = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()

    return request.cookies.get(SESSION_COOKIE_NAME) or None


def get_current_user(
    token: str | None = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
) -> UserModel:
    user, _ = auth.authenticate(token)
    return user


def role_required(*allowed_roles):
    def _checker(current_user: UserModel = Depends(get_current_user)) -> UserModel:
        if allowed_roles and current_user.role not in allowed_roles:
            raise ForbiddenError("Admin access required")
        return current_user
    return _checker
