from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from marketplace.core.config import Settings
from marketplace.core.exceptions import ValidationError
from marketplace.core.security import decode_access_token
from marketplace.schemas.user import UserOut
from marketplace.services.cart_store import CartStore
from marketplace.services.catalog_store import CatalogStore
from marketplace.services.checkout import CheckoutService
from marketplace.services.order_store import OrderStore
from marketplace.services.user_directory import UserDirectory

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# Dependency to get DB
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_user_directory(db: Session = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)


def get_catalog_store(db: Session = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)


def get_cart_store(db: Session = Depends(get_db), settings: Settings = Depends(get_app_settings)) -> CartStore:
    return CartStore(db, tax_rate=settings.TAX_RATE)


def get_order_store(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> OrderStore:
    return OrderStore(
        db,
        clock=request.app.state.clock,
        rng=request.app.state.rng,
        tax_rate=settings.TAX_RATE,
        delivery_min_days=settings.DELIVERY_MIN_DAYS,
        delivery_max_days=settings.DELIVERY_MAX_DAYS,
    )


def get_checkout_service(
    cart_store: CartStore = Depends(get_cart_store),
    order_store: OrderStore = Depends(get_order_store),
) -> CheckoutService:
    return CheckoutService(cart_store, order_store)


# Dependency to get the current user from the bearer token; creates the user on first sight
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
    directory: UserDirectory = Depends(get_user_directory),
) -> UserOut:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = decode_access_token(credentials.credentials, settings)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return directory.ensure_user(claims)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
