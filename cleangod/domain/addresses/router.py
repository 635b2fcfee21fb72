"""Address router - FastAPI endpoints for saved addresses"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import AddressCreate, AddressResponse, AddressUpdate
from .service import AddressService

router = APIRouter(prefix="/addresses", tags=["Addresses"])


def get_address_service(db: Session = Depends(get_db)) -> AddressService:
    """Dependency injection for AddressService"""
    return AddressService(db)


@router.get("", response_model=list[AddressResponse])
def list_addresses(
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    return service.list_addresses(current_user)


@router.post("", response_model=AddressResponse, status_code=201)
def add_address(
    data: AddressCreate,
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    """Save a new address; the first one becomes the default"""
    return service.add_address(current_user, data)


@router.put("/{address_id}", response_model=AddressResponse)
def update_address(
    address_id: str,
    data: AddressUpdate,
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    return service.update_address(current_user, address_id, data)


@router.post("/{address_id}/default", response_model=AddressResponse)
def set_default_address(
    address_id: str,
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    return service.set_default(current_user, address_id)


@router.delete("/{address_id}")
def delete_address(
    address_id: str,
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    return service.delete_address(current_user, address_id)
