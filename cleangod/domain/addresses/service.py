"""Address service - Business logic for saved addresses"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Address, User
from ...retry import COLLABORATOR_ERRORS, retry_read, service_unavailable
from ..booking.wizard import AddressSnapshot
from .repository import AddressRepository
from .schemas import AddressCreate, AddressResponse, AddressUpdate

logger = logging.getLogger(__name__)


def address_to_response(a: Address) -> AddressResponse:
    return AddressResponse(
        id=a.id,
        type=a.type,
        street=a.street,
        area=a.area,
        city=a.city,
        state=a.state,
        pincode=a.pincode,
        landmark=a.landmark,
        latitude=a.latitude,
        longitude=a.longitude,
        isDefault=a.is_default,
        createdAt=a.created_at,
    )


def address_snapshot(a: Address) -> AddressSnapshot:
    """Copy of the address as it is at booking time"""
    return AddressSnapshot(
        id=a.id,
        type=a.type,
        street=a.street,
        area=a.area,
        city=a.city,
        state=a.state,
        pincode=a.pincode,
        landmark=a.landmark,
        isDefault=a.is_default,
    )


class AddressService:
    """Service layer for address operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AddressRepository()

    def _get_or_404(self, user: User, address_id: str) -> Address:
        try:
            address = retry_read(
                lambda: self.repo.get_address(self.db, address_id, user.id),
                "get address",
                db=self.db,
            )
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("get address", e) from e
        if not address:
            raise HTTPException(status_code=404, detail="Address not found")
        return address

    def _write(self, action: str, operation):
        try:
            return operation()
        except COLLABORATOR_ERRORS as e:
            self.db.rollback()
            raise service_unavailable(action, e) from e

    def list_addresses(self, user: User) -> list[AddressResponse]:
        try:
            addresses = retry_read(
                lambda: self.repo.get_addresses(self.db, user.id), "list addresses", db=self.db
            )
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("list addresses", e) from e
        return [address_to_response(a) for a in addresses]

    def add_address(self, user: User, data: AddressCreate) -> AddressResponse:
        """The first saved address always becomes the default"""
        is_first = not self.repo.get_addresses(self.db, user.id)
        make_default = data.isDefault or is_first

        address = self._write(
            "add address",
            lambda: self.repo.create_address(
                self.db,
                user.id,
                type=data.type,
                street=data.street,
                area=data.area,
                city=data.city,
                state=data.state,
                pincode=data.pincode,
                landmark=data.landmark,
                latitude=data.latitude,
                longitude=data.longitude,
                is_default=make_default,
            ),
        )
        if make_default and not is_first:
            self._write("set default address", lambda: self.repo.set_default(self.db, user.id, address.id))
            self.db.refresh(address)

        logger.info(f"📍 Address {address.id} added for user {user.id}")
        return address_to_response(address)

    def update_address(self, user: User, address_id: str, data: AddressUpdate) -> AddressResponse:
        address = self._get_or_404(user, address_id)
        address = self._write(
            "update address",
            lambda: self.repo.update_address(
                self.db,
                address,
                type=data.type,
                street=data.street,
                area=data.area,
                city=data.city,
                state=data.state,
                pincode=data.pincode,
                landmark=data.landmark,
                latitude=data.latitude,
                longitude=data.longitude,
            ),
        )
        return address_to_response(address)

    def set_default(self, user: User, address_id: str) -> AddressResponse:
        address = self._get_or_404(user, address_id)
        self._write("set default address", lambda: self.repo.set_default(self.db, user.id, address.id))
        self.db.refresh(address)
        return address_to_response(address)

    def delete_address(self, user: User, address_id: str) -> dict:
        """Deleting the default promotes the oldest remaining address"""
        address = self._get_or_404(user, address_id)
        was_default = address.is_default
        self._write("delete address", lambda: self.repo.delete_address(self.db, address))

        if was_default:
            remaining = self.repo.get_addresses(self.db, user.id)
            if remaining:
                self._write(
                    "set default address",
                    lambda: self.repo.set_default(self.db, user.id, remaining[0].id),
                )
        return {"message": "Address deleted"}

    def snapshot(self, user: User, address_id: str) -> AddressSnapshot:
        return address_snapshot(self._get_or_404(user, address_id))
