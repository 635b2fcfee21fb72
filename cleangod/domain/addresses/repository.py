"""Address repository - Database operations for saved addresses"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Address


class AddressRepository:
    """Repository for address database operations"""

    @staticmethod
    def get_addresses(db: Session, user_id: str) -> list[Address]:
        """Oldest first, so the first saved address leads the list"""
        return (
            db.query(Address)
            .filter(Address.user_id == user_id)
            .order_by(Address.created_at.asc(), Address.id.asc())
            .all()
        )

    @staticmethod
    def get_address(db: Session, address_id: str, user_id: str) -> Optional[Address]:
        return (
            db.query(Address)
            .filter(Address.id == address_id, Address.user_id == user_id)
            .first()
        )

    @staticmethod
    def create_address(db: Session, user_id: str, **address_data) -> Address:
        address = Address(user_id=user_id, **address_data)
        db.add(address)
        db.commit()
        db.refresh(address)
        return address

    @staticmethod
    def update_address(db: Session, address: Address, **updates) -> Address:
        for key, value in updates.items():
            if value is not None and hasattr(address, key):
                setattr(address, key, value)
        db.commit()
        db.refresh(address)
        return address

    @staticmethod
    def set_default(db: Session, user_id: str, address_id: str) -> None:
        """Make one address the default and clear the flag on all others"""
        for address in db.query(Address).filter(Address.user_id == user_id).all():
            address.is_default = address.id == address_id
        db.commit()

    @staticmethod
    def delete_address(db: Session, address: Address) -> None:
        db.delete(address)
        db.commit()
