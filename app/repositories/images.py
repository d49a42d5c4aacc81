"""Data access for property and unit images."""
from typing import List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import PropertyImage, PropertyUnit
from app.repositories.properties import FRESH_ROWS


def _owned_by(property_id):
    """Images bound to the property itself or to any of its units."""
    unit_ids = select(PropertyUnit.id).where(PropertyUnit.property_id == property_id)
    return or_(PropertyImage.property_id == property_id, PropertyImage.unit_id.in_(unit_ids))


def _scope(property_id=None, unit_id=None):
    if (property_id is None) == (unit_id is None):
        raise ValueError("Exactly one of property_id or unit_id is required")
    if unit_id is not None:
        return PropertyImage.unit_id == unit_id
    return PropertyImage.property_id == property_id


async def insert(session: AsyncSession, image: PropertyImage) -> PropertyImage:
    session.add(image)
    await session.flush()
    return image


async def get_for_property(session: AsyncSession, image_id, property_id) -> Optional[PropertyImage]:
    stmt = select(PropertyImage).where(
        PropertyImage.id == image_id, _owned_by(property_id), PropertyImage.not_deleted()
    )
    return (await session.execute(stmt, execution_options=FRESH_ROWS)).scalar_one_or_none()


async def list_for(session: AsyncSession, property_id=None, unit_id=None) -> List[PropertyImage]:
    stmt = (
        select(PropertyImage)
        .where(_scope(property_id, unit_id), PropertyImage.not_deleted())
        .order_by(PropertyImage.display_order.asc(), PropertyImage.created_at.asc())
    )
    return list((await session.execute(stmt, execution_options=FRESH_ROWS)).scalars().all())


async def next_display_order(session: AsyncSession, property_id=None, unit_id=None) -> int:
    stmt = select(func.coalesce(func.max(PropertyImage.display_order), 0) + 1).where(
        _scope(property_id, unit_id), PropertyImage.not_deleted()
    )
    return (await session.execute(stmt)).scalar_one()


async def unset_other_primaries(session: AsyncSession, keep_id, property_id=None, unit_id=None) -> int:
    """Clear is_primary on every other live image in the same scope, in one UPDATE."""
    stmt = (
        update(PropertyImage)
        .where(
            _scope(property_id, unit_id),
            PropertyImage.id != keep_id,
            PropertyImage.is_primary.is_(True),
            PropertyImage.not_deleted(),
        )
        .values(is_primary=False)
        .execution_options(synchronize_session=False)
    )
    return (await session.execute(stmt)).rowcount


async def mark_primary(session: AsyncSession, image_id) -> int:
    stmt = (
        update(PropertyImage)
        .where(PropertyImage.id == image_id, PropertyImage.not_deleted())
        .values(is_primary=True)
        .execution_options(synchronize_session=False)
    )
    return (await session.execute(stmt)).rowcount


async def soft_delete(session: AsyncSession, image_id) -> int:
    stmt = (
        update(PropertyImage)
        .where(PropertyImage.id == image_id, PropertyImage.not_deleted())
        .values(**PropertyImage.soft_delete_values())
        .execution_options(synchronize_session=False)
    )
    return (await session.execute(stmt)).rowcount


async def soft_delete_for_property(session: AsyncSession, property_id) -> int:
    stmt = (
        update(PropertyImage)
        .where(_owned_by(property_id), PropertyImage.not_deleted())
        .values(**PropertyImage.soft_delete_values())
        .execution_options(synchronize_session=False)
    )
    return (await session.execute(stmt)).rowcount


async def soft_delete_for_unit(session: AsyncSession, unit_id) -> int:
    stmt = (
        update(PropertyImage)
        .where(PropertyImage.unit_id == unit_id, PropertyImage.not_deleted())
        .values(**PropertyImage.soft_delete_values())
        .execution_options(synchronize_session=False)
    )
    return (await session.execute(stmt)).rowcount
