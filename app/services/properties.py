"""
Property aggregate: a property together with its units, images and tags.

Every operation that takes a ``caller_id`` first checks that the caller owns
the property. A property that does not exist and one owned by someone else
raise the same ``PropertyNotFoundError`` so callers cannot probe for ids.

Mutations run in one transaction each; nothing is visible until it commits.
Deletes are soft: rows are stamped with ``deleted_at`` and drop out of every
read.
"""
import mimetypes
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.core.errors import (
    CatalogError, ImageNotFoundError, PropertyNotFoundError, StorageFailure, UnitNotFoundError, UploadFailure,
    ValidationFailure,
)
from app.filters.builder import build_property_predicate, build_unit_predicate
from app.models import Property, PropertyImage, PropertyUnit
from app.models.property import ADDRESS_FIELDS, DETAIL_FIELDS
from app.repositories import images as images_repo
from app.repositories import properties as properties_repo
from app.repositories import units as units_repo
from app.schemas.image import ImageResponse, ImageUpload
from app.schemas.property import PropertyCreate, PropertyResponse, PropertyStatistics, PropertyUpdate
from app.schemas.search import Page, PageRequest, PropertySearchCriteria, UnitSearchCriteria
from app.schemas.unit import UnitCreate, UnitResponse, UnitUpdate
from app.services.counters import VIEW_ONLY, CounterMutation
from app.services.events import PROPERTY_CREATED, PROPERTY_DELETED, PROPERTY_UPDATED, EventPublisher
from app.services.image_store import ImageStore
from app.services.metrics import metrics_for, occupancy_rate
from app.services.pagination import build_page, resolve_page

logger = get_logger()


def _columns(row) -> Dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def _image_format(filename: Optional[str], content_type: Optional[str]) -> Optional[str]:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[1].lower()[:20]
    if content_type:
        extension = mimetypes.guess_extension(content_type)
        if extension:
            return extension.lstrip(".")
    return None


class PropertyService:
    def __init__(
        self,
        session: AsyncSession,
        image_store: Optional[ImageStore] = None,
        events: Optional[EventPublisher] = None,
    ):
        self.session = session
        self.image_store = image_store
        self.events = events

    @asynccontextmanager
    async def _transaction(self, action: str):
        try:
            yield
            await self.session.commit()
        except CatalogError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Storage failure", action=action, error=str(e), exc_info=True)
            raise StorageFailure() from e
        except Exception:
            await self.session.rollback()
            raise

    @asynccontextmanager
    async def _reading(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            logger.error("Storage failure", action=action, error=str(e), exc_info=True)
            raise StorageFailure() from e

    async def _publish(self, event: str, prop: Property) -> None:
        if self.events is None:
            return
        await self.events.publish(event, {"property_id": str(prop.id), "owner_id": prop.owner_id})

    async def _owned(self, property_id, caller_id: str) -> Property:
        prop = await properties_repo.get_owned(self.session, property_id, caller_id)
        if prop is None:
            logger.info("Property not found or not owned", property_id=str(property_id), caller_id=caller_id)
            raise PropertyNotFoundError()
        return prop

    async def _unit_of(self, property_id, unit_id) -> PropertyUnit:
        unit = await units_repo.get_for_property(self.session, unit_id, property_id)
        if unit is None:
            raise UnitNotFoundError()
        return unit

    async def _image_of(self, property_id, image_id) -> PropertyImage:
        image = await images_repo.get_for_property(self.session, image_id, property_id)
        if image is None:
            raise ImageNotFoundError()
        return image

    async def _assemble(self, prop: Property) -> PropertyResponse:
        units = await units_repo.list_for_property(self.session, prop.id)
        images = await images_repo.list_for(self.session, property_id=prop.id)
        tags = await properties_repo.get_tags(self.session, prop.id)
        metrics = await metrics_for(self.session, prop.id)
        data = _columns(prop)
        data["address"] = {name: data[name] for name in ADDRESS_FIELDS}
        data["details"] = {name: data[name] for name in DETAIL_FIELDS}
        data.update(
            tags=tags,
            units=[UnitResponse.model_validate(unit) for unit in units],
            images=[ImageResponse.model_validate(image) for image in images],
            occupancy_rate=metrics.occupancy_rate,
            total_monthly_revenue=metrics.total_monthly_revenue,
        )
        return PropertyResponse.model_validate(data)

    async def _add_unit(self, property_id, spec: UnitCreate) -> PropertyUnit:
        values = {key: value for key, value in spec.model_dump().items() if value is not None}
        if not (values.get("unit_number") or "").strip():
            values["unit_number"] = await units_repo.next_unit_number(self.session, property_id)
        return await units_repo.insert(self.session, PropertyUnit(property_id=property_id, **values))

    async def _record_image(self, values: Dict[str, Any], property_id=None, unit_id=None) -> PropertyImage:
        if values.get("display_order") is None:
            values["display_order"] = await images_repo.next_display_order(
                self.session, property_id=property_id, unit_id=unit_id
            )
        image = await images_repo.insert(
            self.session, PropertyImage(property_id=property_id, unit_id=unit_id, **values)
        )
        if image.is_primary:
            await images_repo.unset_other_primaries(
                self.session, image.id, property_id=property_id, unit_id=unit_id
            )
        return image

    # Properties

    async def create_property(self, spec: PropertyCreate, owner_id: str) -> PropertyResponse:
        async with self._transaction("create_property"):
            values = spec.model_dump(exclude={"address", "details", "tags", "units", "images"})
            values.update(spec.address.model_dump())
            if spec.details is not None:
                values.update(spec.details.model_dump())
            prop = await properties_repo.insert(
                self.session,
                Property(owner_id=owner_id, view_count=0, inquiry_count=0, favorite_count=0, **values),
            )
            await properties_repo.replace_tags(self.session, prop.id, spec.tags)
            for unit_spec in spec.units:
                await self._add_unit(prop.id, unit_spec)
            for image_spec in spec.images:
                await self._record_image(image_spec.model_dump(), property_id=prop.id)
            prop = await properties_repo.get(self.session, prop.id)
        logger.info("Property created", property_id=str(prop.id), owner_id=owner_id, units=len(spec.units))
        await self._publish(PROPERTY_CREATED, prop)
        async with self._reading("create_property"):
            return await self._assemble(prop)

    async def update_property(self, property_id, caller_id: str, patch: PropertyUpdate) -> PropertyResponse:
        changes = patch.column_changes()
        mutation = CounterMutation.from_flags(patch)
        async with self._transaction("update_property"):
            prop = await self._owned(property_id, caller_id)
            for name, value in changes.items():
                setattr(prop, name, value)
            if patch.tags is not None:
                await properties_repo.replace_tags(self.session, prop.id, patch.tags)
            prop.touch()
            await self.session.flush()
            if not mutation.is_empty:
                await properties_repo.adjust_counters(self.session, prop.id, mutation)
            prop = await properties_repo.get(self.session, prop.id)
        logger.info(
            "Property updated", property_id=str(property_id), fields=sorted(changes), counters=not mutation.is_empty
        )
        await self._publish(PROPERTY_UPDATED, prop)
        async with self._reading("update_property"):
            return await self._assemble(prop)

    async def get_property(self, property_id, caller_id: str) -> PropertyResponse:
        async with self._transaction("get_property"):
            await self._owned(property_id, caller_id)
            await properties_repo.adjust_counters(self.session, property_id, VIEW_ONLY)
            prop = await properties_repo.get(self.session, property_id)
        async with self._reading("get_property"):
            return await self._assemble(prop)

    async def delete_property(self, property_id, caller_id: str) -> None:
        async with self._transaction("delete_property"):
            prop = await self._owned(property_id, caller_id)
            if not await properties_repo.soft_delete(self.session, property_id):
                raise PropertyNotFoundError()
            images = await images_repo.soft_delete_for_property(self.session, property_id)
            units = await units_repo.soft_delete_for_property(self.session, property_id)
        logger.info("Property deleted", property_id=str(property_id), units=units, images=images)
        await self._publish(PROPERTY_DELETED, prop)

    async def search_properties(
        self, criteria: PropertySearchCriteria, page: Optional[PageRequest] = None
    ) -> Page[PropertyResponse]:
        inverted = criteria.inverted_ranges()
        if inverted:
            raise ValidationFailure("; ".join(inverted))
        predicate = build_property_predicate(criteria)
        spec = resolve_page(page)
        async with self._reading("search_properties"):
            rows, total = await properties_repo.find(self.session, predicate, spec)
            items = [await self._assemble(row) for row in rows]
        logger.info("Property search completed", total=total, returned=len(items), page=spec.page)
        return build_page(items, total, spec)

    async def list_by_owner(self, owner_id: str, page: Optional[PageRequest] = None) -> Page[PropertyResponse]:
        return await self.search_properties(PropertySearchCriteria(owner_id=owner_id), page)

    async def get_statistics(self, owner_id: str) -> PropertyStatistics:
        async with self._reading("get_statistics"):
            by_status = await properties_repo.count_by_status(self.session, owner_id)
            ids = await properties_repo.ids_for_owner(self.session, owner_id)
            total_units, revenue = await properties_repo.owner_unit_totals(self.session, owner_id)
            rates = [await occupancy_rate(self.session, property_id) for property_id in ids]
        return PropertyStatistics(
            owner_id=owner_id,
            total_properties=len(ids),
            by_status=by_status,
            total_units=total_units,
            total_monthly_revenue=Decimal(str(revenue or 0)),
            average_occupancy_rate=sum(rates) / len(rates) if rates else 0.0,
        )

    # Units

    async def create_unit(self, property_id, caller_id: str, spec: UnitCreate) -> UnitResponse:
        async with self._transaction("create_unit"):
            await self._owned(property_id, caller_id)
            unit = await self._add_unit(property_id, spec)
            unit = await self._unit_of(property_id, unit.id)
        logger.info("Unit created", property_id=str(property_id), unit_id=str(unit.id), unit_number=unit.unit_number)
        return UnitResponse.model_validate(unit)

    async def update_unit(self, property_id, unit_id, caller_id: str, patch: UnitUpdate) -> UnitResponse:
        changes = patch.changes()
        async with self._transaction("update_unit"):
            await self._owned(property_id, caller_id)
            unit = await self._unit_of(property_id, unit_id)
            for name, value in changes.items():
                setattr(unit, name, value)
            unit.touch()
            await self.session.flush()
            unit = await self._unit_of(property_id, unit_id)
        logger.info("Unit updated", property_id=str(property_id), unit_id=str(unit_id), fields=sorted(changes))
        return UnitResponse.model_validate(unit)

    async def get_unit(self, property_id, unit_id, caller_id: str) -> UnitResponse:
        async with self._reading("get_unit"):
            await self._owned(property_id, caller_id)
            unit = await self._unit_of(property_id, unit_id)
        return UnitResponse.model_validate(unit)

    async def delete_unit(self, property_id, unit_id, caller_id: str) -> None:
        async with self._transaction("delete_unit"):
            await self._owned(property_id, caller_id)
            await self._unit_of(property_id, unit_id)
            images = await images_repo.soft_delete_for_unit(self.session, unit_id)
            await units_repo.soft_delete(self.session, unit_id)
        logger.info("Unit deleted", property_id=str(property_id), unit_id=str(unit_id), images=images)

    async def search_units(
        self, property_id, caller_id: str, criteria: UnitSearchCriteria, page: Optional[PageRequest] = None
    ) -> Page[UnitResponse]:
        inverted = criteria.inverted_ranges()
        if inverted:
            raise ValidationFailure("; ".join(inverted))
        predicate = build_unit_predicate(criteria)
        spec = resolve_page(page)
        async with self._reading("search_units"):
            await self._owned(property_id, caller_id)
            rows, total = await units_repo.find(self.session, property_id, predicate, spec)
        return build_page([UnitResponse.model_validate(row) for row in rows], total, spec)

    # Images

    async def upload_image(
        self,
        property_id,
        caller_id: str,
        content: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        spec: Optional[ImageUpload] = None,
    ) -> ImageResponse:
        spec = spec or ImageUpload()
        if self.image_store is None:
            raise UploadFailure("Image storage is not configured")
        if not content:
            raise ValidationFailure("Image file is empty")
        async with self._reading("upload_image"):
            await self._owned(property_id, caller_id)
            if spec.unit_id is not None:
                await self._unit_of(property_id, spec.unit_id)

        url = await self.image_store.put(
            content,
            {
                "filename": filename,
                "content_type": content_type,
                "property_id": str(property_id),
                "unit_id": str(spec.unit_id) if spec.unit_id else None,
            },
        )
        values = spec.model_dump(exclude={"unit_id"})
        values.update(
            image_url=url,
            file_size_bytes=spec.file_size_bytes or len(content),
            format=spec.format or _image_format(filename, content_type),
        )
        try:
            async with self._transaction("upload_image"):
                if spec.unit_id is not None:
                    image = await self._record_image(values, unit_id=spec.unit_id)
                else:
                    image = await self._record_image(values, property_id=property_id)
                image = await self._image_of(property_id, image.id)
        except Exception:
            await self._discard_blob(url)
            raise
        logger.info("Image uploaded", property_id=str(property_id), image_id=str(image.id), primary=image.is_primary)
        return ImageResponse.model_validate(image)

    async def _discard_blob(self, url: str) -> None:
        try:
            await self.image_store.delete(url)
        except UploadFailure as e:
            logger.warning("Orphaned image left in store", url=url, error=str(e))

    async def set_primary_image(self, property_id, image_id, caller_id: str) -> ImageResponse:
        async with self._transaction("set_primary_image"):
            await self._owned(property_id, caller_id)
            image = await self._image_of(property_id, image_id)
            await images_repo.unset_other_primaries(
                self.session, image.id, property_id=image.property_id, unit_id=image.unit_id
            )
            await images_repo.mark_primary(self.session, image.id)
            image = await self._image_of(property_id, image_id)
        logger.info("Primary image set", property_id=str(property_id), image_id=str(image_id))
        return ImageResponse.model_validate(image)

    async def delete_image(self, property_id, image_id, caller_id: str) -> None:
        async with self._reading("delete_image"):
            await self._owned(property_id, caller_id)
            image = await self._image_of(property_id, image_id)
        if self.image_store is not None:
            await self.image_store.delete(image.image_url)
        async with self._transaction("delete_image"):
            await images_repo.soft_delete(self.session, image_id)
        logger.info("Image deleted", property_id=str(property_id), image_id=str(image_id))

    async def list_images(self, property_id, caller_id: str, unit_id=None) -> List[ImageResponse]:
        async with self._reading("list_images"):
            await self._owned(property_id, caller_id)
            if unit_id is not None:
                await self._unit_of(property_id, unit_id)
                images = await images_repo.list_for(self.session, unit_id=unit_id)
            else:
                images = await images_repo.list_for(self.session, property_id=property_id)
        return [ImageResponse.model_validate(image) for image in images]
