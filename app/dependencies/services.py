from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_session
from app.services.events import EventPublisher
from app.services.image_store import HttpImageStore
from app.services.properties import PropertyService

image_store = HttpImageStore()
events = EventPublisher()

async def get_property_service(session: AsyncSession = Depends(get_session)) -> PropertyService:
    return PropertyService(session, image_store=image_store, events=events)
