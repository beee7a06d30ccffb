from typing import Any

from fastapi import APIRouter, Body

from services.migration_service import migrate_story_data, migrate_universe_data

router = APIRouter(prefix="/api/migrate", tags=["migrate"])


@router.post('/story')
def migrate_story(body: Any = Body(...)):
    return migrate_story_data(body)


@router.post('/universe')
def migrate_universe(body: Any = Body(...)):
    return migrate_universe_data(body)
