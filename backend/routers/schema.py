from fastapi import APIRouter, HTTPException

from schemas.json_schemas import ENTITY_SCHEMAS, GENRES, PROSE_STYLES

router = APIRouter(prefix="/api/schema")


@router.get('/types')
def entity_types():
    return {"types": list(ENTITY_SCHEMAS.keys())}


@router.get('/entities/{type_name}')
def entity_schema(type_name: str):
    if type_name not in ENTITY_SCHEMAS:
        raise HTTPException(status_code=404, detail="Unknown entity type")
    return ENTITY_SCHEMAS[type_name]


@router.get('/options/{language}')
def options(language: str):
    if language not in GENRES:
        raise HTTPException(status_code=404, detail="Unknown language")
    return {"genres": GENRES[language], "prose_styles": PROSE_STYLES[language]}
