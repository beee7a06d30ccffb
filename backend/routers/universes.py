from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse

from services.universe_service import UniverseService


def get_universes() -> UniverseService:
    from main import universe_service

    return universe_service


router = APIRouter(prefix="/api/universes")


@router.get("")
def list_universes(svc: UniverseService = Depends(get_universes)):
    return svc.list_universes()


@router.post("")
def create_universe(body: dict, svc: UniverseService = Depends(get_universes)):
    body = {k: v for k, v in body.items() if k != "id"}
    return svc.save(body)


@router.post("/import")
async def import_universe(file: UploadFile = File(...), svc: UniverseService = Depends(get_universes)):
    if not (file.filename or "").lower().endswith((".md", ".json", ".txt")):
        raise HTTPException(status_code=400, detail="Only md/json/txt supported")
    raw = (await file.read()).decode("utf-8", errors="ignore")
    try:
        return svc.import_universe(raw)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{universe_id}")
def get_universe(universe_id: str, svc: UniverseService = Depends(get_universes)):
    try:
        return svc.get(universe_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")


@router.put("/{universe_id}")
def update_universe(universe_id: str, body: dict, svc: UniverseService = Depends(get_universes)):
    return svc.save({**body, "id": universe_id})


@router.delete("/{universe_id}")
def delete_universe(universe_id: str, svc: UniverseService = Depends(get_universes)):
    if not svc.delete(universe_id):
        raise HTTPException(status_code=404, detail="Not found")
    return {"deleted": True}


@router.post("/{universe_id}/favorite")
def toggle_favorite(universe_id: str, svc: UniverseService = Depends(get_universes)):
    try:
        return svc.toggle_favorite(universe_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")


@router.get("/{universe_id}/export")
def export_universe(universe_id: str, svc: UniverseService = Depends(get_universes)):
    try:
        filename, text = svc.export_universe(universe_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    return PlainTextResponse(text, media_type="text/markdown", headers={"Content-Disposition": f'attachment; filename="{filename}"'})
