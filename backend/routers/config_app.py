from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from services.settings_service import MODELS_META, SettingsService


def get_settings() -> SettingsService:
    from main import settings_service

    return settings_service


router = APIRouter(prefix="/api/config/app", tags=["config_app"])


@router.get("")
def get_app_config(cfg: SettingsService = Depends(get_settings)):
    return {"settings": cfg.public(), "generation": cfg.generation_config()}


@router.post("")
def post_app_config(body: dict, cfg: SettingsService = Depends(get_settings)):
    try:
        cfg.update(body.get("settings", {}))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"settings": cfg.public(), "generation": cfg.generation_config()}


@router.get("/models_meta")
def get_models_meta():
    return {"models": MODELS_META}
