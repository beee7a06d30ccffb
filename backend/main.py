import logging
import os
from pathlib import Path
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

BACKEND_DIR = Path(__file__).resolve().parent
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from routers import config_app, health, migrate, schema, stories, universes
from services.chat_service import ChatService
from services.settings_service import SettingsService
from services.story_service import StoryService
from services.universe_service import UniverseService
from storage.fs_store import FSStore

logging.basicConfig(
    level=os.getenv('WEBNOVEL_LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

DATA_DIR = Path(os.getenv('WEBNOVEL_DATA_DIR', str(BACKEND_DIR.parents[0] / 'data')))
store = FSStore(DATA_DIR)

settings_service = SettingsService(store)
universe_service = UniverseService(store)
story_service = StoryService(store, universe_service)
chat_service = ChatService(store)

frontend_port = os.getenv('WEBNOVEL_FRONTEND_PORT', '5173')
allowed_origins = [
    f'http://127.0.0.1:{frontend_port}',
    f'http://localhost:{frontend_port}',
    'http://127.0.0.1:5173',
    'http://localhost:5173',
]

app = FastAPI(title='Webnovel Studio API')
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(health.router)
app.include_router(schema.router)
app.include_router(migrate.router)
app.include_router(stories.router)
app.include_router(universes.router)
app.include_router(config_app.router)
