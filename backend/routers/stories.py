from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse

from services.chat_service import ChatService
from services.story_service import StoryService


def get_stories() -> StoryService:
    from main import story_service

    return story_service


def get_chats() -> ChatService:
    from main import chat_service

    return chat_service


router = APIRouter(prefix="/api/stories")


def _not_found(e: FileNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Not found: {e}")


@router.get("")
def list_stories(svc: StoryService = Depends(get_stories)):
    return svc.list_stories()


@router.post("")
def create_story(body: dict, svc: StoryService = Depends(get_stories)):
    try:
        return svc.create_blank(body.get("language", "en"))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/import")
async def import_story(file: UploadFile = File(...), svc: StoryService = Depends(get_stories)):
    if not (file.filename or "").lower().endswith((".md", ".json", ".txt")):
        raise HTTPException(status_code=400, detail="Only md/json/txt supported")
    raw = (await file.read()).decode("utf-8", errors="ignore")
    try:
        return svc.import_story(raw)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{story_id}")
def get_story(story_id: str, svc: StoryService = Depends(get_stories)):
    try:
        return svc.get_story(story_id)
    except FileNotFoundError as e:
        raise _not_found(e)


@router.put("/{story_id}")
def update_story(story_id: str, story: dict, svc: StoryService = Depends(get_stories)):
    return svc.save_story({**story, "id": story_id})


@router.delete("/{story_id}")
def delete_story(story_id: str, svc: StoryService = Depends(get_stories)):
    if not svc.delete_story(story_id):
        raise HTTPException(status_code=404, detail=f"Not found: {story_id}")
    return {"deleted": True}


@router.get("/{story_id}/export")
def export_story(story_id: str, svc: StoryService = Depends(get_stories)):
    try:
        filename, text = svc.export_story(story_id)
    except FileNotFoundError as e:
        raise _not_found(e)
    return PlainTextResponse(text, media_type="text/markdown", headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@router.post("/{story_id}/chapters")
def add_chapter(story_id: str, svc: StoryService = Depends(get_stories)):
    try:
        return svc.add_chapter(story_id)
    except FileNotFoundError as e:
        raise _not_found(e)


@router.put("/{story_id}/chapters/{chapter_id}")
def update_chapter(story_id: str, chapter_id: str, body: dict, svc: StoryService = Depends(get_stories)):
    try:
        return svc.update_chapter(story_id, chapter_id, body.get("title"), body.get("content"))
    except FileNotFoundError as e:
        raise _not_found(e)


@router.delete("/{story_id}/chapters/{chapter_id}")
def delete_chapter(story_id: str, chapter_id: str, svc: StoryService = Depends(get_stories)):
    try:
        return svc.delete_chapter(story_id, chapter_id)
    except FileNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{story_id}/universe")
def select_universe(story_id: str, body: dict, svc: StoryService = Depends(get_stories)):
    mode = body.get("mode", "universe")
    try:
        if mode == "blank":
            return svc.use_blank_canvas(story_id)
        if mode == "real_world":
            return svc.use_real_world(story_id, bool(body.get("disguise_names", False)))
        if mode == "universe":
            return svc.attach_universe(story_id, str(body.get("universe_id", "")))
    except FileNotFoundError as e:
        raise _not_found(e)
    raise HTTPException(status_code=400, detail="mode must be universe|blank|real_world")


@router.post("/{story_id}/save-as-universe")
def save_as_universe(story_id: str, body: dict, svc: StoryService = Depends(get_stories)):
    try:
        return svc.save_as_universe(story_id, str(body.get("name", "")))
    except FileNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{story_id}/chat")
def list_chat(story_id: str, svc: StoryService = Depends(get_stories), chats: ChatService = Depends(get_chats)):
    try:
        svc.get_story(story_id)
    except FileNotFoundError as e:
        raise _not_found(e)
    return chats.list_messages(story_id)


@router.post("/{story_id}/chat")
def append_chat(story_id: str, body: dict, svc: StoryService = Depends(get_stories), chats: ChatService = Depends(get_chats)):
    try:
        svc.get_story(story_id)
        return chats.append(story_id, str(body.get("author", "")), body.get("text"))
    except FileNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{story_id}/chat")
def clear_chat(story_id: str, svc: StoryService = Depends(get_stories), chats: ChatService = Depends(get_chats)):
    try:
        svc.get_story(story_id)
    except FileNotFoundError as e:
        raise _not_found(e)
    return {"cleared": chats.clear(story_id)}
