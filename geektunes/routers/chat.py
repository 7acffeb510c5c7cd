import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from .. import schemas, dependencies
from ..chat import ChatHub, notify_mentions
from ..config import Settings
from ..exceptions import Forbidden
from ..storage import CatalogRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/chat",
    tags=["Chat"]
)

ws_router = APIRouter(tags=["Chat"])


# [GET] /api/chat/messages
# ----------------------------------------------------
@router.get("/messages", response_model=List[schemas.ChatMessage])
def read_messages(
    storage: CatalogRepository = Depends(dependencies.get_storage),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Chat history, oldest first, each message with its author.
    Clients call this again whenever the socket says ``new_message``.
    """
    return storage.get_chat_messages()


# [POST] /api/chat/messages
# ----------------------------------------------------
@router.post("/messages", response_model=schemas.ChatMessage, status_code=201)
async def post_message(
    body: schemas.ChatMessageCreate,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    settings: Settings = Depends(dependencies.get_settings),
    hub: ChatHub = Depends(dependencies.get_chat_hub),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Post a message (1 to 500 characters after trimming).
    @mentions of other users create notifications for them, then every open
    socket is told to refresh.
    """
    text = body.message.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Message is required")
    if len(text) > settings.chat_message_max_length:
        raise HTTPException(
            status_code=400,
            detail=f"Message too long (max {settings.chat_message_max_length} characters)",
        )

    # storage calls are blocking; keep them off the event loop
    new_message = await run_in_threadpool(storage.create_chat_message, current_user.id, text)
    await run_in_threadpool(notify_mentions, storage, current_user, new_message)

    await hub.notify_new_message()
    return new_message


# [DELETE] /api/chat/messages/{message_id}
# ----------------------------------------------------
@router.delete("/messages/{message_id}", status_code=204)
async def delete_message(
    message_id: int,
    storage: CatalogRepository = Depends(dependencies.get_storage),
    hub: ChatHub = Depends(dependencies.get_chat_hub),
    current_user: schemas.UserInDB = Depends(dependencies.get_current_user),
):
    """
    Hide a message. Allowed for its author and for administrators.
    """
    message = await run_in_threadpool(storage.get_chat_message, message_id)
    if message is None or message.is_deleted:
        raise HTTPException(status_code=404, detail="Message not found")
    if message.user_id != current_user.id and not current_user.is_admin:
        raise Forbidden("Not allowed to delete this message")

    await run_in_threadpool(storage.delete_chat_message, message_id)
    await hub.notify_new_message()
    return Response(status_code=204)


# [WS] /ws
# ----------------------------------------------------
@ws_router.websocket("/ws")
async def chat_socket(websocket: WebSocket):
    """
    Invalidation channel: the server pushes ``{"type": "new_message"}`` and
    ``{"type": "typing", "users": [...]}``; clients may send typing frames.
    """
    hub: ChatHub = websocket.app.state.chat_hub
    await hub.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            await hub.handle_frame(raw)
    except WebSocketDisconnect:
        logger.debug("Client disconnected")
    finally:
        hub.disconnect(websocket)
