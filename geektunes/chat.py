"""Chat invalidation channel.

Sockets carry no chat data: when messages change the server pushes
``{"type": "new_message"}`` and clients re-fetch ``GET /api/chat/messages``.
The only other frame is the typing indicator.
"""

import asyncio
import json
import logging
import re
from typing import Dict, List, Set, Tuple

from fastapi import WebSocket, WebSocketDisconnect

from . import schemas
from .storage import CatalogRepository

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@(\w+)")
MENTION_PREVIEW_LENGTH = 50


class ChatHub:
    """Registry of open sockets plus the set of users currently typing."""

    def __init__(self, typing_timeout: float = 2.0):
        self.typing_timeout = typing_timeout
        self.connections: Set[WebSocket] = set()
        self._typing: Dict[str, Tuple[str, asyncio.TimerHandle]] = {}
        # expiry broadcasts in flight
        self._tasks: Set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.connections.add(websocket)
        logger.info("WebSocket connected (%d open)", len(self.connections))

    def disconnect(self, websocket: WebSocket):
        self.connections.discard(websocket)
        logger.info("WebSocket closed (%d open)", len(self.connections))

    async def broadcast(self, payload: dict):
        # fire-and-forget: a socket that fails to take the frame is dropped
        for websocket in list(self.connections):
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.warning("Dropping WebSocket after failed send: %s", e)
                self.disconnect(websocket)

    async def notify_new_message(self):
        await self.broadcast({"type": "new_message"})

    # --- typing indicator ---

    def typing_users(self) -> List[str]:
        return [username for username, _ in self._typing.values()]

    async def broadcast_typing(self):
        await self.broadcast({"type": "typing", "users": self.typing_users()})

    async def set_typing(self, user_id: str, username: str):
        previous = self._typing.pop(user_id, None)
        if previous is not None:
            previous[1].cancel()
        handle = asyncio.get_running_loop().call_later(self.typing_timeout, self._expire_typing, user_id)
        self._typing[user_id] = (username, handle)
        await self.broadcast_typing()

    def _expire_typing(self, user_id: str):
        if self._typing.pop(user_id, None) is not None:
            task = asyncio.ensure_future(self.broadcast_typing())
            self._tasks.add(task)
            task.add_done_callback(self._finish_task)

    def _finish_task(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Typing broadcast failed", exc_info=task.exception())

    async def handle_frame(self, raw: str):
        """
        Process one client frame. Anything malformed is logged and ignored.
        """
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON WebSocket frame")
            return
        if not isinstance(frame, dict):
            logger.warning("Ignoring WebSocket frame that is not an object")
            return

        if frame.get("type") == "typing":
            user_id = frame.get("userId")
            username = frame.get("username")
            if not user_id or not username:
                logger.warning("Ignoring typing frame without userId/username")
                return
            await self.set_typing(str(user_id), str(username))
        else:
            logger.debug("Ignoring WebSocket frame of type %r", frame.get("type"))


# --- mentions ---

def find_mentions(text: str) -> List[str]:
    """Distinct @names in ``text``, in order of appearance."""
    seen = []
    for name in MENTION_PATTERN.findall(text):
        if name not in seen:
            seen.append(name)
    return seen


def notify_mentions(
    storage: CatalogRepository,
    sender: schemas.UserInDB,
    message: schemas.ChatMessage,
) -> List[schemas.Notification]:
    """
    Create a ``mention`` notification for every other user named in the message,
    by username or by the name of an artist profile they own.
    """
    names = find_mentions(message.message)
    if not names:
        return []

    artists_by_name = {a.name: a for a in storage.get_all_artists() if a.user_id}
    if len(message.message) > MENTION_PREVIEW_LENGTH:
        preview = message.message[:MENTION_PREVIEW_LENGTH] + "..."
    else:
        preview = message.message

    created = []
    notified = set()
    for name in names:
        target_id = None
        mentioned_user = storage.get_user_by_username(name)
        if mentioned_user is not None:
            target_id = mentioned_user.id
        elif name in artists_by_name:
            target_id = artists_by_name[name].user_id

        # no self-mentions, one notification per target
        if target_id is None or target_id == sender.id or target_id in notified:
            continue
        notified.add(target_id)
        created.append(storage.create_notification(schemas.NotificationCreate(
            title="You were mentioned in the chat",
            message=f'{sender.username} mentioned you: "{preview}"',
            type="mention",
            user_id=target_id,
            target_type="specific_user",
            related_message_id=message.id,
        )))
    logger.info("Message %s mentioned %d user(s)", message.id, len(created))
    return created
