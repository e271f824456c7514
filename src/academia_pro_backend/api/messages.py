'''
API endpoints for the per-order messaging panel, including the live
WebSocket stream.

Stream protocol (`/orders/{order_id}/messages/ws?token=...&after=...`):
  server -> {"type": "history", "messages": [...]} once, right after connect
  server -> {"type": "message", "message": {...}} for every new message
  client -> "ping"                       server -> "pong"
  client -> {"message_text": "..."}      sends a message (echoed back as "message")
  server -> {"type": "error", "detail": "..."} when a client frame is rejected

The server subscribes before loading the history and marks every loaded id
as seen, so a message committed in between is delivered exactly once.
Clients reconnect after a drop (or a 1013 close when they fell behind)
passing `after=<id of the last message they have>`.
'''
import asyncio
import json
from typing import Annotated, Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from ..database import models as db_models
from ..models import message as message_models
from ..services.security import verify_token_and_get_user, get_user_from_token
from ..services.user_service import UserService
from ..services.message_service import MessageService
from ..services.realtime import RealtimeBroker, Subscription, get_realtime_broker, order_messages_topic
from ..common.exceptions import SubscriptionOverflowError
from ..common.logger import log


class MessagesAPI:
    """
    REST endpoints plus the WebSocket stream for order messages.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/orders/{order_id}/messages",
            tags=["Messages"]
        )
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/",
                self.open_panel,
                methods=["GET"],
                response_model=List[message_models.MessageRead])

        self.router.add_api_route(
                "/",
                self.send_message,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=message_models.MessageRead)

        self.router.add_api_websocket_route(
                "/ws",
                self.message_stream)

    async def open_panel(
        self,
        order_id: UUID,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        message_service: Annotated[MessageService, Depends(MessageService)],
        after: Optional[UUID] = None
    ) -> List[Any]:
        """
        Messages of the order oldest first; marks the viewer's incoming ones read.
        """
        return await message_service.open_panel(order_id, current_user, after=after)

    async def send_message(
        self,
        order_id: UUID,
        message_data: message_models.MessageCreate,
        current_user: Annotated[db_models.Users, Depends(verify_token_and_get_user)],
        message_service: Annotated[MessageService, Depends(MessageService)]
    ) -> Any:
        return await message_service.send_message(order_id, message_data, current_user)

    # --- WebSocket stream ---

    async def message_stream(
        self,
        websocket: WebSocket,
        order_id: UUID,
        user_service: Annotated[UserService, Depends(UserService)],
        message_service: Annotated[MessageService, Depends(MessageService)],
        broker: Annotated[RealtimeBroker, Depends(get_realtime_broker)],
        token: Optional[str] = None,
        after: Optional[UUID] = None
    ):
        user = await get_user_from_token(token, user_service)
        if user is None:
            log.warning(f"Rejected message stream for order {order_id}: invalid token.")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        subscription = broker.subscribe(order_messages_topic(order_id))
        try:
            try:
                history = await message_service.open_panel(order_id, user, after=after)
            except HTTPException as e:
                log.warning(f"Rejected message stream for order {order_id} and user {user.id}: {e.detail}")
                await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                return

            subscription.mark_seen(*(m.id for m in history))
            await websocket.accept()
            await websocket.send_json({
                "type": "history",
                "messages": [m.model_dump(mode="json") for m in history]
            })
            log.info(f"User {user.id} streaming messages of order {order_id} ({len(history)} in history).")

            await self._run_stream(websocket, subscription, order_id, user, message_service)
        finally:
            subscription.close()

    async def _run_stream(
        self,
        websocket: WebSocket,
        subscription: Subscription,
        order_id: UUID,
        user: db_models.Users,
        message_service: MessageService
    ):
        pump = asyncio.create_task(self._pump_events(websocket, subscription))
        reader = asyncio.create_task(self._read_client(websocket, order_id, user, message_service))
        done, pending = await asyncio.wait({pump, reader}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            exc = task.exception()
            if exc is None or isinstance(exc, WebSocketDisconnect):
                continue
            if isinstance(exc, SubscriptionOverflowError):
                log.warning(f"Message stream of order {order_id} for user {user.id} overflowed; closing with 1013.")
                await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
                continue
            raise exc

        log.info(f"Message stream of order {order_id} for user {user.id} closed.")

    async def _pump_events(self, websocket: WebSocket, subscription: Subscription):
        async for event in subscription:
            await websocket.send_json({"type": "message", "message": event["message"]})

    async def _read_client(
        self,
        websocket: WebSocket,
        order_id: UUID,
        user: db_models.Users,
        message_service: MessageService
    ):
        while True:
            frame = await websocket.receive_text()
            if frame == "ping":
                await websocket.send_text("pong")
                continue
            try:
                data = message_models.MessageCreate.model_validate(json.loads(frame))
                await message_service.send_message(order_id, data, user)
            except (ValueError, ValidationError) as e:
                await websocket.send_json({"type": "error", "detail": str(e)})
            except HTTPException as e:
                await websocket.send_json({"type": "error", "detail": e.detail})

messages_api = MessagesAPI()
router = messages_api.router
