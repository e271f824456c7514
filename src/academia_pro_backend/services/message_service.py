'''
Per-order chat between the student and the tutor.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..models import message as message_models
from ..common.i18n import Translator, get_translator
from ..common.logger import log
from .realtime import RealtimeBroker, get_realtime_broker, order_messages_topic

MESSAGE_CREATED = "message.created"


class MessageService:
    """
    Loads, sends and marks messages for one order, and publishes every new
    message on the order's realtime topic once it is committed.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        broker: Annotated[RealtimeBroker, Depends(get_realtime_broker)],
        translator: Annotated[Translator, Depends(get_translator)]
    ):
        self.db = db
        self.broker = broker
        self.translator = translator

    async def _get_order_for_participant(self, order_id: UUID, current_user: db_models.Users, allow_admin: bool = True) -> db_models.Orders:
        order = await self.db.get(db_models.Orders, order_id)
        if order is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=self.translator.t("orders.not_found")
            )
        if current_user.id in (order.student_id, order.tutor_id):
            return order
        if allow_admin and current_user.role == UserRole.ADMIN.value:
            return order
        log.warning(f"SECURITY: User {current_user.id} tried to access messages of order {order_id}.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=self.translator.t("errors.forbidden")
        )

    async def open_panel(
        self,
        order_id: UUID,
        viewer: db_models.Users,
        after: Optional[UUID] = None
    ) -> list[message_models.MessageRead]:
        """
        Returns the order's messages oldest first (only those newer than the
        `after` message when a cursor is given), then marks every message
        addressed to the viewer as read. The returned list shows the read
        flags as they were before marking.
        """
        log.info(f"User {viewer.id} opening message panel for order {order_id} (after={after})")
        await self._get_order_for_participant(order_id, viewer)

        stmt = select(db_models.Messages).filter(
            db_models.Messages.order_id == order_id
        ).order_by(db_models.Messages.created_at.asc())

        if after is not None:
            cursor = await self.db.get(db_models.Messages, after)
            if cursor is not None and cursor.order_id == order_id:
                stmt = stmt.filter(db_models.Messages.created_at > cursor.created_at)
            else:
                log.warning(f"Unknown message cursor {after} for order {order_id}; returning full history.")

        result = await self.db.execute(stmt)
        messages = [message_models.MessageRead.model_validate(m) for m in result.scalars().all()]

        await self.mark_read(order_id, viewer)
        return messages

    async def mark_read(self, order_id: UUID, viewer: db_models.Users) -> int:
        result = await self.db.execute(
            update(db_models.Messages)
            .where(
                db_models.Messages.order_id == order_id,
                db_models.Messages.receiver_id == viewer.id,
                db_models.Messages.is_read.is_(False)
            )
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.commit()
        if result.rowcount:
            log.info(f"Marked {result.rowcount} messages as read for user {viewer.id} on order {order_id}")
        return result.rowcount

    async def send_message(
        self,
        order_id: UUID,
        data: message_models.MessageCreate,
        sender: db_models.Users
    ) -> message_models.MessageRead:
        """
        Inserts an unread message from the sender to the other party of the
        order, commits it, then publishes it to live panels.
        """
        text = data.message_text.strip()
        if not text:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=self.translator.t("messages.empty")
            )

        order = await self._get_order_for_participant(order_id, sender, allow_admin=False)
        receiver_id = order.tutor_id if sender.id == order.student_id else order.student_id

        message = db_models.Messages(
            order_id=order.id,
            sender_id=sender.id,
            receiver_id=receiver_id,
            message_text=text,
            is_read=False
        )
        self.db.add(message)
        await self.db.commit()

        message_read = message_models.MessageRead.model_validate(message)
        delivered = self.broker.publish(
            order_messages_topic(order.id),
            {"type": MESSAGE_CREATED, "id": str(message_read.id), "message": message_read.model_dump(mode="json")}
        )
        log.info(f"Message {message_read.id} on order {order_id} sent by {sender.id} ({delivered} live subscribers).")
        return message_read

    async def unread_count(self, viewer: db_models.Users) -> message_models.UnreadCount:
        result = await self.db.execute(
            select(func.count(db_models.Messages.id)).filter(
                db_models.Messages.receiver_id == viewer.id,
                db_models.Messages.is_read.is_(False)
            )
        )
        return message_models.UnreadCount(unread=result.scalar_one())
