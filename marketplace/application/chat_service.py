"""Chat application service.

Orchestrates one-to-one conversations:
- Persisting messages and per-participant unread counters
- Fan-out of new messages and read receipts over pub/sub channels
- Issuing pub/sub token requests scoped to the caller's channels
"""

from dataclasses import dataclass
from typing import Any

import structlog

from marketplace.domain.entities import Conversation, Message, User, validate_message
from marketplace.domain.exceptions import BadRequestError, ForbiddenError, NotFoundError
from marketplace.domain.repositories import (
    ChatRepository,
    ConversationRepository,
    MessageRepository,
    UserRepository,
)

logger = structlog.get_logger()

DEFAULT_TOKEN_TTL_MS = 3_600_000


def conversation_channel(conversation_id: str) -> str:
    """Channel carrying the messages of a conversation."""
    return f"chat:{conversation_id}"


def private_channel(user_id: str) -> str:
    """Channel carrying notifications for a single user."""
    return f"private:{user_id}"


def chat_capabilities(user_id: str) -> dict[str, list[str]]:
    """Pub/sub capabilities granted to a chat client."""
    return {
        "chat:*": ["publish", "subscribe", "presence"],
        private_channel(user_id): ["publish", "subscribe"],
        f"user:{user_id}:conversations": ["publish", "subscribe"],
        "conversation:*": ["subscribe"],
    }


# ============================================================================
# Views
# ============================================================================


def participant_payload(user_id: str, user: User | None) -> dict[str, Any]:
    """Basic public info about a participant. Unknown users keep only their id."""
    if user is None:
        return {"id": user_id}
    return {
        "id": user_id,
        "name": user.name,
        "lastName": user.last_name,
        "profilePicUrl": user.profile_pic_url,
        "email": user.email,
        "isApprovedSeller": user.is_approved_seller,
    }


@dataclass(frozen=True)
class MessageView:
    """Message with its sender and receiver profiles."""

    message: Message
    sender: User | None = None
    receiver: User | None = None

    def to_payload(self) -> dict[str, Any]:
        """Render as the JSON payload published to subscribers."""
        message = self.message
        return {
            "id": message.id,
            "conversationId": message.conversation_id,
            "sender": participant_payload(message.sender_id, self.sender),
            "receiver": participant_payload(message.receiver_id, self.receiver),
            "content": message.content,
            "type": message.type.value,
            "status": message.status.value,
            "metadata": message.metadata,
            "createdAt": message.created_at.isoformat(),
            "updatedAt": message.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class ConversationView:
    """Conversation seen by one participant."""

    conversation: Conversation
    viewer_id: str
    participants: dict[str, User | None]

    @property
    def unread_count(self) -> int:
        return self.conversation.unread_for(self.viewer_id)


@dataclass(frozen=True)
class MessagePage:
    """A window of conversation messages."""

    messages: list[MessageView]
    total: int
    has_more: bool


@dataclass(frozen=True)
class ConversationPage:
    """A window of a user's conversations."""

    conversations: list[ConversationView]
    total: int
    has_more: bool


@dataclass(frozen=True)
class ReadReceipt:
    """Outcome of marking a conversation as read."""

    updated_count: int
    success: bool = True


# ============================================================================
# Chat Service
# ============================================================================


class ChatService:
    """Application service for chat."""

    def __init__(
        self,
        conversation_repo: ConversationRepository,
        message_repo: MessageRepository,
        user_repo: UserRepository,
        chat_repo: ChatRepository,
        token_ttl_ms: int = DEFAULT_TOKEN_TTL_MS,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            conversation_repo: Conversation repository.
            message_repo: Message repository.
            user_repo: User profile repository, used for enrichment.
            chat_repo: Pub/sub adapter.
            token_ttl_ms: Lifetime of issued token requests.
            request_id: Request ID for correlation.
        """
        self.conversation_repo = conversation_repo
        self.message_repo = message_repo
        self.user_repo = user_repo
        self.chat_repo = chat_repo
        self.token_ttl_ms = token_ttl_ms
        self.request_id = request_id

    async def send_message(
        self,
        sender_id: str,
        receiver_id: str,
        content: str,
        type: str = "text",
        metadata: dict[str, Any] | None = None,
    ) -> MessageView:
        """Send a message, opening the conversation on first contact.

        The message is published on the conversation channel and a
        ``new_message`` notification on the receiver's private channel.

        Raises:
            BadRequestError: If receiver or content is missing, the message
                is invalid, or the sender writes to themself. Nothing is
                stored in that case.
        """
        if not receiver_id or not content:
            raise BadRequestError("Receiver ID and content are required")
        if receiver_id == sender_id:
            raise BadRequestError("Cannot create conversation with yourself")
        message_type = validate_message(content, type)

        logger.info(
            "Sending message",
            sender_id=sender_id,
            receiver_id=receiver_id,
            type=message_type.value,
            request_id=self.request_id,
        )
        conversation = await self._find_or_create(sender_id, receiver_id)

        message = await self.message_repo.create(
            Message.create(
                conversation_id=conversation.id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                type=message_type,
                metadata=metadata,
            )
        )
        await self.conversation_repo.update_last_message(conversation.id, message.id)
        await self.conversation_repo.increment_unread_count(conversation.id, receiver_id)

        view = MessageView(
            message=message,
            sender=await self.user_repo.find_by_id(sender_id),
            receiver=await self.user_repo.find_by_id(receiver_id),
        )
        payload = view.to_payload()
        await self.chat_repo.publish_message(conversation_channel(conversation.id), payload)
        await self.chat_repo.publish_message(
            private_channel(receiver_id),
            {"type": "new_message", "conversationId": conversation.id, "message": payload},
        )

        logger.info(
            "Message sent",
            message_id=message.id,
            conversation_id=conversation.id,
            request_id=self.request_id,
        )
        return view

    async def mark_as_read(self, conversation_id: str, user_id: str) -> ReadReceipt:
        """Mark the messages a participant received as read.

        Raises:
            NotFoundError: If the conversation does not exist.
            ForbiddenError: If the user is not a participant.
        """
        conversation = await self._get_for_participant(conversation_id, user_id)

        updated = await self.message_repo.mark_as_read(conversation_id, user_id)
        await self.conversation_repo.reset_unread_count(conversation_id, user_id)

        other_id = conversation.other_participant(user_id)
        if other_id:
            await self.chat_repo.publish_message(
                private_channel(other_id),
                {"type": "messages_read", "conversationId": conversation_id, "readBy": user_id},
            )

        logger.info(
            "Messages marked as read",
            conversation_id=conversation_id,
            user_id=user_id,
            updated_count=updated,
            request_id=self.request_id,
        )
        return ReadReceipt(updated_count=updated)

    async def get_user_conversations(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> ConversationPage:
        """List the user's conversations, most recent activity first."""
        conversations, total = await self.conversation_repo.find_by_user_id(
            user_id, limit=limit, offset=offset
        )
        ids = {p for c in conversations for p in c.participants if p != user_id}
        users = await self._load_users(ids)
        views = [
            ConversationView(
                conversation=c,
                viewer_id=user_id,
                participants={p: users.get(p) for p in c.participants},
            )
            for c in conversations
        ]
        return ConversationPage(
            conversations=views, total=total, has_more=offset + len(views) < total
        )

    async def get_conversation_by_participant(
        self, user_id: str, participant_id: str
    ) -> ConversationView:
        """Get or open the conversation between the caller and another user.

        Raises:
            BadRequestError: If the participant is the caller.
        """
        if user_id == participant_id:
            raise BadRequestError("Cannot create conversation with yourself")
        conversation = await self._find_or_create(user_id, participant_id)
        users = await self._load_users(set(conversation.participants))
        return ConversationView(conversation=conversation, viewer_id=user_id, participants=users)

    async def get_conversation_messages(
        self, conversation_id: str, user_id: str, limit: int = 50, offset: int = 0
    ) -> MessagePage:
        """List messages of a conversation, oldest first.

        Raises:
            NotFoundError: If the conversation does not exist.
            ForbiddenError: If the user is not a participant.
        """
        await self._get_for_participant(conversation_id, user_id)
        messages, total = await self.message_repo.find_by_conversation_id(
            conversation_id, limit=limit, offset=offset
        )

        ids = {m.sender_id for m in messages} | {m.receiver_id for m in messages}
        users = await self._load_users(ids)
        views = [
            MessageView(message=m, sender=users.get(m.sender_id), receiver=users.get(m.receiver_id))
            for m in messages
        ]
        logger.debug(
            "Conversation messages retrieved",
            conversation_id=conversation_id,
            message_count=len(views),
            total=total,
            request_id=self.request_id,
        )
        return MessagePage(messages=views, total=total, has_more=offset + len(views) < total)

    async def generate_token(self, user_id: str) -> dict[str, Any]:
        """Issue a pub/sub token request for the caller."""
        return await self.chat_repo.generate_token_request(
            user_id, chat_capabilities(user_id), self.token_ttl_ms
        )

    async def _find_or_create(self, user_id: str, other_id: str) -> Conversation:
        conversation = await self.conversation_repo.find_by_participants(user_id, other_id)
        if conversation is None:
            logger.info(
                "Creating conversation",
                user_id=user_id,
                other_id=other_id,
                request_id=self.request_id,
            )
            conversation = await self.conversation_repo.create(
                Conversation.create(participants=(user_id, other_id))
            )
        return conversation

    async def _get_for_participant(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = await self.conversation_repo.find_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found", details={"id": conversation_id})
        if user_id not in conversation.participants:
            raise ForbiddenError("You are not a participant of this conversation.")
        return conversation

    async def _load_users(self, user_ids: set[str]) -> dict[str, User | None]:
        users: dict[str, User | None] = {}
        for user_id in user_ids:
            user = await self.user_repo.find_by_id(user_id)
            if user is None:
                logger.warning("User not found in database", user_id=user_id)
            users[user_id] = user
        return users
