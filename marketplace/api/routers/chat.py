"""Chat API endpoints.

Provides endpoints for one-to-one messaging:
- GET /chat/token - pub/sub token request for the caller
- POST /chat/messages - send a message
- GET /chat/conversations - the caller's conversations
- GET /chat/conversations/user/{participantId} - conversation with a user
- GET /chat/conversations/{id}/messages - messages of a conversation
- PUT /chat/conversations/{id}/read - mark a conversation as read
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, status

from marketplace.api.dependencies import CurrentUser
from marketplace.api.schemas import (
    ConversationPageSchema,
    ConversationSchema,
    DataResponse,
    ErrorResponse,
    MessagePageSchema,
    MessageSchema,
    ParticipantSchema,
    ReadReceiptSchema,
    SendMessageRequest,
)
from marketplace.application import ChatService
from marketplace.application.chat_service import (
    ConversationView,
    MessageView,
    participant_payload,
)

router = APIRouter(
    prefix="/chat",
    tags=["Chat"],
    responses={401: {"model": ErrorResponse, "description": "Unauthorized"}},
)

PARTICIPANT_RESPONSES = {
    403: {"model": ErrorResponse, "description": "Not a participant"},
    404: {"model": ErrorResponse, "description": "Conversation not found"},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> ChatService:
    """Get chat service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.chat_service(request_id=request_id)


Service = Annotated[ChatService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def message_to_schema(view: MessageView) -> MessageSchema:
    """Convert MessageView to MessageSchema."""
    return MessageSchema.model_validate(view.to_payload())


def conversation_to_schema(view: ConversationView) -> ConversationSchema:
    """Convert ConversationView to ConversationSchema."""
    conversation = view.conversation
    return ConversationSchema(
        id=conversation.id,
        participants=[
            ParticipantSchema.model_validate(participant_payload(pid, view.participants.get(pid)))
            for pid in conversation.participants
        ],
        last_message=conversation.last_message,
        last_message_at=conversation.last_message_at,
        unread_count=view.unread_count,
        metadata=conversation.metadata,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "/token",
    response_model=DataResponse[dict[str, Any]],
    summary="Get pub/sub token request",
    description="Signed token request scoped to the caller's chat channels.",
)
async def get_token_request(user: CurrentUser, service: Service) -> DataResponse[dict[str, Any]]:
    """Issue a token request for the caller."""
    return DataResponse[dict[str, Any]](data=await service.generate_token(user.id))


@router.post(
    "/messages",
    response_model=DataResponse[MessageSchema],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid message"}},
    summary="Send message",
)
async def send_message(
    body: SendMessageRequest, user: CurrentUser, service: Service
) -> DataResponse[MessageSchema]:
    """Send a message, opening the conversation on first contact."""
    view = await service.send_message(
        sender_id=user.id,
        receiver_id=body.receiver_id,
        content=body.content,
        type=body.type or "text",
        metadata=body.metadata,
    )
    return DataResponse[MessageSchema](data=message_to_schema(view))


@router.get(
    "/conversations",
    response_model=DataResponse[ConversationPageSchema],
    summary="List my conversations",
)
async def list_conversations(
    user: CurrentUser,
    service: Service,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    skip: Annotated[int, Query(ge=0)] = 0,
) -> DataResponse[ConversationPageSchema]:
    """List the caller's conversations, most recent first."""
    page = await service.get_user_conversations(user.id, limit=limit, offset=skip)
    return DataResponse[ConversationPageSchema](
        data=ConversationPageSchema(
            conversations=[conversation_to_schema(c) for c in page.conversations],
            total=page.total,
            has_more=page.has_more,
        )
    )


@router.get(
    "/conversations/user/{participant_id}",
    response_model=DataResponse[ConversationSchema],
    responses={400: {"model": ErrorResponse, "description": "Conversation with yourself"}},
    summary="Get conversation with user",
)
async def get_conversation_with(
    participant_id: str, user: CurrentUser, service: Service
) -> DataResponse[ConversationSchema]:
    """Get or open the conversation between the caller and another user."""
    view = await service.get_conversation_by_participant(user.id, participant_id)
    return DataResponse[ConversationSchema](data=conversation_to_schema(view))


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=DataResponse[MessagePageSchema],
    responses=PARTICIPANT_RESPONSES,
    summary="List conversation messages",
)
async def list_messages(
    conversation_id: str,
    user: CurrentUser,
    service: Service,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    skip: Annotated[int, Query(ge=0)] = 0,
) -> DataResponse[MessagePageSchema]:
    """List messages of a conversation, oldest first."""
    page = await service.get_conversation_messages(
        conversation_id, user.id, limit=limit, offset=skip
    )
    return DataResponse[MessagePageSchema](
        data=MessagePageSchema(
            messages=[message_to_schema(m) for m in page.messages],
            total=page.total,
            has_more=page.has_more,
        )
    )


@router.put(
    "/conversations/{conversation_id}/read",
    response_model=DataResponse[ReadReceiptSchema],
    responses=PARTICIPANT_RESPONSES,
    summary="Mark conversation as read",
)
async def mark_conversation_read(
    conversation_id: str, user: CurrentUser, service: Service
) -> DataResponse[ReadReceiptSchema]:
    """Mark the messages the caller received as read."""
    receipt = await service.mark_as_read(conversation_id, user.id)
    return DataResponse[ReadReceiptSchema](
        data=ReadReceiptSchema(success=receipt.success, updated_count=receipt.updated_count)
    )
