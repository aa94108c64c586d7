"""Tests for the chat service."""

import pytest

from marketplace.application import ChatService
from marketplace.application.chat_service import (
    chat_capabilities,
    conversation_channel,
    private_channel,
)
from marketplace.domain import BadRequestError, ForbiddenError, MessageStatus, NotFoundError, User
from marketplace.infrastructure.memory import (
    InMemoryChatRepository,
    InMemoryConversationRepository,
    InMemoryMessageRepository,
    InMemoryUserRepository,
)


@pytest.fixture
def chat_repo() -> InMemoryChatRepository:
    return InMemoryChatRepository()


@pytest.fixture
def message_repo() -> InMemoryMessageRepository:
    return InMemoryMessageRepository()


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def service(chat_repo, message_repo, user_repo) -> ChatService:
    return ChatService(InMemoryConversationRepository(), message_repo, user_repo, chat_repo)


class TestSendMessage:
    """Tests for ChatService.send_message."""

    @pytest.mark.asyncio
    async def test_first_message_opens_conversation(self, service, user_repo) -> None:
        """The first message creates the conversation and bumps the receiver's counter."""
        await user_repo.create(User.create(id="alice", name="Alice"))

        view = await service.send_message("alice", "bob", "hello")

        page = await service.get_user_conversations("bob")
        assert page.total == 1
        conversation = page.conversations[0]
        assert conversation.conversation.id == view.message.conversation_id
        assert conversation.unread_count == 1
        assert conversation.conversation.last_message == view.message.id
        assert view.sender.name == "Alice"
        assert view.receiver is None

    @pytest.mark.asyncio
    async def test_reuses_conversation(self, service) -> None:
        """Replies land in the same conversation."""
        first = await service.send_message("alice", "bob", "hello")
        reply = await service.send_message("bob", "alice", "hi")

        assert first.message.conversation_id == reply.message.conversation_id

    @pytest.mark.asyncio
    async def test_publishes_to_channels(self, service, chat_repo) -> None:
        """Messages go to the conversation channel and the receiver's private channel."""
        view = await service.send_message("alice", "bob", "hello")
        conversation_id = view.message.conversation_id

        channels = [channel for channel, _ in chat_repo.published]
        assert channels == [conversation_channel(conversation_id), private_channel("bob")]

        payload = chat_repo.published[0][1]
        assert payload["content"] == "hello"
        assert payload["sender"] == {"id": "alice"}
        notification = chat_repo.published[1][1]
        assert notification["type"] == "new_message"
        assert notification["conversationId"] == conversation_id
        assert notification["message"] == payload

    @pytest.mark.asyncio
    async def test_requires_receiver_and_content(self, service) -> None:
        """Receiver and content are required."""
        with pytest.raises(BadRequestError, match="Receiver ID and content are required"):
            await service.send_message("alice", "", "hello")

    @pytest.mark.asyncio
    async def test_cannot_message_self(self, service) -> None:
        """Users cannot write to themselves."""
        with pytest.raises(BadRequestError, match="yourself"):
            await service.send_message("alice", "alice", "hello")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("content", "type", "match"),
        [
            ("   ", "text", "content is required"),
            ("hi", "video", "text, image, file"),
            ("x" * 5001, "text", "5000"),
        ],
    )
    async def test_invalid_message_stores_nothing(
        self, service, chat_repo, content: str, type: str, match: str
    ) -> None:
        """Rejected messages leave nothing stored or published."""
        with pytest.raises(BadRequestError, match=match):
            await service.send_message("alice", "bob", content, type=type)

        assert await service.conversation_repo.find_by_participants("alice", "bob") is None
        assert await service.conversation_repo.find_by_user_id("alice") == ([], 0)
        assert chat_repo.published == []

    @pytest.mark.asyncio
    async def test_longest_message_accepted(self, service) -> None:
        """Content of exactly 5000 characters is accepted."""
        view = await service.send_message("alice", "bob", "x" * 5000, type="image")

        assert view.message.type.value == "image"


class TestReadState:
    """Tests for reading conversations."""

    @pytest.mark.asyncio
    async def test_mark_as_read(self, service, chat_repo, message_repo) -> None:
        """Marking read resets the counter and notifies the other participant."""
        view = await service.send_message("alice", "bob", "one")
        await service.send_message("alice", "bob", "two")
        conversation_id = view.message.conversation_id

        receipt = await service.mark_as_read(conversation_id, "bob")

        assert receipt.updated_count == 2
        assert receipt.success
        page = await service.get_user_conversations("bob")
        assert page.conversations[0].unread_count == 0
        messages, _ = await message_repo.find_by_conversation_id(conversation_id)
        assert {m.status for m in messages} == {MessageStatus.READ}
        assert chat_repo.published[-1] == (
            private_channel("alice"),
            {"type": "messages_read", "conversationId": conversation_id, "readBy": "bob"},
        )

    @pytest.mark.asyncio
    async def test_mark_as_read_requires_participant(self, service) -> None:
        """Outsiders cannot touch a conversation."""
        view = await service.send_message("alice", "bob", "hello")

        with pytest.raises(ForbiddenError):
            await service.mark_as_read(view.message.conversation_id, "mallory")

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, service) -> None:
        """Missing conversations are not found."""
        with pytest.raises(NotFoundError, match="Conversation not found"):
            await service.get_conversation_messages("missing", "alice")

    @pytest.mark.asyncio
    async def test_messages_oldest_first_with_window(self, service) -> None:
        """Messages are ordered oldest first and paged by limit and offset."""
        view = await service.send_message("alice", "bob", "one")
        await service.send_message("bob", "alice", "two")
        await service.send_message("alice", "bob", "three")

        page = await service.get_conversation_messages(
            view.message.conversation_id, "alice", limit=2, offset=0
        )

        assert [v.message.content for v in page.messages] == ["one", "two"]
        assert page.total == 3
        assert page.has_more

    @pytest.mark.asyncio
    async def test_conversation_by_participant_is_idempotent(self, service) -> None:
        """Opening the same pair twice yields one conversation."""
        first = await service.get_conversation_by_participant("alice", "bob")
        second = await service.get_conversation_by_participant("bob", "alice")

        assert first.conversation.id == second.conversation.id
        assert set(first.participants) == {"alice", "bob"}


class TestToken:
    """Tests for pub/sub token requests."""

    @pytest.mark.asyncio
    async def test_token_scoped_to_caller(self, service) -> None:
        """Capabilities include the caller's private channel."""
        token = await service.generate_token("alice")

        assert token["clientId"] == "alice"
        assert token["capability"] == chat_capabilities("alice")
        assert "private:alice" in token["capability"]
        assert token["ttl"] == 3_600_000
