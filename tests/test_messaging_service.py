"""Unit tests for MessagingService — conversations, unread counters, deletion and blocking."""
import uuid

import pytest
import pytest_asyncio
from sqlalchemy import select

from app.exceptions import Conflict, NotFound
from app.models.messaging import Message
from app.services.messaging_service import MessagingService


@pytest.fixture
def service():
    return MessagingService()


@pytest_asyncio.fixture
async def pair(make_user):
    client = await make_user(role="client", first_name="Cal")
    companion = await make_user(role="companion", first_name="Cora")
    return client, companion


@pytest_asyncio.fixture
async def conversation(service, db, pair):
    client, companion = pair
    return await service.create_conversation(db, client.id, companion.id, "Hi there")


class TestCreateConversation:

    @pytest.mark.asyncio
    async def test_seeds_first_message_and_unread(self, service, db, pair, conversation):
        client, companion = pair

        assert conversation.unread_for(companion.id) == 1
        assert conversation.unread_for(client.id) == 0
        assert conversation.last_message["content"] == "Hi there"
        assert conversation.last_message["sender_id"] == str(client.id)
        assert {u.id for u in conversation.participants} == {client.id, companion.id}

        messages = (await db.execute(select(Message))).scalars().all()
        assert [(m.sender_id, m.recipient_id) for m in messages] == [(client.id, companion.id)]

    @pytest.mark.asyncio
    async def test_duplicate_reports_existing_id(self, service, db, pair, conversation):
        client, companion = pair

        with pytest.raises(Conflict) as exc:
            await service.create_conversation(db, companion.id, client.id, "Hello again")

        assert exc.value.to_dict() == {
            "message": "Conversation already exists",
            "conversation_id": str(conversation.id),
        }

    @pytest.mark.asyncio
    async def test_unknown_recipient(self, service, db, pair):
        client, _ = pair
        with pytest.raises(NotFound) as exc:
            await service.create_conversation(db, client.id, uuid.uuid4(), "Anyone?")
        assert exc.value.message == "Recipient not found"


class TestMessages:

    @pytest.mark.asyncio
    async def test_send_updates_summary_and_recipient_counter(self, service, db, pair, conversation):
        client, companion = pair

        await service.send_message(db, conversation.id, client.id, "Are you free Friday?")
        message = await service.send_message(db, conversation.id, companion.id, "Yes!", ["pic.jpg"])

        assert message.recipient_id == client.id
        assert message.attachments == ["pic.jpg"]
        assert conversation.last_message["content"] == "Yes!"
        assert conversation.unread_for(companion.id) == 2
        assert conversation.unread_for(client.id) == 1

    @pytest.mark.asyncio
    async def test_outsider_cannot_send(self, service, db, make_user, conversation):
        outsider = await make_user()
        with pytest.raises(NotFound):
            await service.send_message(db, conversation.id, outsider.id, "Let me in")

    @pytest.mark.asyncio
    async def test_reading_clears_only_reader_counter(self, service, db, pair, conversation):
        client, companion = pair
        await service.send_message(db, conversation.id, companion.id, "Reply")

        page = await service.get_messages(db, conversation.id, companion.id)

        assert [m.content for m in page["messages"]] == ["Reply", "Hi there"]
        assert page["pagination"]["total_count"] == 2
        assert conversation.unread_for(companion.id) == 0
        assert conversation.unread_for(client.id) == 1

        stmt = select(Message).where(Message.recipient_id == companion.id)
        inbound = (await db.execute(stmt)).scalars().all()
        assert all(m.read_at is not None for m in inbound)

    @pytest.mark.asyncio
    async def test_mark_as_read(self, service, db, pair, conversation):
        _, companion = pair
        await service.mark_as_read(db, conversation.id, companion.id)
        assert conversation.unread_for(companion.id) == 0

    @pytest.mark.asyncio
    async def test_unread_total(self, service, db, make_user, pair, conversation):
        client, companion = pair
        other = await make_user(role="client")
        await service.create_conversation(db, other.id, companion.id, "Hey")
        await service.send_message(db, conversation.id, client.id, "Ping")

        assert await service.unread_count(db, companion.id) == 3
        assert await service.unread_count(db, client.id) == 0


class TestDeletion:

    @pytest.mark.asyncio
    async def test_delete_hides_for_caller_only(self, service, db, pair, conversation):
        client, companion = pair

        removed = await service.delete_conversation(db, conversation.id, client.id)

        assert removed is False
        assert await service.list_conversations(db, client.id) == []
        assert [c.id for c in await service.list_conversations(db, companion.id)] == [conversation.id]
        with pytest.raises(NotFound):
            await service.get_conversation(db, conversation.id, client.id)

    @pytest.mark.asyncio
    async def test_new_message_restores_for_recipient(self, service, db, pair, conversation):
        client, companion = pair
        await service.delete_conversation(db, conversation.id, client.id)

        await service.send_message(db, conversation.id, companion.id, "Still there?")

        assert [c.id for c in await service.list_conversations(db, client.id)] == [conversation.id]

    @pytest.mark.asyncio
    async def test_deleted_by_both_removes_row_keeps_messages(self, service, db, pair, conversation):
        client, companion = pair
        await service.delete_conversation(db, conversation.id, client.id)

        removed = await service.delete_conversation(db, conversation.id, companion.id)

        assert removed is True
        assert await service.list_conversations(db, companion.id) == []
        messages = (await db.execute(select(Message))).scalars().all()
        assert len(messages) == 1
        assert messages[0].conversation_id is None
        assert messages[0].is_deleted is True

    @pytest.mark.asyncio
    async def test_recreate_after_caller_deleted(self, service, db, pair, conversation):
        client, companion = pair
        await service.delete_conversation(db, conversation.id, client.id)

        fresh = await service.create_conversation(db, client.id, companion.id, "Starting over")

        assert fresh.id != conversation.id


class TestBlocking:

    @pytest.mark.asyncio
    async def test_block_stops_both_directions(self, service, db, pair, conversation):
        client, companion = pair
        await service.block(db, conversation.id, companion.id)

        assert conversation.is_blocked is True
        assert conversation.blocked_by == companion.id
        for sender in (client, companion):
            with pytest.raises(NotFound) as exc:
                await service.send_message(db, conversation.id, sender.id, "Hello?")
            assert exc.value.message == "Conversation not found or blocked"

    @pytest.mark.asyncio
    async def test_only_blocker_can_unblock(self, service, db, pair, conversation):
        client, companion = pair
        await service.block(db, conversation.id, companion.id)

        with pytest.raises(NotFound) as exc:
            await service.unblock(db, conversation.id, client.id)
        assert exc.value.message == "Conversation not found or not blocked by you"

        await service.unblock(db, conversation.id, companion.id)
        assert conversation.is_blocked is False
        assert conversation.blocked_by is None
        await service.send_message(db, conversation.id, client.id, "Thanks")
