"""
End-to-end functional tests for branching conversations.

Each test drives the public API only: create a conversation, chat, fork,
chat on the fork and clean up.
"""

import pytest
from fastapi import status
from httpx import AsyncClient


async def _chat(client: AsyncClient, conversation_id: str, branch_id: str, content: str) -> dict:
    response = await client.post(
        "/api/chat",
        json={"conversationId": conversation_id, "branchId": branch_id, "content": content},
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


async def _messages(client: AsyncClient, conversation_id: str, branch_id: str) -> list[dict]:
    response = await client.get(f"/api/conversations/{conversation_id}/messages", params={"branchId": branch_id})
    assert response.status_code == status.HTTP_200_OK
    return response.json()["data"]["messages"]


class TestBranchingWorkflows:
    """End-to-end tests for fork and thread workflows."""

    @pytest.mark.asyncio
    async def test_fork_after_first_reply_workflow(self, authenticated_client: AsyncClient):
        """Chat on main, fork at the reply and continue on both branches independently."""

        # Step 1: Configure the API key and create a conversation
        await authenticated_client.post("/api/settings/api-key", json={"apiKey": "sk-test"})
        created = await authenticated_client.post("/api/conversations")
        assert created.status_code == status.HTTP_201_CREATED
        conversation_id = created.json()["data"]["id"]
        main_id = created.json()["data"]["main_branch"]["id"]

        # Step 2: First turn titles the conversation
        turn = await _chat(authenticated_client, conversation_id, main_id, "Hello")
        assert turn["conversation_title"] == "Hello"

        # Step 3: Fork at the assistant reply
        fork_response = await authenticated_client.post(
            "/api/fork",
            json={
                "conversationId": conversation_id,
                "parentMessageId": turn["assistant_message"]["id"],
                "name": "ideas",
            },
        )
        assert fork_response.status_code == status.HTTP_201_CREATED
        ideas_id = fork_response.json()["data"]["id"]

        # Step 4: The fork inherits both messages
        inherited = await _messages(authenticated_client, conversation_id, ideas_id)
        assert [m["content"] for m in inherited] == ["Hello", "reply 1"]

        # Step 5: Chat on the fork
        await _chat(authenticated_client, conversation_id, ideas_id, "Give me ideas")
        ideas_messages = await _messages(authenticated_client, conversation_id, ideas_id)
        assert len(ideas_messages) == 4
        assert [m["role"] for m in ideas_messages] == ["user", "assistant", "user", "assistant"]

        # Step 6: Main is untouched
        main_messages = await _messages(authenticated_client, conversation_id, main_id)
        assert [m["content"] for m in main_messages] == ["Hello", "reply 1"]

        # Step 7: Continuing main does not leak into the fork
        await _chat(authenticated_client, conversation_id, main_id, "Back on main")
        assert len(await _messages(authenticated_client, conversation_id, ideas_id)) == 4
        assert len(await _messages(authenticated_client, conversation_id, main_id)) == 4

        # Step 8: Title stays from the first message
        detail = await authenticated_client.get(f"/api/conversations/{conversation_id}")
        assert detail.json()["data"]["title"] == "Hello"
        assert {b["name"] for b in detail.json()["data"]["branches"]} == {"main", "ideas"}

    @pytest.mark.asyncio
    async def test_fork_of_fork_workflow(self, authenticated_client: AsyncClient):
        """A fork taken at an inherited message sees only the ancestor prefix."""

        await authenticated_client.post("/api/settings/api-key", json={"apiKey": "sk-test"})
        created = await authenticated_client.post("/api/conversations", json={"title": "Nested"})
        conversation_id = created.json()["data"]["id"]
        main_id = created.json()["data"]["main_branch"]["id"]

        first = await _chat(authenticated_client, conversation_id, main_id, "one")
        second = await _chat(authenticated_client, conversation_id, main_id, "two")

        # Branch B at the second reply
        branch_b = await authenticated_client.post(
            "/api/fork",
            json={"conversationId": conversation_id, "parentMessageId": second["assistant_message"]["id"]},
        )
        b_id = branch_b.json()["data"]["id"]
        await _chat(authenticated_client, conversation_id, b_id, "on b")

        # Branch C from B at the first reply, which B inherited
        branch_c = await authenticated_client.post(
            "/api/fork",
            json={
                "conversationId": conversation_id,
                "parentMessageId": first["assistant_message"]["id"],
                "branchId": b_id,
                "name": "c",
            },
        )
        assert branch_c.status_code == status.HTTP_201_CREATED
        assert branch_c.json()["data"]["parent_branch_id"] == b_id
        c_id = branch_c.json()["data"]["id"]

        c_messages = await _messages(authenticated_client, conversation_id, c_id)
        assert [m["content"] for m in c_messages] == ["one", "reply 1"]

    @pytest.mark.asyncio
    async def test_thread_workflow(self, authenticated_client: AsyncClient):
        """A thread starts empty and builds its own context."""

        await authenticated_client.post("/api/settings/api-key", json={"apiKey": "sk-test"})
        created = await authenticated_client.post("/api/conversations")
        conversation_id = created.json()["data"]["id"]
        main_id = created.json()["data"]["main_branch"]["id"]
        turn = await _chat(authenticated_client, conversation_id, main_id, "Hello")

        thread = await authenticated_client.post(
            "/api/thread",
            json={
                "conversationId": conversation_id,
                "fromMessageId": turn["user_message"]["id"],
                "name": "Tangent",
            },
        )
        thread_id = thread.json()["data"]["id"]
        await _chat(authenticated_client, conversation_id, thread_id, "New topic")

        thread_messages = await _messages(authenticated_client, conversation_id, thread_id)
        assert [m["content"] for m in thread_messages] == ["New topic", "reply 2"]

    @pytest.mark.asyncio
    async def test_delete_conversation_workflow(self, authenticated_client: AsyncClient):
        """Deleting a conversation removes every branch and message with it."""

        await authenticated_client.post("/api/settings/api-key", json={"apiKey": "sk-test"})
        created = await authenticated_client.post("/api/conversations")
        conversation_id = created.json()["data"]["id"]
        main_id = created.json()["data"]["main_branch"]["id"]
        turn = await _chat(authenticated_client, conversation_id, main_id, "Hello")
        fork = await authenticated_client.post(
            "/api/fork",
            json={"conversationId": conversation_id, "parentMessageId": turn["assistant_message"]["id"]},
        )
        fork_id = fork.json()["data"]["id"]

        deleted = await authenticated_client.delete(f"/api/conversations/{conversation_id}")
        assert deleted.status_code == status.HTTP_200_OK

        for path in (
            f"/api/conversations/{conversation_id}",
            f"/api/conversations/{conversation_id}/messages",
            f"/api/branches/{main_id}",
            f"/api/branches/{fork_id}",
        ):
            response = await authenticated_client.get(path)
            assert response.status_code == status.HTTP_404_NOT_FOUND, path

        chat = await authenticated_client.post(
            "/api/chat",
            json={"conversationId": conversation_id, "branchId": main_id, "content": "Anyone there?"},
        )
        assert chat.status_code == status.HTTP_404_NOT_FOUND
