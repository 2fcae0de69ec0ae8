"""
Tests for the streaming tool-calling loop (ToolCallingAgent.run_stream).
"""

import asyncio
import copy
import json

from chat_orchestration import (
    GENERIC_ERROR_MESSAGE,
    MAX_ITERATIONS_MESSAGE,
    AgentConfig,
    ToolCallingAgent,
    ToolDefinition,
    TurnContext,
)
from chat_orchestration.chunks import ChunkEmitter, content_chunk, done_chunk
from errors import LLMError
from fakes import ChunkRecorder, FakeLLMClient, text_reply, tool_reply

SEARCH = ToolDefinition(name="search", description="Search", parameters={"query": {"type": "string"}})
RENDER = ToolDefinition(name="render", description="Render")


def make_agent(client, **kwargs):
    config = AgentConfig(system_prompt="Stream test agent.", tools=(SEARCH, RENDER), model="m", name="stream_assistant")
    agent = ToolCallingAgent(config, client=client, **kwargs)
    agent.register_tool("search", lambda args, ctx: {"products": [args.get("query")], "count": 1}, ui_descriptor="Searching")
    agent.register_tool("render", lambda args, ctx: {"ui_action": "show_list", "data_source": "search", "success": True})
    return agent


SEARCH_AND_RENDER = [
    tool_reply(("call_1", "search", {"query": "red shirts"}), content="Let me look."),
    tool_reply(("call_2", "render", {"action": "show_list"})),
    text_reply("Here are some red shirts."),
]


class TestStreamingChunks:
    """Chunk sequence for a successful turn."""

    def test_text_only(self):
        client = FakeLLMClient([text_reply("Hello shopper")], chunk_size=5)
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client).run_stream("Hi", TurnContext(), recorder))

        assert recorder.types == ["content", "content", "content", "done"]
        assert recorder.text == "Hello shopper"
        done = recorder.chunks[-1]
        assert done == {"type": "done", "content": "Hello shopper", "done": True}
        assert all(c["done"] is False for c in recorder.chunks[:-1])
        assert client.calls[0]["mode"] == "stream"

    def test_tool_chunks_order(self):
        client = FakeLLMClient(copy.deepcopy(SEARCH_AND_RENDER))
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client).run_stream("red shirts", TurnContext(), recorder))

        non_content = [t for t in recorder.types if t != "content"]
        assert non_content == ["tool_call", "tool_result", "tool_call", "tool_result", "done"]

        first_call = recorder.of_type("tool_call")[0]
        assert first_call["tool_name"] == "search"
        assert first_call["ui_descriptor"] == "Searching"
        assert json.loads(first_call["arguments"]) == {"query": "red shirts"}
        assert recorder.of_type("tool_call")[1]["ui_descriptor"] is None

        first_result = recorder.of_type("tool_result")[0]
        assert first_result["result"] == {"products": ["red shirts"], "count": 1}

        # Content from the tool-calling reply is streamed before its tool chunks
        assert recorder.types.index("content") < recorder.types.index("tool_call")

    def test_done_carries_ui_context(self):
        client = FakeLLMClient(copy.deepcopy(SEARCH_AND_RENDER))
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client).run_stream("red shirts", TurnContext(), recorder))

        done = recorder.of_type("done")[0]
        assert done["content"] == "Here are some red shirts."
        assert done["ui_context"] == {
            "action": "show_list",
            "data": {"products": ["red shirts"], "count": 1},
            "source_tool": "search",
        }

    def test_async_callback(self):
        client = FakeLLMClient([text_reply("ok")])
        received = []

        async def on_chunk(chunk):
            await asyncio.sleep(0)
            received.append(chunk["type"])

        asyncio.run(make_agent(client).run_stream("Hi", TurnContext(), on_chunk))

        assert received[-1] == "done"

    def test_split_arguments_reassembled(self):
        """One-character fragments still dispatch the right arguments."""
        client = FakeLLMClient(copy.deepcopy(SEARCH_AND_RENDER), chunk_size=1)
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client).run_stream("red shirts", TurnContext(), recorder))

        assert recorder.of_type("tool_result")[0]["result"]["products"] == ["red shirts"]


class TestModeEquivalence:
    """Blocking and streaming runs produce the same conversation log."""

    def test_same_messages_and_content(self):
        blocking_client = FakeLLMClient(copy.deepcopy(SEARCH_AND_RENDER))
        streaming_client = FakeLLMClient(copy.deepcopy(SEARCH_AND_RENDER), chunk_size=2)
        blocking_context = TurnContext(session_id="s")
        streaming_context = TurnContext(session_id="s")
        recorder = ChunkRecorder()

        result = asyncio.run(make_agent(blocking_client).run("red shirts", blocking_context))
        asyncio.run(make_agent(streaming_client).run_stream("red shirts", streaming_context, recorder))

        assert streaming_context.messages == blocking_context.messages
        done = recorder.of_type("done")[0]
        assert done["content"] == result["content"]
        assert done["ui_context"] == result["ui_context"]
        assert [c["messages"] for c in streaming_client.calls] == [c["messages"] for c in blocking_client.calls]


class TestStreamingFailures:
    """Turn-terminal failures become exactly one error chunk."""

    def test_max_iterations(self):
        client = FakeLLMClient(default=tool_reply(("c", "search", {"query": "x"})))
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client).run_stream("loop", TurnContext(), recorder))

        assert client.call_count == 10
        assert recorder.of_type("error") == [{"type": "error", "error": MAX_ITERATIONS_MESSAGE, "done": True}]
        assert recorder.of_type("done") == []
        assert recorder.types[-1] == "error"

    def test_timeout(self):
        client = FakeLLMClient([text_reply("slow reply")], delay=0.5)
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client, timeout=0.05).run_stream("Hi", TurnContext(), recorder))

        assert recorder.types == ["error"]
        assert recorder.chunks[0]["error"] == GENERIC_ERROR_MESSAGE

    def test_provider_error_is_user_safe(self):
        client = FakeLLMClient([LLMError("secret upstream detail: 502 from 10.0.0.3")])
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client).run_stream("Hi", TurnContext(), recorder))

        assert recorder.types == ["error"]
        assert recorder.chunks[0]["error"] == GENERIC_ERROR_MESSAGE
        assert "10.0.0.3" not in json.dumps(recorder.chunks)

    def test_error_mid_stream(self):
        client = FakeLLMClient([[
            {"content": "Part", "tool_calls": None, "finish_reason": None},
            RuntimeError("connection reset"),
        ]])
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client).run_stream("Hi", TurnContext(), recorder))

        assert recorder.types == ["content", "error"]

    def test_tool_errors_do_not_end_turn(self):
        client = FakeLLMClient([tool_reply(("c", "missing_tool", {})), text_reply("Recovered")])
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client).run_stream("Hi", TurnContext(), recorder))

        assert recorder.of_type("tool_result")[0]["result"] == {"error": "Tool not found: missing_tool"}
        assert recorder.types[-1] == "done"


class TestCancellation:
    """Cancelled turns stop forwarding chunks and stop calling the provider."""

    def test_cancel_during_content(self):
        client = FakeLLMClient(copy.deepcopy(SEARCH_AND_RENDER), chunk_size=2)
        context = TurnContext()
        received = []

        def on_chunk(chunk):
            received.append(chunk)
            context.cancel()

        asyncio.run(make_agent(client).run_stream("red shirts", context, on_chunk))

        assert len(received) == 1
        assert received[0]["type"] == "content"
        assert client.call_count == 1

    def test_cancel_after_tool_call(self):
        client = FakeLLMClient(copy.deepcopy(SEARCH_AND_RENDER))
        context = TurnContext()
        received = []

        def on_chunk(chunk):
            received.append(chunk["type"])
            if chunk["type"] == "tool_call":
                context.cancel()

        asyncio.run(make_agent(client).run_stream("red shirts", context, on_chunk))

        assert received[-1] == "tool_call"
        assert "done" not in received
        assert client.call_count == 1

    def test_skipped_calls_answered_in_log(self):
        """Every call in the logged assistant message has a tool message, even when skipped."""
        client = FakeLLMClient([tool_reply(("c0", "search", {"query": "red"}), ("c1", "render", {"action": "show_list"}))])
        context = TurnContext()
        handled = []
        agent = make_agent(client)
        agent.register_tool("render", lambda args, ctx: handled.append("render") or {"success": True})

        def on_chunk(chunk):
            if chunk["type"] == "tool_call":
                context.cancel()

        asyncio.run(agent.run_stream("red shirts", context, on_chunk))

        assistant = next(m for m in context.messages if m.get("tool_calls"))
        asked = [tc["id"] for tc in assistant["tool_calls"]]
        tool_messages = [m for m in context.messages if m["role"] == "tool"]
        assert asked == ["c0", "c1"]
        assert [m["tool_call_id"] for m in tool_messages] == asked
        assert json.loads(tool_messages[1]["content"]) == {"error": "Cancelled"}
        assert handled == []
        assert client.call_count == 1

    def test_cancelled_before_start(self):
        client = FakeLLMClient([text_reply("never seen")])
        context = TurnContext()
        context.cancel()
        recorder = ChunkRecorder()

        asyncio.run(make_agent(client).run_stream("Hi", context, recorder))

        assert recorder.chunks == []


class TestChunkEmitter:
    """Chunk delivery rules independent of the agent loop."""

    def test_closed_after_terminal_chunk(self):
        recorder = ChunkRecorder()
        emitter = ChunkEmitter(recorder, TurnContext())

        assert emitter.closed is False
        assert asyncio.run(emitter.emit(done_chunk("bye"))) is True
        assert emitter.closed is True
        assert asyncio.run(emitter.emit(content_chunk("late"))) is False
        assert recorder.types == ["done"]

    def test_closed_when_cancelled(self):
        recorder = ChunkRecorder()
        context = TurnContext()
        emitter = ChunkEmitter(recorder, context)

        context.cancel()

        assert emitter.closed is True
        assert asyncio.run(emitter.emit(content_chunk("x"))) is False
        assert recorder.chunks == []
