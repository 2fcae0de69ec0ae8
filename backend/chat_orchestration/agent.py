"""
ShopTalk Tool-Calling Agent - Bounded iterate / call tools / append loop

One ToolCallingAgent per domain, built once and shared by every
conversation. All per-turn state lives in the TurnContext and in locals of
run() / run_stream().

Loop (both modes):
1. system prompt + context.messages + user prompt
2. call the provider (tools omitted when the agent has none)
3. append the assistant reply to the working list and the turn log
4. no tool calls -> done; otherwise dispatch each call in order, append
   one tool message per call, and go back to 2

Failure policy:
- Bad arguments, unknown tool, handler exception: {"error": ...} tool result,
  the model sees it and the loop continues
- Iteration budget, provider failure or timeout: terminal for the turn.
  run() raises; run_stream() emits one user-safe error chunk
"""

import asyncio
import inspect
import json
import logging
import time
from functools import partial
from typing import Any, Dict, List, Optional, Tuple

from config import runtime_config
from errors import LLMError, MaxIterationsExceeded, format_error_for_llm, log_error
from logging_config import log_llm, log_message_out, log_tool
from utils.llm import get_llm_client

from .chunks import (
    ChunkCallback,
    ChunkEmitter,
    content_chunk,
    done_chunk,
    error_chunk,
    tool_call_chunk,
    tool_result_chunk,
)
from .models import ROLE_SYSTEM, ROLE_TOOL, ROLE_USER, AgentConfig, ChatMessage, ToolCallRequest, TurnContext
from .stream_accumulator import StreamAccumulator
from .tool_registry import ToolHandler, ToolRegistry
from .ui_context import UIContextResolver

logger = logging.getLogger(__name__)

MAX_ITERATIONS_MESSAGE = (
    "I'm having trouble completing this request. Please try rephrasing or breaking it into smaller steps."
)
GENERIC_ERROR_MESSAGE = "I encountered an error while processing your request. Please try again."

# Tool message content for calls skipped by a cancelled turn
CANCELLED_RESULT = {"error": "Cancelled"}


def _serialize_result(result: Any) -> str:
    """Compact JSON for tool messages."""
    return json.dumps(result, separators=(",", ":"), default=str)


class ToolCallingAgent:
    """Runs the tool-calling loop for one AgentConfig.

    Args:
        config: Shared, read-only agent configuration
        client: Provider client (defaults to the process-wide LLMClient)
        registry: Tool handlers (a fresh registry if omitted)
        timeout: Wall-clock seconds per provider call (defaults to runtime_config.llm_timeout)
    """

    def __init__(
        self,
        config: AgentConfig,
        client=None,
        registry: Optional[ToolRegistry] = None,
        timeout: Optional[float] = None,
    ):
        self.config = config
        self.registry = registry if registry is not None else ToolRegistry()
        self._client = client
        self._timeout = timeout
        self._tools_schema = config.tools_schema()

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def client(self):
        # Resolved per call so runtime_config changes reach shared agents
        return self._client if self._client is not None else get_llm_client()

    @property
    def timeout(self) -> float:
        return self._timeout if self._timeout is not None else runtime_config.llm_timeout

    def register_tool(self, name: str, handler: ToolHandler, ui_descriptor: Optional[str] = None) -> None:
        """Bind a handler to one of the configured tools."""
        if not any(tool.name == name for tool in self.config.tools):
            logger.warning(f"[{self.name or 'agent'}] Registering handler for undeclared tool: {name}")
        self.registry.register(name, handler, ui_descriptor=ui_descriptor)

    # =========================================================================
    # Public API
    # =========================================================================

    async def run(self, prompt: str, context: Optional[TurnContext] = None) -> Dict[str, Any]:
        """Run a blocking turn.

        Returns:
            {"content": str, "finish_reason": str|None, "ui_context": dict|None}

        Raises:
            MaxIterationsExceeded: Iteration budget exhausted
            LLMError: Provider failure or timeout
        """
        context = context if context is not None else TurnContext()
        messages = self._build_messages(prompt, context)
        resolver = UIContextResolver()
        tools_used: List[str] = []
        iteration = 0

        while True:
            iteration += 1
            self._check_iterations(iteration)

            message, finish_reason = await self._complete(messages, iteration)
            self._append(messages, context, message.to_dict())

            if not message.tool_calls:
                ui_context = resolver.context
                log_message_out(
                    logger,
                    agent=self.name,
                    tools_used=tools_used,
                    ui_action=ui_context.action if ui_context else None,
                )
                return {
                    "content": message.content or "",
                    "finish_reason": finish_reason,
                    "ui_context": ui_context.to_dict() if ui_context else None,
                }

            for call in message.tool_calls:
                result = await self._dispatch(call, context)
                tools_used.append(call.function_name)
                resolver.process(call.function_name, result)
                self._append(messages, context, self._tool_message(call, result))

    async def run_stream(
        self,
        prompt: str,
        context: Optional[TurnContext] = None,
        on_chunk: ChunkCallback = None,
    ) -> None:
        """Run a streaming turn, delivering chunks through on_chunk.

        Turn-terminal failures never raise: they become a single error chunk
        with a fixed user-safe message. Internal detail is logged only.
        """
        context = context if context is not None else TurnContext()
        emitter = ChunkEmitter(on_chunk or (lambda chunk: None), context)

        try:
            await self._run_stream_internal(prompt, context, emitter)
        except MaxIterationsExceeded as e:
            logger.error(f"[{self.name or 'agent'}] Max iterations exceeded: {e}")
            await emitter.emit(error_chunk(MAX_ITERATIONS_MESSAGE))
        except Exception as e:
            log_error(logger, e, context=self.name or "agent")
            await emitter.emit(error_chunk(GENERIC_ERROR_MESSAGE))

    # =========================================================================
    # Loop internals
    # =========================================================================

    async def _run_stream_internal(self, prompt: str, context: TurnContext, emitter: ChunkEmitter) -> None:
        messages = self._build_messages(prompt, context)
        resolver = UIContextResolver()
        tools_used: List[str] = []
        iteration = 0

        while True:
            iteration += 1
            self._check_iterations(iteration)

            message = await self._stream(messages, iteration, emitter, context)
            if context.cancelled:
                logger.info(f"[{self.name or 'agent'}] Turn cancelled during provider stream")
                return

            self._append(messages, context, message.to_dict())

            if not message.tool_calls:
                ui_context = resolver.context
                log_message_out(
                    logger,
                    agent=self.name,
                    tools_used=tools_used,
                    ui_action=ui_context.action if ui_context else None,
                )
                await emitter.emit(done_chunk(message.content or "", ui_context))
                return

            for position, call in enumerate(message.tool_calls):
                if context.cancelled:
                    logger.info(f"[{self.name or 'agent'}] Turn cancelled, skipping remaining tool calls")
                    # Every call in the appended assistant message still needs an answer
                    for skipped in message.tool_calls[position:]:
                        self._append(messages, context, self._tool_message(skipped, CANCELLED_RESULT))
                    return

                await emitter.emit(
                    tool_call_chunk(call.function_name, self.registry.ui_descriptor(call.function_name), call.arguments_json)
                )
                result = await self._dispatch(call, context)
                tools_used.append(call.function_name)
                resolver.process(call.function_name, result)
                await emitter.emit(tool_result_chunk(call.function_name, result))
                self._append(messages, context, self._tool_message(call, result))

            if context.cancelled:
                logger.info(f"[{self.name or 'agent'}] Turn cancelled, no further provider calls")
                return

    def _build_messages(self, prompt: str, context: TurnContext) -> List[Dict[str, Any]]:
        messages = [{"role": ROLE_SYSTEM, "content": self.config.system_prompt}]
        messages.extend(context.messages)
        # Empty prompts are system-triggered turns with no new user text
        if prompt:
            user_message = {"role": ROLE_USER, "content": prompt}
            messages.append(user_message)
            context.messages.append(user_message)
        return messages

    def _check_iterations(self, iteration: int) -> None:
        if iteration > self.config.max_iterations:
            raise MaxIterationsExceeded(max_iterations=self.config.max_iterations, agent=self.name)

    @staticmethod
    def _append(messages: List[Dict[str, Any]], context: TurnContext, message: Dict[str, Any]) -> None:
        messages.append(message)
        context.messages.append(message)

    @staticmethod
    def _tool_message(call: ToolCallRequest, result: Any) -> Dict[str, Any]:
        return ChatMessage(role=ROLE_TOOL, content=_serialize_result(result), tool_call_id=call.id).to_dict()

    # =========================================================================
    # Provider calls
    # =========================================================================

    async def _complete(self, messages: List[Dict[str, Any]], iteration: int) -> Tuple[ChatMessage, Optional[str]]:
        """One blocking provider call, bounded by the wall-clock timeout."""
        loop = asyncio.get_event_loop()
        model = self.config.model
        timeout = self.timeout
        call = partial(self.client.complete, model=model, messages=list(messages), tools=self._tools_schema)

        log_llm(logger, "start", model=model, iteration=iteration)
        start_time = time.time()
        try:
            response = await asyncio.wait_for(loop.run_in_executor(None, call), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"LLM call timed out after {time.time() - start_time:.2f}s (limit={timeout}s, model={model})")
            raise LLMError(
                message=f"Model response timed out after {timeout}s",
                error_type="timeout",
                model=model,
            ) from e
        log_llm(logger, "end", model=model, duration=time.time() - start_time)

        choices = (response or {}).get("choices") or []
        if not choices:
            raise LLMError(message="LLM response has no choices", error_type="invalid", model=model)

        choice = choices[0]
        message = ChatMessage.from_dict(choice.get("message") or {})
        message.name = self.config.name or None
        return message, choice.get("finish_reason")

    async def _stream(
        self,
        messages: List[Dict[str, Any]],
        iteration: int,
        emitter: ChunkEmitter,
        context: TurnContext,
    ) -> ChatMessage:
        """One streaming provider call; content deltas are forwarded as they arrive.

        The timeout bounds the whole stream, not each delta.
        """
        loop = asyncio.get_event_loop()
        model = self.config.model
        timeout = self.timeout
        accumulator = StreamAccumulator(name=self.config.name)
        sentinel = object()

        log_llm(logger, "start", model=model, iteration=iteration)
        start_time = time.time()
        deadline = loop.time() + timeout
        stream = iter(self.client.stream(model=model, messages=list(messages), tools=self._tools_schema))

        try:
            while True:
                if context.cancelled:
                    close = getattr(stream, "close", None)
                    if close is not None:
                        close()
                    break

                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise asyncio.TimeoutError()

                event = await asyncio.wait_for(loop.run_in_executor(None, next, stream, sentinel), timeout=remaining)
                if event is sentinel:
                    break

                fragment = accumulator.add(event)
                if fragment:
                    await emitter.emit(content_chunk(fragment))
        except asyncio.TimeoutError as e:
            logger.warning(f"LLM stream timed out after {time.time() - start_time:.2f}s (limit={timeout}s, model={model})")
            raise LLMError(
                message=f"Model stream timed out after {timeout}s",
                error_type="timeout",
                model=model,
            ) from e

        if not accumulator.finished and not context.cancelled:
            logger.warning(f"Stream from {model} ended without finish_reason")
        log_llm(logger, "end", model=model, duration=time.time() - start_time)
        return accumulator.finalize()

    # =========================================================================
    # Tool dispatch
    # =========================================================================

    async def _dispatch(self, call: ToolCallRequest, context: TurnContext) -> Any:
        """Execute one tool call. Never raises for tool-level problems."""
        name = call.function_name

        raw = call.arguments_json.strip() if call.arguments_json else ""
        try:
            arguments = json.loads(raw) if raw else {}
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse arguments for {name}: {e}")
            return {"error": "Invalid arguments format"}
        if not isinstance(arguments, dict):
            logger.error(f"Arguments for {name} are not an object: {raw[:80]}")
            return {"error": "Invalid arguments format"}

        tool = self.registry.get(name)
        if tool is None:
            logger.error(f"No handler registered for tool: {name}")
            return {"error": f"Tool not found: {name}"}

        log_tool(logger, name, "start", args=raw[:120])
        start_time = time.time()
        try:
            result = tool.handler(arguments, context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Tool execution error in {name}: {e}", exc_info=True)
            return {"error": format_error_for_llm(e)}

        log_tool(logger, name, "end", duration=f"{time.time() - start_time:.2f}s")
        return result
