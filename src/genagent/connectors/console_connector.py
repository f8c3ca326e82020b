# src/genagent/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


async def _read_line(prompt: str) -> str:
    """
    input() on a daemon thread.

    A daemon thread (unlike the default executor) does not keep the process
    alive when we exit while the prompt is still waiting.
    """
    loop = asyncio.get_running_loop()
    fut: asyncio.Future[str] = loop.create_future()

    def _deliver(line: str | None, exc: BaseException | None) -> None:
        if fut.done():
            return
        if exc is not None:
            fut.set_exception(exc)
        else:
            fut.set_result(line or "")

    def _reader() -> None:
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            # Both end the session; keep KeyboardInterrupt off the event loop.
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(_deliver, None, EOFError())
            return
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(_deliver, line, None)

    threading.Thread(target=_reader, name="console-input", daemon=True).start()
    return await fut


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL.

    stdin is read on a daemon thread so scheduled timers keep firing on the
    event loop while the prompt waits.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type your messages. Use /help for commands. Use /exit to quit.\n")

    app_name = str(getattr(getattr(state, "settings", None), "app_name", "genagent"))

    while True:
        try:
            user_input = (await _read_line(">>> You: ")).strip()
        except EOFError:
            logger.info("Console input closed, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            cmd_response = command_registry.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            _print_ts(cmd_response)
            continue

        try:
            result = await state.agent.process_message(user_input, context=list(state.conversation))
        except Exception:
            logger.exception("Console chat handler crashed.")
            _print_ts("Internal error while generating a reply.")
            continue

        if result.error:
            _print_ts(f"[LLM] {result.error}")
            continue

        reply = result.response or ""
        state.conversation.append({"role": "user", "content": user_input})
        state.conversation.append({"role": "assistant", "content": reply})
        _print_ts(f"<<< {app_name}: {reply}\n")

    logger.info("Console connector finished.")
