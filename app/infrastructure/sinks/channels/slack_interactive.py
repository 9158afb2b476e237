"""Slack Socket Mode interaction loop.

Handles the "ask assistant" button of event notifications: every
interactive action is acknowledged right away, its prompt is sent to the
completion service and the answer (or the error) is posted back to the
channel as a follow-up message.

States:
    INITIALIZING -> LISTENING -> (per interaction) PROCESSING -> LISTENING
    terminal CLOSED on cancellation
"""

import queue
import threading
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

import structlog
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse

from infrastructure.logging import bind_event_context, clear_event_context
from infrastructure.sinks.errors import CompletionError
from infrastructure.sinks.listener import ListenerHandle

logger = structlog.get_logger()

INTERACTIVE_REQUEST_TYPE = "interactive"


class CompletionService(Protocol):
    """Anything able to answer a free-form prompt."""

    def complete(self, prompt: str) -> str: ...


class LoopState(Enum):
    """Lifecycle states of the interaction loop."""

    INITIALIZING = "initializing"
    LISTENING = "listening"
    PROCESSING = "processing"
    CLOSED = "closed"


def extract_prompt(payload: Dict[str, Any]) -> Optional[str]:
    """Prompt carried by an interactive action payload.

    Attachment buttons (``interactive_message``) and Block Kit buttons
    (``block_actions``) both carry it as the first action's value.
    """
    actions = payload.get("actions") or []
    if not actions:
        return None
    value = actions[0].get("value")
    if not value or not str(value).strip():
        return None
    return str(value)


def build_answer_blocks(prompt: str, response: str) -> List[Dict[str, Any]]:
    """Block Kit layout of an assistant answer."""
    header_text = f"🤖 *ChatGPT response for the Event:* \n\n🚦 {prompt} :"
    return [
        {"type": "section", "text": {"type": "mrkdwn", "text": header_text}},
        {"type": "section", "text": {"type": "mrkdwn", "text": response}},
        {"type": "divider"},
    ]


class SlackInteractionLoop:
    """Consumes Socket Mode requests for one Slack sink.

    The Socket Mode client pushes requests onto an internal queue from its
    own threads; the loop thread drains the queue, waking every
    ``poll_interval`` seconds to observe cancellation.

    Args:
        web_client: WebClient used to post answers
        socket_client: slack_sdk SocketModeClient (or compatible)
        channel_id: Channel answers are posted to
        completion_client: Completion service, None when not configured
        poll_interval: Seconds between cancellation checks

    Example:
        loop = SlackInteractionLoop(web_client, socket_client, "C123", completions)
        handle = loop.start(shutdown_event)
        ...
        handle.cancel()
    """

    def __init__(
        self,
        web_client: WebClient,
        socket_client: Any,
        channel_id: str,
        completion_client: Optional[CompletionService] = None,
        poll_interval: float = 0.5,
    ):
        self._web_client = web_client
        self._socket_client = socket_client
        self._channel_id = channel_id
        self._completion_client = completion_client
        self._poll_interval = poll_interval
        self._requests: "queue.Queue[SocketModeRequest]" = queue.Queue()
        self._state = LoopState.INITIALIZING
        self._state_lock = threading.Lock()
        self._socket_closed = False
        self._log = logger.bind(channel_id=channel_id)

    @property
    def state(self) -> LoopState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: LoopState) -> None:
        with self._state_lock:
            if self._state == LoopState.CLOSED:
                return
            self._state = state

    def start(
        self,
        shutdown_event: Optional[threading.Event] = None,
        join_timeout: float = 5.0,
    ) -> ListenerHandle:
        """Connect the Socket Mode client and start the loop thread.

        Raises:
            SlackApiError: If the connection can not be opened
        """
        self._socket_client.socket_mode_request_listeners.append(self._enqueue)
        self._socket_client.connect()
        self._log.info("slack_socket_mode_connected")

        handle = ListenerHandle(
            name=f"slack-interactions-{self._channel_id}",
            target=self.run,
            parent=shutdown_event,
            on_cancel=self.close_socket,
            join_timeout=join_timeout,
        )
        return handle.start()

    def _enqueue(self, client: Any, request: SocketModeRequest) -> None:
        self._requests.put(request)

    def run(self, handle: ListenerHandle) -> None:
        """Loop body; returns when the handle is cancelled."""
        self._set_state(LoopState.LISTENING)
        self._log.info("slack_interaction_loop_listening")
        try:
            while not handle.cancelled:
                try:
                    request = self._requests.get(timeout=self._poll_interval)
                except queue.Empty:
                    continue
                clear_event_context()
                try:
                    self.handle_request(request)
                except Exception as e:
                    self._log.error(
                        "slack_interaction_failed",
                        error=str(e),
                        exc_info=True,
                    )
                    self._set_state(LoopState.LISTENING)
        finally:
            self.close_socket()
            with self._state_lock:
                self._state = LoopState.CLOSED
            self._log.info("slack_interaction_loop_closed")

    def handle_request(self, request: SocketModeRequest) -> None:
        """Ack the request and, for interactive actions, answer the prompt."""
        self._ack(request)

        if request.type != INTERACTIVE_REQUEST_TYPE:
            self._log.debug("slack_request_ignored", request_type=request.type)
            return

        prompt = extract_prompt(request.payload or {})
        if prompt is None:
            self._log.warning("slack_interaction_without_prompt")
            return

        with bind_event_context(envelope_id=request.envelope_id):
            self._set_state(LoopState.PROCESSING)
            try:
                response = self._ask(prompt)
                if response.strip():
                    self._post_answer(prompt, response)
            finally:
                self._set_state(LoopState.LISTENING)

    def _ack(self, request: SocketModeRequest) -> None:
        self._socket_client.send_socket_mode_response(
            SocketModeResponse(envelope_id=request.envelope_id)
        )
        self._log.debug("slack_interaction_acked", envelope_id=request.envelope_id)

    def _ask(self, prompt: str) -> str:
        """Completion answer, or a user-visible error message."""
        try:
            if self._completion_client is None:
                raise CompletionError(
                    "completion service is not configured (OPENAI_API_KEY missing)",
                    error_code="COMPLETION_NOT_CONFIGURED",
                )
            return self._completion_client.complete(prompt)
        except CompletionError as e:
            self._log.error("slack_completion_failed", error=e.message)
            return f"⚠ {e.message}"
        except Exception as e:
            self._log.error("slack_completion_failed", error=str(e), exc_info=True)
            return f"⚠ {e}"

    def _post_answer(self, prompt: str, response: str) -> None:
        try:
            self._web_client.chat_postMessage(
                channel=self._channel_id,
                text=response,
                blocks=build_answer_blocks(prompt, response),
            )
            self._log.info("slack_completion_posted")
        except SlackApiError as e:
            self._log.error(
                "slack_completion_post_failed",
                error=str(e),
            )

    def close_socket(self) -> None:
        """Disconnect the Socket Mode client. Idempotent."""
        with self._state_lock:
            if self._socket_closed:
                return
            self._socket_closed = True
        try:
            self._socket_client.close()
        except Exception as e:
            self._log.warning("slack_socket_mode_close_failed", error=str(e))
        else:
            self._log.info("slack_socket_mode_closed")
