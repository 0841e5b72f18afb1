# innodraw/services/ai_service.py
import asyncio
import base64
import logging
from typing import Any, AsyncIterator
from google.genai import types
import google.genai as genai
from innodraw.core.config import settings
from innodraw.core.exceptions import GenerationFailure, StreamFailure
from innodraw.core.prompts import DIAGRAM_RESPONSE_SCHEMA, MENTOR_SYSTEM_INSTRUCTION
from innodraw.models.conversation import ChatRole, ConversationTurn

logger = logging.getLogger(__name__)

class AIService:
    """
    Gemini binding of the remote capabilities the pipeline consumes: structured
    diagram generation, per-component artwork, and streamed chat.

    The Gemini client is created on first use, so a missing API key only
    surfaces on a call that actually needs the remote service.
    """
    def __init__(self, api_key: str, client: Any = None):
        self.api_key = api_key
        self._client = client

    def _get_client(self, failure: type[GenerationFailure] | type[StreamFailure]) -> Any:
        if self._client is None:
            if not self.api_key:
                logger.error("GEMINI_API_KEY is not set; cannot reach the AI service.")
                raise failure("The AI service is not configured: GEMINI_API_KEY is not set.")
            try:
                self._client = genai.Client(api_key=self.api_key)
            except ValueError as e:
                logger.error("Could not create the Gemini client: %s", e)
                raise failure(f"The AI service is not configured: {e}") from e
        return self._client

    async def generate_structured_diagram(self, prompt: str) -> str:
        """Returns the raw JSON text of the diagram; validation is the caller's job."""
        client = self._get_client(GenerationFailure)
        generation_config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=DIAGRAM_RESPONSE_SCHEMA,
        )
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=settings.STRUCTURE_MODEL,
            contents=prompt,
            config=generation_config
        )
        raw_text = self._extract_structured_text(response)
        logger.debug("Raw structural response: %s", raw_text)
        return raw_text

    async def generate_component_artwork(self, prompt: str) -> str:
        """Returns the generated image as a data URL."""
        client = self._get_client(GenerationFailure)
        generation_config = types.GenerateContentConfig(response_modalities=["IMAGE"])
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=settings.ARTWORK_MODEL,
            contents=prompt,
            config=generation_config
        )
        data_url = self._extract_image_data_url(response)
        if not data_url:
            raise GenerationFailure("No image data found in response.")
        return data_url

    def open_chat_session(self, seed_history: list[ConversationTurn]) -> Any:
        client = self._get_client(StreamFailure)
        # Creating a chat is local; nothing goes over the wire until the first message.
        history = [
            types.Content(
                role="user" if turn.role == ChatRole.USER else "model",
                parts=[types.Part(text=turn.text)],
            )
            for turn in seed_history
        ]
        return client.aio.chats.create(
            model=settings.CHAT_MODEL,
            history=history,
            config=types.GenerateContentConfig(system_instruction=MENTOR_SYSTEM_INSTRUCTION),
        )

    async def send_and_stream(self, handle: Any, text: str) -> AsyncIterator[str]:
        stream = await handle.send_message_stream(text)
        async for chunk in stream:
            chunk_text = getattr(chunk, "text", None)
            if chunk_text:
                yield chunk_text

    @staticmethod
    def _iter_parts(response: Any):
        candidates = getattr(response, "candidates", None) or []
        for candidate in candidates:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                yield part

    @staticmethod
    def _extract_structured_text(response: Any) -> str:
        """
        Attempt to extract the JSON payload emitted via structured output from the SDK response.
        """
        if response is None:
            return ""

        try:
            for part in AIService._iter_parts(response):
                inline_data = getattr(part, "inline_data", None)
                part_mime = getattr(part, "mime_type", None)
                inline_mime = getattr(inline_data, "mime_type", None) if inline_data else None
                mime_type = (part_mime or inline_mime or "").lower()
                if mime_type.startswith("application/x-thought"):
                    logger.debug("Skipping thought-signature part in candidate.")
                    continue
                if mime_type.startswith("application/json") or mime_type.startswith("text/"):
                    text_part = getattr(part, "text", None)
                    if text_part:
                        return text_part
                    data = getattr(inline_data, "data", None) if inline_data else None
                    if isinstance(data, bytes):
                        return data.decode("utf-8")
                    if data:
                        return str(data)
        except (AttributeError, TypeError, UnicodeDecodeError) as exc:
            logger.debug("Falling back to response.text due to extraction error: %s", exc)

        return getattr(response, "text", "") or ""

    @staticmethod
    def _extract_image_data_url(response: Any) -> str:
        """Builds a data URL from the first inline image part, or returns an empty string."""
        for part in AIService._iter_parts(response):
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data else None
            if not data:
                continue
            mime_type = getattr(inline_data, "mime_type", None) or "image/png"
            encoded = base64.b64encode(data).decode("ascii") if isinstance(data, bytes) else str(data)
            return f"data:{mime_type};base64,{encoded}"
        return ""
