# chatvision/clients.py
import logging
import random
from typing import List, Optional

from fastapi import Request
from openai import OpenAI

from .config import Settings
from .errors import AIGatewayError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM = "You are a helpful AI assistant. Provide accurate, concise, and helpful responses."
DEFAULT_IMAGE_PROMPT = (
    "Analyze this image in detail and describe its key elements, context, and any notable aspects."
)
TEXT_FALLBACK = "I apologize, but I couldn't generate a response. Please try again."
IMAGE_FALLBACK = "I couldn't analyze this image. Please try uploading a different image."

HEADLINE_PROMPT = "Write 1 catchy headline for an AI assistant that does text generation and image analysis."
HEADLINE_SYSTEM = (
    "You write ultra-short punchy product headlines for an AI assistant website. "
    "Max 8 words. Be creative and engaging."
)
HEADLINES = [
    "Transform Ideas into Intelligent Insights",
    "Unlock the Power of AI Conversation",
    "Experience Next-Generation AI Analysis",
    "Revolutionize Your Creative Process",
    "Discover AI That Understands You",
]
# used when the provider call itself fails
HEADLINE_FALLBACKS = HEADLINES[:3]


def get_openai(settings: Settings) -> OpenAI:
    kwargs = {"api_key": settings.openai_api_key}
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    return OpenAI(**kwargs)


def extract_reply(resp) -> str:
    # Prefer output_text; fallback to assembling text from output parts if needed
    reply = getattr(resp, "output_text", "") or ""
    if not reply and hasattr(resp, "output"):
        parts: List[str] = []
        for item in resp.output or []:
            if getattr(item, "type", "") == "message":
                for c in getattr(item, "content", []):
                    if getattr(c, "type", "") == "output_text":
                        parts.append(getattr(c, "text", ""))
        reply = "".join(parts)
    return reply


class AIGateway:
    """Thin pass-through to the provider's Responses API.

    The OpenAI client is created on first use, so a missing credential
    surfaces as a provider failure on the AI routes instead of at startup.
    """

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = get_openai(self.settings)
        return self._client

    def generate_text(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        try:
            resp = self.client.responses.create(
                model=self.settings.text_model,
                instructions=system_instruction or DEFAULT_SYSTEM,
                input=prompt,
            )
            reply = extract_reply(resp)
        except Exception as e:
            logger.exception("Error generating text")
            raise AIGatewayError("Failed to generate text response") from e
        return reply or TEXT_FALLBACK

    def analyze_image(self, image_data: str, mime_type: str, prompt: Optional[str] = None) -> str:
        text_prompt = prompt or DEFAULT_IMAGE_PROMPT
        try:
            resp = self.client.responses.create(
                model=self.settings.vision_model,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "input_image",
                                "image_url": f"data:{mime_type};base64,{image_data}",
                            },
                            {"type": "input_text", "text": text_prompt},
                        ],
                    }
                ],
            )
            reply = extract_reply(resp)
        except Exception as e:
            logger.exception("Error analyzing image")
            raise AIGatewayError("Failed to analyze image") from e
        return reply or IMAGE_FALLBACK

    def generate_headline(self) -> str:
        try:
            resp = self.client.responses.create(
                model=self.settings.text_model,
                instructions=HEADLINE_SYSTEM,
                input=HEADLINE_PROMPT,
            )
            headline = extract_reply(resp).strip()
        except Exception:
            logger.exception("Error generating headline")
            return random.choice(HEADLINE_FALLBACKS)
        return headline or random.choice(HEADLINES)


def get_gateway(request: Request) -> AIGateway:
    return request.app.state.gateway
