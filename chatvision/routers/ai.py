# chatvision/routers/ai.py
import asyncio
import base64
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..clients import AIGateway, get_gateway
from ..errors import AIGatewayError
from .auth import require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"], dependencies=[Depends(require_user)])

gateway_link = Annotated[AIGateway, Depends(get_gateway)]


class TextBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt: str = Field(..., min_length=1)
    system_instruction: Optional[str] = None


@router.post("/text")
async def generate_text(body: TextBody, gateway: gateway_link):
    try:
        response = await asyncio.to_thread(gateway.generate_text, body.prompt, body.system_instruction)
    except AIGatewayError:
        raise HTTPException(status_code=500, detail="Failed to generate text")
    return {"success": True, "response": response}


@router.post("/image")
async def analyze_image(
    request: Request,
    gateway: gateway_link,
    image: Optional[UploadFile] = File(default=None),
    prompt: Optional[str] = Form(default=None),
):
    if image is None:
        raise HTTPException(status_code=400, detail="Image file is required")

    limit = request.app.state.settings.max_upload_bytes
    data = await image.read()
    if len(data) > limit:
        # chunked uploads skip the Content-Length check in the middleware
        raise HTTPException(status_code=413, detail="Image exceeds the 10MB limit")

    image_data = base64.b64encode(data).decode("ascii")
    mime_type = image.content_type or "image/png"
    try:
        response = await asyncio.to_thread(gateway.analyze_image, image_data, mime_type, prompt)
    except AIGatewayError:
        raise HTTPException(status_code=500, detail="Failed to analyze image")
    return {"success": True, "response": response, "imageData": image_data}


@router.get("/headline")
def generate_headline(gateway: gateway_link):
    try:
        headline = gateway.generate_headline()
    except Exception:
        logger.exception("Headline generation error")
        raise HTTPException(status_code=500, detail="Failed to generate headline")
    return {"success": True, "headline": headline}
