"""
Shared entry point for AI-generated study material.

Resolves the topic, decodes the optional document and runs the generator
for the requested content type.
"""
import logging
from typing import Optional, Tuple

from fastapi import HTTPException

from prep_portal.generators import ContentType
from prep_portal.generators.base import DEFAULT_TOPIC
from prep_portal.generators.factory import get_generator
from prep_portal.services.documents import DocumentError, extract_text

logger = logging.getLogger(__name__)


def resolve_topic(topic: Optional[str], document_data_uri: Optional[str]) -> str:
    """Topic to generate for; a document alone falls back to a generic topic."""
    topic = (topic or "").strip()
    if not topic and not document_data_uri:
        raise HTTPException(status_code=400, detail="Please enter a topic or upload a file.")
    return topic or DEFAULT_TOPIC


async def generate_material(
    content_type: ContentType,
    topic: Optional[str],
    document_data_uri: Optional[str] = None,
    count: Optional[int] = None,
    temperature: float = 0.7,
) -> Tuple[str, list]:
    """
    Run a generator and return (topic, items).

    Raises:
        HTTPException: 400 for missing input or a bad document, 502 when
            the model produced nothing usable.
    """
    resolved_topic = resolve_topic(topic, document_data_uri)

    try:
        document_text = extract_text(document_data_uri)
    except DocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    generator = get_generator(content_type)
    if not generator:
        raise HTTPException(status_code=400, detail=f"Unknown content type: {content_type}")

    items = await generator.generate(
        topic=resolved_topic,
        document_text=document_text,
        count=count,
        temperature=temperature,
    )
    if not items:
        logger.error("❌ Could not generate %s for topic %r", content_type, resolved_topic)
        raise HTTPException(status_code=502, detail="Could not generate content for that topic.")

    logger.info("✨ Generated %d %s item(s) for %r", len(items), content_type, resolved_topic)
    return resolved_topic, items
