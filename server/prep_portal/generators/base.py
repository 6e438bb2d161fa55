"""
Base Generator Class.

Provides common functionality for all study-material generators.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Type, TypeVar

from pydantic import BaseModel

from prep_portal.config import settings
from prep_portal.services.prompt_management import get_prompt

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_TOPIC = "the provided document"


class BaseContentGenerator(ABC):
    """Abstract base class for content generators."""

    # Content type identifier and YAML prompt name - must be overridden
    content_type: str = "base"
    prompt_name: str = "base"

    @abstractmethod
    async def generate(
        self,
        topic: str,
        document_text: str = "",
        count: Optional[int] = None,
        temperature: float = 0.7,
    ) -> Optional[list]:
        """
        Generate a batch of study material.

        Args:
            topic: The topic to generate for
            document_text: Text extracted from an uploaded document
            count: How many items to generate
            temperature: LLM temperature

        Returns:
            List of generated items, or None if generation failed
        """

    def get_prompts(self, topic: str, document_text: str = "", **kwargs) -> dict:
        """Load this generator's system and human prompt from YAML."""
        document_section = f"Document:\n{document_text}" if document_text else ""
        return get_prompt(
            self.prompt_name,
            topic=topic or DEFAULT_TOPIC,
            document_section=document_section,
            **kwargs,
        )

    async def _generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        response_model: Type[T],
        validate: Callable[[T], List[str]],
        temperature: float = 0.7,
        max_retries: Optional[int] = None,
    ) -> Optional[T]:
        """
        Generate a structured result and validate it, retrying with the
        validation errors fed back to the model.

        The last attempt is returned even if it still has errors; callers
        decide what to keep. None means the LLM produced nothing.
        """
        from prep_portal.services.llm_service import llm_service

        max_retries = max_retries or settings.generation_max_retries
        current_user_prompt = user_prompt

        for attempt in range(max_retries):
            result = await asyncio.to_thread(
                llm_service.generate_response,
                response_model=response_model,
                system_prompt=system_prompt,
                user_prompt=current_user_prompt,
                temperature=temperature,
            )

            if result is None:
                logger.error("❌ %s generation failed on attempt %d", self.content_type, attempt + 1)
                return None

            errors = validate(result)
            if not errors:
                if attempt > 0:
                    logger.info("✅ %s validation passed on attempt %d", self.content_type, attempt + 1)
                return result

            if attempt < max_retries - 1:
                error_details = "\n".join(f"- {e}" for e in errors)
                logger.warning(
                    "⚠️ %s validation failed (attempt %d/%d):\n%s",
                    self.content_type, attempt + 1, max_retries, error_details,
                )
                current_user_prompt = f"""{user_prompt}

IMPORTANT - YOUR PREVIOUS OUTPUT HAD PROBLEMS:
{error_details}

Generate the full output again and fix every problem listed above."""
            else:
                logger.warning(
                    "❌ %s validation failed after %d attempts. Returning result anyway.",
                    self.content_type, max_retries,
                )
                return result

        return None
