"""
Flash Card Generator.

Generates term/definition flash cards for revision.
"""
from typing import List, Optional
from prep_portal.config import settings
from prep_portal.generators.base import BaseContentGenerator
from prep_portal.generators.schemas import GenFlashCards
from prep_portal.schemas import FlashCard


class FlashCardGenerator(BaseContentGenerator):
    """Generator for flash cards."""

    content_type = "flash_cards"
    prompt_name = "flash_cards"

    def _validate(self, result: GenFlashCards, count: int) -> List[str]:
        errors = []
        if len(result.cards) < count:
            errors.append(f"Only {len(result.cards)} cards were generated, {count} are needed")
        for position, card in enumerate(result.cards, start=1):
            if not card.front.strip() or not card.back.strip():
                errors.append(f"Card {position}: front and back must both be filled in")
        return errors

    async def generate(
        self,
        topic: str,
        document_text: str = "",
        count: Optional[int] = None,
        temperature: float = 0.7,
    ) -> Optional[List[FlashCard]]:
        """Generate flash cards."""
        count = count or settings.default_question_count
        prompts = self.get_prompts(topic, document_text, count=count)

        result = await self._generate_structured(
            system_prompt=prompts["system_prompt"],
            user_prompt=prompts["human_prompt"],
            response_model=GenFlashCards,
            validate=lambda r: self._validate(r, count),
            temperature=temperature,
        )
        if not result:
            return None

        cards = [
            FlashCard(front=card.front.strip(), back=card.back.strip())
            for card in result.cards
            if card.front.strip() and card.back.strip()
        ]
        return cards[:count] or None


# Singleton instance
flash_card_generator = FlashCardGenerator()
