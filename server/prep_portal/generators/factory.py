"""
Generator Factory.

Provides centralized access to all content generators.
"""
from typing import Optional
from prep_portal.generators import ContentType
from prep_portal.generators.base import BaseContentGenerator
from prep_portal.generators.flash_cards import flash_card_generator
from prep_portal.generators.mcq_test import mcq_test_generator
from prep_portal.generators.subjective_test import subjective_test_generator


# Map content type to generator instance
GENERATORS: dict[ContentType, BaseContentGenerator] = {
    "flash_cards": flash_card_generator,
    "mcq": mcq_test_generator,
    "subjective": subjective_test_generator,
}


def get_generator(content_type: ContentType) -> Optional[BaseContentGenerator]:
    """Get the generator for a content type."""
    return GENERATORS.get(content_type)

