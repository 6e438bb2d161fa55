"""
Self-study tools. Available to every signed-in user; nothing is stored.
"""
from fastapi import APIRouter, Depends

from prep_portal.schemas import (
    FlashCardsRequest,
    FlashCardsResponse,
    GeneratedTestResponse,
    GenerationSource,
    PracticeMCQRequest,
)
from prep_portal.services.auth import get_current_user
from prep_portal.services.generation import generate_material

router = APIRouter(tags=["Study"], dependencies=[Depends(get_current_user)])


@router.post("/flash-cards", response_model=FlashCardsResponse)
async def flash_cards(request: FlashCardsRequest):
    topic, cards = await generate_material(
        "flash_cards",
        request.topic,
        request.document_data_uri,
        count=request.number_of_cards,
    )
    return FlashCardsResponse(topic=topic, cards=cards)


@router.post("/mcq", response_model=GeneratedTestResponse)
async def practice_mcq(request: PracticeMCQRequest):
    """Practice MCQs; answers are checked client-side against the key"""
    topic, questions = await generate_material(
        "mcq",
        request.topic,
        request.document_data_uri,
        count=request.number_of_questions,
    )
    return GeneratedTestResponse(topic=topic, questions=questions)


@router.post("/subjective", response_model=GeneratedTestResponse)
async def practice_subjective(request: GenerationSource):
    topic, questions = await generate_material("subjective", request.topic, request.document_data_uri)
    return GeneratedTestResponse(topic=topic, questions=questions)
