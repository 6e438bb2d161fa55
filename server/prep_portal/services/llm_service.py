"""
Structured LLM Service.

Encapsulates OpenAI's structured output capabilities.
"""
import json
import logging
from typing import Type, TypeVar, Optional, List
from pydantic import BaseModel
from openai import OpenAI
from prep_portal.config import settings
from prep_portal.schemas import QuestionForEvaluation

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class GenEvaluationResult(BaseModel):
    is_correct: bool
    explanation: str


class GenEvaluation(BaseModel):
    results: List[GenEvaluationResult]
    overall_feedback: str


class StructuredLLMService:
    """Service for generating structured outputs from LLMs."""

    def __init__(self):
        self.client = OpenAI(api_key=settings.openai_api_key)
        self.model = settings.openai_model

    def generate_response(
        self,
        response_model: Type[T],
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 4000
    ) -> Optional[T]:
        """
        Generate a structured response ensuring it matches the Pydantic model.
        """
        try:
            completion = self.client.chat.completions.parse(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format=response_model,
                temperature=temperature,
                max_tokens=max_tokens
            )

            return completion.choices[0].message.parsed

        except Exception as e:
            logger.error("❌ Structured LLM Generation Error: %s", e)
            return None

    def evaluate_test(
        self,
        topic: str,
        questions: List[QuestionForEvaluation],
        answers: List[str],
    ) -> Optional[GenEvaluation]:
        """
        Grade a student's answers. One result per question, in order.
        """
        from prep_portal.services.prompt_management import get_prompt

        items = []
        for index, (question, answer) in enumerate(zip(questions, answers), start=1):
            item = {"number": index, **question.model_dump(exclude_none=True), "student_answer": answer}
            items.append(item)

        prompts = get_prompt(
            "test_evaluation",
            topic=topic,
            question_count=len(questions),
            questions_json=json.dumps(items, ensure_ascii=False, indent=2),
        )

        return self.generate_response(
            response_model=GenEvaluation,
            system_prompt=prompts["system_prompt"],
            user_prompt=prompts["human_prompt"],
            temperature=0.2,
        )


# Singleton instance
llm_service = StructuredLLMService()
