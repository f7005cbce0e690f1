# /kaani/artifacts/next_questions.py

from typing import List, Optional

from kaani.config import strings
from kaani.models.artifacts import NextQuestionsArtifact, NextQuestionsData


def _concept_for(field: str) -> Optional[str]:
    lowered = field.lower()
    for concept, needles in strings.QUESTION_CONCEPTS:
        if any(needle in lowered for needle in needles):
            return concept
    return None


def generate_questions(missing: List[str], audience: str, dialect: Optional[str] = None) -> List[str]:
    """One question per missing field, in the audience's register and dialect."""
    templates = strings.QUESTION_TEMPLATES.get(audience, {})
    # Loan officers are always addressed in English
    effective_dialect = dialect if audience == "farmer" else strings.DEFAULT_DIALECT

    questions = []
    for field in missing:
        concept = _concept_for(field)
        question = strings.lookup(templates, effective_dialect, concept) if concept else None
        questions.append(question or strings.GENERIC_QUESTION_TEMPLATE.format(field=field))
    return questions[:strings.MAX_NEXT_QUESTIONS]


def build_next_questions(missing: List[str], audience: str, dialect: Optional[str] = None) -> NextQuestionsArtifact:
    return NextQuestionsArtifact(
        data=NextQuestionsData(
            missing=list(missing),
            questions=generate_questions(missing, audience, dialect),
        )
    )
