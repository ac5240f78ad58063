"""Prompts for the LLM ranking call."""
from psysupport.services.matching.schemas import QuestionnaireSubmit
from psysupport.services.profiles import PsychologistCandidate


RANKING_SYSTEM_PROMPT = """\
You are a psychologist matching algorithm. Your task is to analyze a client's needs
and match them with the most suitable psychologists from the available list.

Consider these factors:
1. Specialization match with the client's main issue
2. Language preference
3. Format preference (online/offline)
4. Urgency level (higher urgency may need more experienced psychologists)
5. Price considerations

Return a JSON array with exactly 3 matches (or fewer if not enough suitable psychologists).
Each match must have: psychologist_id (the ID from the list), score (integer 1-100),
reason (one short sentence).

IMPORTANT: Return ONLY valid JSON, no other text. Format:
[{"psychologist_id": "uuid", "score": 85, "reason": "explanation"}, ...]\
"""


def _candidate_line(c: PsychologistCandidate) -> str:
    return (
        f"- ID: {c.id}, Name: {c.display_name or 'n/a'}, "
        f"Experience: {c.experience_years} years, "
        f"Specializations: {', '.join(c.specialization_keys) or 'none'}, "
        f"Languages: {', '.join(c.languages) or 'none'}, "
        f"Formats: {', '.join(c.work_formats) or 'none'}, "
        f"Price: {c.price_per_session}"
    )


def build_ranking_prompt(q: QuestionnaireSubmit, candidates: list[PsychologistCandidate]) -> str:
    psych_list = "\n".join(_candidate_line(c) for c in candidates)
    return (
        "CLIENT INFORMATION:\n"
        f"- Gender: {q.gender}\n"
        f"- Age: {q.age}\n"
        f"- Preferred Language: {q.preferred_language}\n"
        f"- Main Issue: {q.main_issue}\n"
        f"- Urgency Level: {q.urgency_level}\n"
        f"- Format Preference: {q.format_preference}\n"
        f"- Additional Info: {q.additional_info or 'None'}\n\n"
        "AVAILABLE PSYCHOLOGISTS:\n"
        f"{psych_list}\n\n"
        "Please select the top 3 most suitable psychologists for this client and explain why."
    )
