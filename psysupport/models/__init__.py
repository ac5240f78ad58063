from psysupport.models.user import User
from psysupport.models.psychologist import Psychologist, Specialization, psychologist_specializations
from psysupport.models.availability import Availability
from psysupport.models.session import Session, SessionStatus
from psysupport.models.questionnaire import QuestionnaireResponse

__all__ = [
    "User",
    "Psychologist",
    "Specialization",
    "psychologist_specializations",
    "Availability",
    "Session",
    "SessionStatus",
    "QuestionnaireResponse",
]
