from .user import User, SubscriptionPlan
from .questionnaire import Questionnaire
from .question import Question, QuestionType, CHOICE_TYPES
from .qr_code import QRCode, ErrorCorrectionLevel
from .review import Review, Sentiment, ReviewStatus
from .export_record import ExportRecord
