"""Configuration settings using pydantic-settings."""
import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Telegram Bot
    BOT_TOKEN: str = Field(default="", description="Telegram Bot API token")
    ADMIN_ID: Optional[int] = Field(
        default=None,
        description="Telegram ID of the primary administrator (always allowed)"
    )

    # Database
    DB_PATH: str = Field(
        default="data/learning_portal.db",
        description="Path to SQLite database file"
    )

    # Generation service (any OpenAI-compatible endpoint)
    LLM_BASE_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="Base URL of the completion service"
    )
    LLM_API_KEY: str = Field(default="", description="API key for the completion service")
    LLM_MODEL: str = Field(default="gemini-2.0-flash", description="Model name")
    LLM_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature")
    LLM_MAX_TOKENS: int = Field(
        default=4096,
        description="Output token budget for the primary request"
    )
    LLM_CONTINUATION_MAX_TOKENS: int = Field(
        default=2048,
        description="Output token budget for each continuation request"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    class Config:
        """Pydantic config."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()

if settings.ADMIN_ID is None:
    logger.warning("ADMIN_ID is not set, only whitelisted users can use the bot")


# Canonical true/false option labels
TRUE_TOKEN = "صح"
FALSE_TOKEN = "خطأ"
BOOLEAN_OPTIONS = (TRUE_TOKEN, FALSE_TOKEN)

# A reply "ends cleanly" when its last character is one of these
TERMINAL_MARKS = ".!?؟…"

# Chat protocol
CHUNK_SIZE = 2000
CONTEXT_TURNS = 10
MAX_CONTINUATIONS = 3
CONTINUATION_BACKOFF = 0.3
POLL_ATTEMPTS = 4
POLL_INTERVAL = 0.7
HISTORY_LIMIT = 100

# Quiz policy
MAX_ATTEMPTS = 3
QUESTION_COUNTS = [5, 10, 15, 20]
DEFAULT_QUESTION_COUNT = 10
DEFAULT_GRADE = "الثالث المتوسط"

# Lessons shipped with a local question bank
LOCAL_BANK_LESSONS = {1, 2, 3, 4, 5, 6}
LESSONS_COUNT = 6

LESSONS = [
    {
        "lesson_number": 1,
        "lesson_title": "القوائم وصفوف البيانات",
        "lesson_description": "إنشاء القوائم والصفوف في بايثون والوصول إلى عناصرها وتعديلها.",
    },
    {
        "lesson_number": 2,
        "lesson_title": "المكتبات البرمجية",
        "lesson_description": "استيراد المكتبات واستخدام الدوال الجاهزة مثل math و random.",
    },
    {
        "lesson_number": 3,
        "lesson_title": "بناء الواجهات الرسومية",
        "lesson_description": "بناء نوافذ بسيطة بمكتبة tkinter وإضافة الأزرار والحقول.",
    },
    {
        "lesson_number": 4,
        "lesson_title": "القواميس",
        "lesson_description": "تخزين البيانات على شكل مفتاح وقيمة والبحث فيها وتحديثها.",
    },
    {
        "lesson_number": 5,
        "lesson_title": "القوائم المتداخلة",
        "lesson_description": "تمثيل الجداول بقوائم داخل قوائم والمرور على عناصرها.",
    },
    {
        "lesson_number": 6,
        "lesson_title": "الملفات",
        "lesson_description": "فتح الملفات النصية والقراءة منها والكتابة فيها.",
    },
]
