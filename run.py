"""Main entry point for the learning portal bot."""
import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import BotCommand

from portal.config import settings
from portal.db.database import get_db, close_db
from portal.handlers import admin, start, lessons, quiz, dashboard, chat
from portal.middleware.access import AccessControlMiddleware

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


async def main():
    if not settings.BOT_TOKEN:
        logger.error("BOT_TOKEN is not set. Create a .env file from .env.example")
        sys.exit(1)

    logger.info("Initializing database at %s", settings.DB_PATH)
    await get_db()

    bot = Bot(token=settings.BOT_TOKEN)
    dp = Dispatcher(storage=MemoryStorage())

    dp.message.outer_middleware(AccessControlMiddleware())
    dp.callback_query.outer_middleware(AccessControlMiddleware())

    # admin first so its commands are not swallowed by state handlers
    dp.include_router(admin.router)
    dp.include_router(start.router)
    dp.include_router(lessons.router)
    dp.include_router(quiz.router)
    dp.include_router(dashboard.router)
    dp.include_router(chat.router)

    await bot.set_my_commands([
        BotCommand(command="start", description="القائمة الرئيسية"),
        BotCommand(command="overview", description="نظرة عامة على الطلاب (مدير)"),
        BotCommand(command="allow", description="إضافة مستخدم (مدير)"),
        BotCommand(command="block", description="حظر مستخدم (مدير)"),
        BotCommand(command="users", description="قائمة المستخدمين (مدير)"),
    ])

    try:
        logger.info("Starting bot polling...")
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        await bot.session.close()
        await close_db()
        logger.info("Bot stopped")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
