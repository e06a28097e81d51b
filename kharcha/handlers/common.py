import logging
import time
from pathlib import Path

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, FSInputFile, Message

from kharcha.handlers.dispatch import handle_callback, handle_text
from kharcha.handlers.keyboards import Reply, main_keyboard, to_markup
from kharcha.services.report_service import HELP_TEXT

logger = logging.getLogger(__name__)
router = Router()


async def send_reply(message: Message, reply: Reply) -> None:
    markup = to_markup(reply.keyboard)
    if reply.photo:
        try:
            await message.answer_photo(FSInputFile(reply.photo), caption=reply.text, reply_markup=markup)
        finally:
            Path(reply.photo).unlink(missing_ok=True)
    else:
        await message.answer(reply.text, reply_markup=markup)


@router.message(CommandStart())
@router.message(Command("help"))
async def cmd_help(message: Message):
    await message.answer(HELP_TEXT, reply_markup=to_markup(main_keyboard()))


@router.message(F.text)
async def handle_message(message: Message):
    started = time.monotonic()
    reply = await handle_text(message.text)
    await send_reply(message, reply)
    logger.info(
        "Handled message",
        extra={
            "chat_id": message.chat.id,
            "handler": "text",
            "latency_ms": round((time.monotonic() - started) * 1000),
        },
    )


@router.callback_query(F.data)
async def handle_button(callback: CallbackQuery):
    if callback.message is None:
        await callback.answer()
        return
    reply = await handle_callback(callback.data)
    await send_reply(callback.message, reply)
    # Answered last: the error boundary alert needs an unanswered query.
    await callback.answer()
    logger.info("Handled callback", extra={"chat_id": callback.message.chat.id, "handler": callback.data})
