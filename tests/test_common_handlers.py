from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from aiogram.types import InlineKeyboardMarkup

from kharcha.handlers.common import handle_button, handle_message, send_reply
from kharcha.handlers.keyboards import Reply, after_add_keyboard


def _message(text: str = "balance"):
    msg = AsyncMock()
    msg.chat.id = 42
    msg.text = text
    return msg


async def test_send_text_reply():
    msg = _message()
    await send_reply(msg, Reply("hi", after_add_keyboard()))
    args, kwargs = msg.answer.call_args
    assert args == ("hi",)
    assert isinstance(kwargs["reply_markup"], InlineKeyboardMarkup)


async def test_send_photo_reply_removes_file(tmp_path):
    chart = tmp_path / "chart.png"
    chart.write_bytes(b"png")
    msg = _message()
    await send_reply(msg, Reply("caption", photo=str(chart)))
    msg.answer_photo.assert_awaited_once()
    assert msg.answer_photo.call_args.kwargs["caption"] == "caption"
    assert not Path(chart).exists()


async def test_message_handler_routes_through_dispatch():
    msg = _message("200 lunch")
    await handle_message(msg)
    assert "Expense Added" in msg.answer.call_args.args[0]


async def test_callback_handler():
    callback = AsyncMock()
    callback.data = "balance"
    callback.message.chat.id = 42
    with patch("kharcha.handlers.common.handle_callback", AsyncMock(return_value=Reply("💰 Balance"))) as dispatch:
        await handle_button(callback)
    callback.answer.assert_awaited_once()
    dispatch.assert_awaited_once_with("balance")
    callback.message.answer.assert_awaited_once()


async def test_callback_answered_after_reply():
    callback = AsyncMock()
    callback.data = "balance"
    callback.message.chat.id = 42
    order: list[str] = []
    callback.message.answer.side_effect = lambda *a, **kw: order.append("reply")
    callback.answer.side_effect = lambda *a, **kw: order.append("answer")
    with patch("kharcha.handlers.common.handle_callback", AsyncMock(return_value=Reply("💰 Balance"))):
        await handle_button(callback)
    assert order == ["reply", "answer"]


async def test_failed_callback_left_open_for_error_alert():
    callback = AsyncMock()
    callback.data = "balance"
    callback.message.chat.id = 42
    with patch("kharcha.handlers.common.handle_callback", AsyncMock(side_effect=RuntimeError("boom"))):
        with pytest.raises(RuntimeError):
            await handle_button(callback)
    callback.answer.assert_not_awaited()
