"""Tests for the bot message handler and background job processing."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import Chat, Message, MessageEntity, Update, User

import main
from errors import ExtractionError
from models import ExtractedAudio


def make_update(text, user_id=7, chat_id=42):
    update = MagicMock()
    update.effective_user.id = user_id
    update.effective_user.first_name = 'Ada'
    update.effective_chat.id = chat_id
    message = MagicMock()
    message.text = text
    message.reply_text = AsyncMock()
    update.message = message
    update.effective_message = message
    return update


def make_context():
    context = MagicMock()
    context.application.create_task = MagicMock()
    return context


@pytest.fixture
def bot():
    return main.AudioRelayBot(bot_token='123456:TEST-TOKEN')


# =============================================================================
# Test: Message handling
# =============================================================================


@pytest.mark.asyncio
class TestHandleMessage:

    async def test_url_spawns_background_job(self, bot, monkeypatch):
        monkeypatch.setattr(main, 'ALLOWED_USER_IDS', [])
        update = make_update('listen to this https://www.youtube.com/watch?v=dQw4w9WgXcQ')
        context = make_context()
        bot.process_job = MagicMock(return_value='job-coroutine')

        await bot.handle_message(update, context)

        bot.process_job.assert_called_once()
        url, chat_id, job_id = bot.process_job.call_args.args
        assert url == 'https://www.youtube.com/watch?v=dQw4w9WgXcQ'
        assert chat_id == 42
        assert len(job_id) == 8
        context.application.create_task.assert_called_once()
        assert context.application.create_task.call_args.args[0] == 'job-coroutine'
        assert job_id in update.message.reply_text.call_args.args[0]

    async def test_text_without_url_gets_hint(self, bot, monkeypatch):
        monkeypatch.setattr(main, 'ALLOWED_USER_IDS', [])
        update = make_update('hello there')
        context = make_context()

        await bot.handle_message(update, context)

        context.application.create_task.assert_not_called()
        assert 'valid URL' in update.message.reply_text.call_args.args[0]

    async def test_unlisted_user_is_rejected(self, bot, monkeypatch):
        monkeypatch.setattr(main, 'ALLOWED_USER_IDS', [1, 2])
        update = make_update('https://example.com/a', user_id=7)
        context = make_context()

        await bot.handle_message(update, context)

        context.application.create_task.assert_not_called()
        assert 'not allowed' in update.message.reply_text.call_args.args[0]

    async def test_listed_user_is_accepted(self, bot, monkeypatch):
        monkeypatch.setattr(main, 'ALLOWED_USER_IDS', [7])
        update = make_update('https://example.com/a', user_id=7)
        context = make_context()
        bot.process_job = MagicMock(return_value=None)

        await bot.handle_message(update, context)

        context.application.create_task.assert_called_once()


# =============================================================================
# Test: Background job
# =============================================================================


@pytest.mark.asyncio
class TestProcessJob:

    async def test_extracts_then_delivers(self, bot):
        bot.extractor.extract = AsyncMock(return_value=ExtractedAudio(
            path='/downloads/Song [abc].mp3', title='Song', performer='Artist'
        ))
        bot.delivery.deliver = AsyncMock()

        await bot.process_job('https://example.com/a', 42, 'abc')

        bot.extractor.extract.assert_awaited_once_with('https://example.com/a', 'abc')
        job = bot.delivery.deliver.call_args.args[0]
        assert job.source_path == '/downloads/Song [abc].mp3'
        assert job.title == 'Song'
        assert job.performer == 'Artist'
        assert job.chat_id == 42
        assert job.bot_token == '123456:TEST-TOKEN'
        assert job.job_id == 'abc'

    async def test_extraction_error_is_logged(self, bot, caplog):
        bot.extractor.extract = AsyncMock(side_effect=ExtractionError('Unsupported URL'))
        bot.delivery.deliver = AsyncMock()

        await bot.process_job('https://example.com/a', 42, 'abc')

        bot.delivery.deliver.assert_not_called()
        assert 'Extraction failed' in caplog.text

    async def test_unexpected_error_does_not_escape(self, bot, caplog):
        bot.extractor.extract = AsyncMock(return_value=ExtractedAudio(path='/x.mp3', title='x'))
        bot.delivery.deliver = AsyncMock(side_effect=RuntimeError('boom'))

        await bot.process_job('https://example.com/a', 42, 'abc')

        assert 'Unexpected error' in caplog.text


@pytest.mark.asyncio
async def test_start_command_replies(bot):
    update = make_update('/start')

    await bot.start_command(update, make_context())

    update.message.reply_text.assert_awaited_once()


# =============================================================================
# Test: Updates that are not new messages
# =============================================================================


def real_message(text, chat_type=Chat.PRIVATE, with_user=True, entities=None):
    return Message(
        message_id=1,
        date=datetime.now(timezone.utc),
        chat=Chat(id=42, type=chat_type),
        from_user=User(id=7, first_name='Ada', is_bot=False) if with_user else None,
        text=text,
        entities=entities,
    )


class TestUrlMessageFilter:

    def test_matches_new_message(self):
        update = Update(1, message=real_message('https://example.com/a'))
        assert main.URL_MESSAGE_FILTER.check_update(update)

    def test_ignores_edited_message(self):
        update = Update(1, edited_message=real_message('https://example.com/a'))
        assert not main.URL_MESSAGE_FILTER.check_update(update)

    def test_ignores_channel_post(self):
        post = real_message('https://example.com/a', chat_type=Chat.CHANNEL, with_user=False)
        assert not main.URL_MESSAGE_FILTER.check_update(Update(1, channel_post=post))

    def test_ignores_commands(self):
        command = MessageEntity(type=MessageEntity.BOT_COMMAND, offset=0, length=6)
        message = real_message('/start', entities=[command])
        assert not main.URL_MESSAGE_FILTER.check_update(Update(1, message=message))


@pytest.mark.asyncio
class TestHandleNonMessageUpdates:
    """The handler returns quietly for updates without a new message or sender."""

    async def test_edited_message_is_ignored(self, bot, monkeypatch):
        monkeypatch.setattr(main, 'ALLOWED_USER_IDS', [])
        update = Update(1, edited_message=real_message('https://example.com/a'))
        context = make_context()

        await bot.handle_message(update, context)

        context.application.create_task.assert_not_called()

    async def test_channel_post_is_ignored(self, bot, monkeypatch):
        monkeypatch.setattr(main, 'ALLOWED_USER_IDS', [])
        post = real_message('https://example.com/a', chat_type=Chat.CHANNEL, with_user=False)
        context = make_context()

        await bot.handle_message(Update(1, channel_post=post), context)

        context.application.create_task.assert_not_called()
