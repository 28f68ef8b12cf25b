# bot.py
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from game_engine import GameEngine, Outcome
from presenter import ButtonColor, MessageBuilder, RenderModel, decode_slot_payload
from records import LEADERBOARD_LIMIT, add_result, get_best_time, get_leaderboard, init_db
from sessions import ClickGuard, SessionStore

load_dotenv()
BOT_TOKEN = os.getenv("BOT_TOKEN")
DB_PATH = os.getenv("DB_PATH", "numbers.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logger = logging.getLogger(__name__)

ENGINE = GameEngine(SessionStore(), ClickGuard())

# Telegram buttons have no colour, so the colour goes into the label
COLOR_MARKS = {
    ButtonColor.NEUTRAL: "",
    ButtonColor.FOUND: "✅",
    ButtonColor.WRONG: "❌",
}


# ----------------- Render model -> Telegram -----------------
def build_keyboard(model: RenderModel) -> Optional[InlineKeyboardMarkup]:
    if not model.has_buttons:
        return None
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(f"{COLOR_MARKS[b.color]}{b.label}", callback_data=b.payload)
                for b in row
            ]
            for row in model.rows
        ]
    )


def make_deliver(query):
    async def deliver(model: RenderModel) -> None:
        # Delivery is fire-and-forget: the session already holds the new state.
        try:
            await query.edit_message_text(text=model.text, reply_markup=build_keyboard(model))
        except TelegramError as e:
            logger.warning("Could not update board message: %s", e)
    return deliver


async def send_new_board(update: Update) -> None:
    user = update.effective_user
    model = ENGINE.start_game(user.id)
    sent = await update.effective_message.reply_text(model.text, reply_markup=build_keyboard(model))
    ENGINE.bind_message(user.id, sent.chat_id, sent.message_id)


# ----------------- Telegram Handlers -----------------
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.effective_message.reply_text(MessageBuilder.welcome())
    await send_new_board(update)


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.effective_message.reply_text(MessageBuilder.help_text())


async def cmd_new(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await send_new_board(update)


async def cmd_stop(update: Update, context: ContextTypes.DEFAULT_TYPE):
    had_game = ENGINE.abandon(update.effective_user.id)
    await update.effective_message.reply_text(MessageBuilder.abandoned(had_game))


async def cmd_best(update: Update, context: ContextTypes.DEFAULT_TYPE):
    best = await get_best_time(DB_PATH, update.effective_user.id)
    await update.effective_message.reply_text(MessageBuilder.best_time(best))


async def cmd_leaderboard(update: Update, context: ContextTypes.DEFAULT_TYPE):
    rows = await get_leaderboard(DB_PATH, limit=LEADERBOARD_LIMIT)
    await update.effective_message.reply_text(MessageBuilder.leaderboard(rows))


# Any plain text in a private chat deals a fresh board
async def message_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if update.effective_message is None or update.effective_user is None:
        return
    await send_new_board(update)


async def on_slot_click(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    # Answer first so the button stops spinning
    try:
        await query.answer()
    except TelegramError as e:
        logger.warning("Could not answer callback query: %s", e)

    slot = decode_slot_payload(query.data)
    if slot is None:
        logger.debug("Ignoring malformed payload %r", query.data)
        return
    if query.message is None:
        logger.debug("Ignoring click on an inaccessible message")
        return
    # Only the board message bound to the clicking player's current session counts
    board_message = (query.message.chat_id, query.message.message_id)
    user = query.from_user
    result = await ENGINE.submit_click(user.id, slot, make_deliver(query), board_message)
    if result is None or result.outcome is not Outcome.COMPLETED:
        return

    is_best = await add_result(DB_PATH, user.id, user.first_name, result.elapsed)
    if is_best:
        try:
            await context.bot.send_message(
                chat_id=update.effective_chat.id,
                text=MessageBuilder.personal_best(result.elapsed),
            )
        except TelegramError as e:
            logger.warning("Could not send personal best message: %s", e)


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE):
    logger.error("Error while handling update %s", update, exc_info=context.error)


async def on_startup(app: Application) -> None:
    await init_db(DB_PATH)
    logger.info("Results database ready at %s", DB_PATH)


# ----------------- main -----------------
def build_app(token: str) -> Application:
    # concurrent_updates: one player's penalty delay must not hold up everyone else
    app = (
        ApplicationBuilder()
        .token(token)
        .concurrent_updates(True)
        .post_init(on_startup)
        .build()
    )
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("new", cmd_new))
    app.add_handler(CommandHandler("stop", cmd_stop))
    app.add_handler(CommandHandler("best", cmd_best))
    app.add_handler(CommandHandler("leaderboard", cmd_leaderboard))
    app.add_handler(CallbackQueryHandler(on_slot_click, pattern=r"^slot:"))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND & filters.ChatType.PRIVATE, message_handler))
    app.add_error_handler(on_error)
    return app


def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logging.getLogger("httpx").setLevel(logging.WARNING)
    if not BOT_TOKEN:
        logger.error("Set your bot token in the BOT_TOKEN environment variable")
        return
    app = build_app(BOT_TOKEN)
    logger.info("bot start polling...")
    app.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
