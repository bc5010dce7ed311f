from aiogram.fsm.state import StatesGroup, State


class ChatFlow(StatesGroup):
    chatting = State()
