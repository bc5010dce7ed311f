from aiogram.fsm.state import StatesGroup, State


class QuizFlow(StatesGroup):
    choosing_lesson = State()
    choosing_question_count = State()
    answering_question = State()
    viewing_results = State()
