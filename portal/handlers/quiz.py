import logging
from dataclasses import asdict

from aiogram import Router, F
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from portal.config import MAX_ATTEMPTS
from portal.db.models import NormalizedQuestion
from portal.exceptions import PortalError
from portal.keyboards.main_menu import main_menu_keyboard
from portal.keyboards.quiz_kb import (
    lesson_choice_keyboard, question_count_keyboard, question_keyboard, results_keyboard,
)
from portal.services.catalog import list_lessons
from portal.services.quiz_service import (
    DENY_PREVIOUS_LESSON, SAVE_OK, SAVE_LIMIT_REACHED,
    build_attempt_result, check_quiz_access, prepare_quiz, save_attempt,
)
from portal.states.quiz_states import QuizFlow

logger = logging.getLogger(__name__)

router = Router()

UNANSWERED = -1
MESSAGE_LIMIT = 4000


def _load_questions(data: dict) -> list[NormalizedQuestion]:
    return [NormalizedQuestion(**q) for q in data.get("questions", [])]


@router.callback_query(F.data == "start_quiz")
async def choose_lesson(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    await state.set_state(QuizFlow.choosing_lesson)
    lessons = await list_lessons(callback.from_user.id)
    await callback.message.edit_text(
        "📝 اختبرني\n\nاختر الدرس الذي تريد اختباره:",
        reply_markup=lesson_choice_keyboard(lessons),
    )
    await callback.answer()


@router.callback_query(F.data.startswith("quiz_lesson:"))
async def lesson_selected(callback: CallbackQuery, state: FSMContext):
    lesson_id = int(callback.data.split(":")[1])
    await state.update_data(lesson_id=lesson_id)
    await state.set_state(QuizFlow.choosing_question_count)
    await callback.message.edit_text(
        f"📝 الدرس {lesson_id}\n\nكم عدد الأسئلة؟",
        reply_markup=question_count_keyboard(),
    )
    await callback.answer()


@router.callback_query(QuizFlow.choosing_question_count, F.data.startswith("count:"))
async def count_selected(callback: CallbackQuery, state: FSMContext):
    count = int(callback.data.split(":")[1])
    data = await state.get_data()
    lesson_id = data["lesson_id"]
    await callback.answer()

    access = await check_quiz_access(callback.from_user.id, lesson_id)
    if not access.allowed:
        if access.reason == DENY_PREVIOUS_LESSON:
            text = "⛔ غير مسموح: يجب إكمال اختبار الدرس السابق أولاً."
        else:
            text = f"⛔ غير مسموح: لقد وصلت للحد الأقصى من محاولات الاختبار لهذا الدرس ({MAX_ATTEMPTS} محاولات)."
        await state.clear()
        await callback.message.edit_text(text, reply_markup=main_menu_keyboard())
        return

    try:
        questions = await prepare_quiz(lesson_id, count)
    except PortalError as e:
        logger.error("Could not load questions for lesson %s: %s", lesson_id, e)
        await state.clear()
        await callback.message.edit_text("😞 تعذر جلب أسئلة الدرس.", reply_markup=main_menu_keyboard())
        return

    if not questions:
        await state.clear()
        await callback.message.edit_text("لا توجد أسئلة لهذا الدرس.", reply_markup=main_menu_keyboard())
        return

    await state.update_data(
        question_count=count,
        questions=[asdict(q) for q in questions],
        answers=[UNANSWERED] * len(questions),
        current_index=0,
    )
    await state.set_state(QuizFlow.answering_question)
    await _send_current_question(callback.message, state)


async def _send_current_question(message: Message, state: FSMContext, edit: bool = False):
    data = await state.get_data()
    questions = _load_questions(data)
    index = data["current_index"]
    q = questions[index]

    text = f"❓ السؤال {index + 1} من {len(questions)}\n\n{q.question_text}"
    keyboard = question_keyboard(q.options, data["answers"][index], index, q.hint is not None)
    if edit:
        await message.edit_text(text, reply_markup=keyboard)
    else:
        await message.answer(text, reply_markup=keyboard)


@router.callback_query(QuizFlow.answering_question, F.data.startswith("ans:"))
async def answer_selected(callback: CallbackQuery, state: FSMContext):
    selected = int(callback.data.split(":")[1])
    data = await state.get_data()
    index = data["current_index"]
    answers = list(data["answers"])
    answers[index] = selected
    await callback.answer()

    if index < len(answers) - 1:
        await state.update_data(answers=answers, current_index=index + 1)
        await _send_current_question(callback.message, state, edit=True)
        return

    if UNANSWERED in answers:
        await state.update_data(answers=answers, current_index=answers.index(UNANSWERED))
        await callback.message.answer("أجب عن جميع الأسئلة قبل إنهاء الاختبار.")
        await _send_current_question(callback.message, state)
        return

    await state.update_data(answers=answers)
    await show_results(callback.message, state, callback.from_user.id)


@router.callback_query(QuizFlow.answering_question, F.data == "quiz_prev")
async def previous_question(callback: CallbackQuery, state: FSMContext):
    data = await state.get_data()
    index = data["current_index"]
    await callback.answer()
    if index > 0:
        await state.update_data(current_index=index - 1)
        await _send_current_question(callback.message, state, edit=True)


@router.callback_query(QuizFlow.answering_question, F.data == "quiz_hint")
async def show_hint(callback: CallbackQuery, state: FSMContext):
    data = await state.get_data()
    q = _load_questions(data)[data["current_index"]]
    await callback.answer()
    await callback.message.answer(f"💡 {q.hint or 'لا يوجد تلميح لهذا السؤال.'}")


@router.callback_query(F.data == "cancel_quiz")
async def cancel_quiz(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    await callback.message.answer(
        "تم إلغاء الاختبار. العودة إلى القائمة الرئيسية.",
        reply_markup=main_menu_keyboard(),
    )
    await callback.answer()


def _split_message(text: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """Split on line breaks so every part fits in one Telegram message."""
    parts, current = [], ""
    for line in text.split("\n"):
        if current and len(current) + len(line) + 1 > limit:
            parts.append(current)
            current = line
        else:
            current = f"{current}\n{line}" if current else line
    parts.append(current)
    return parts


def format_results(result) -> str:
    lines = [
        f"📊 النتيجة - {result.percentage}%\n",
        f"الأسئلة: {result.total}",
        f"الإجابات الصحيحة: {result.correct_count}",
        f"النسبة: {result.percentage}%\n",
    ]
    for i, a in enumerate(result.answers, 1):
        options = a.question.options
        chosen = options[a.selected_index] if 0 <= a.selected_index < len(options) else "غير مختارة"
        mark = "✅" if a.is_correct else "❌"
        lines.append(
            f"{i}. {a.question.question_text}\n"
            f"   {mark} إجابتك: {chosen}\n"
            f"   الإجابة الصحيحة: {a.question.correct_text or '—'}"
        )
    return "\n".join(lines)


async def show_results(message: Message, state: FSMContext, user_id: int):
    """Show the score, then try to save it without blocking the display."""
    data = await state.get_data()
    questions = _load_questions(data)
    result = build_attempt_result(questions, data["answers"])

    await state.set_state(QuizFlow.viewing_results)
    parts = _split_message(format_results(result))
    for part in parts[:-1]:
        await message.answer(part)
    await message.answer(parts[-1], reply_markup=results_keyboard())

    outcome = await save_attempt(user_id, data["lesson_id"], result)
    if outcome == SAVE_OK:
        await message.answer(f"✅ تم حفظ النتيجة. درجتك: {result.percentage}%")
    elif outcome == SAVE_LIMIT_REACHED:
        await message.answer(
            f"⚠️ لا يمكن حفظ نتيجة جديدة لأن الحد الأقصى للمحاولات ({MAX_ATTEMPTS}) قد تم الوصول إليه."
        )
    else:
        await message.answer("⚠️ تعذر حفظ نتيجة الاختبار تلقائياً.")


@router.callback_query(QuizFlow.viewing_results, F.data == "quiz_retake")
async def retake_quiz(callback: CallbackQuery, state: FSMContext):
    data = await state.get_data()
    await callback.answer()
    try:
        questions = await prepare_quiz(data["lesson_id"], data["question_count"])
    except PortalError as e:
        logger.error("Could not reload questions for lesson %s: %s", data["lesson_id"], e)
        await state.clear()
        await callback.message.answer("😞 تعذر جلب أسئلة الدرس.", reply_markup=main_menu_keyboard())
        return

    await state.update_data(
        questions=[asdict(q) for q in questions],
        answers=[UNANSWERED] * len(questions),
        current_index=0,
    )
    await state.set_state(QuizFlow.answering_question)
    await _send_current_question(callback.message, state)
