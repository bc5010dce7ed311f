"""FSM states for the sign-in flow."""
from aiogram.fsm.state import State, StatesGroup


class SignIn(StatesGroup):
    """States for first sign-in."""

    entering_student_id = State()   # Waiting for the student to type their ID
