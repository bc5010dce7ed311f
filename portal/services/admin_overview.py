from portal.db.queries import get_all_profiles, get_results_for_users, get_user_results
from portal.services.progress_tracker import lesson_label


async def student_overview() -> list[dict]:
    """One row per signed-in student with quiz aggregates."""
    profiles = await get_all_profiles()
    results = await get_results_for_users([p["user_id"] for p in profiles])

    rows = []
    for p in profiles:
        own = [r for r in results if r["user_id"] == p["user_id"]]
        total = len(own)
        rows.append({
            "user_id": p["user_id"],
            "full_name": p["full_name"],
            "student_id": p["student_id"],
            "grade": p["grade"],
            "total_quizzes": total,
            "average_score": round(sum(r["score_percentage"] for r in own) / total) if total else 0,
            "completed_lessons": len({r["lesson_id"] for r in own}),
            "last_taken": max((r["completed_at"] for r in own), default=None),
        })
    return rows


def format_overview(rows: list[dict]) -> str:
    if not rows:
        return "لا يوجد طلاب مسجلون بعد."

    lines = ["👥 نظرة عامة على الطلاب:\n"]
    for row in rows:
        name = row["full_name"] or row["student_id"] or str(row["user_id"])
        last = row["last_taken"][:10] if row["last_taken"] else "—"
        lines.append(
            f"• {name} ({row['student_id'] or '—'}) — اختبارات: {row['total_quizzes']}, "
            f"متوسط: {row['average_score']}%, دروس: {row['completed_lessons']}, آخر اختبار: {last}"
        )
    return "\n".join(lines)


async def format_student_details(user_id: int) -> str:
    """All results of one student, newest first."""
    results = await get_user_results(user_id)
    if not results:
        return "لا توجد نتائج لهذا الطالب."

    lines = [f"📑 نتائج الطالب {user_id}:\n"]
    for r in results:
        lines.append(
            f"• {lesson_label(r)} - {r['score_percentage']}% "
            f"({r['correct_answers']}/{r['total_questions']}, "
            f"أسئلة محفوظة: {len(r['questions_data'])}) · {r['completed_at'][:16]}"
        )
    return "\n".join(lines)
