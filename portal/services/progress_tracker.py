from portal.config import LESSONS_COUNT
from portal.db.queries import get_user_results


def compute_stats(results: list[dict], lessons_count: int = LESSONS_COUNT) -> dict:
    """Dashboard numbers for a list of result rows."""
    total = len(results)
    scores = [r["score_percentage"] for r in results]
    completed = len({r["lesson_id"] for r in results})
    return {
        "total_quizzes": total,
        "average_score": round(sum(scores) / total) if total else 0,
        "best_score": round(max(scores)) if total else 0,
        "completed_lessons": completed,
        "completion_percent": round(completed / lessons_count * 100) if lessons_count else 0,
    }


def lesson_label(result: dict) -> str:
    return result.get("lesson_name") or f"الدرس {result['lesson_id']}"


async def format_dashboard(user_id: int, recent: int = 5) -> str:
    """Stats and most recent results as a readable text."""
    results = await get_user_results(user_id)

    if not results:
        return "📭 لم تُكمل أي اختبار بعد. ابدأ أول اختبار الآن!"

    stats = compute_stats(results)
    lines = [
        "📊 لوحة التقدم\n",
        f"الاختبارات المكتملة: {stats['total_quizzes']}",
        f"متوسط الدرجات: {stats['average_score']}%",
        f"أفضل درجة: {stats['best_score']}%",
        f"الدروس المكتملة: {stats['completed_lessons']} من {LESSONS_COUNT} ({stats['completion_percent']}%)",
        "\n📋 آخر النتائج:",
    ]
    for r in results[:recent]:
        lines.append(
            f"• {lesson_label(r)} — {r['correct_answers']}/{r['total_questions']} "
            f"({r['score_percentage']}%) · {r['completed_at'][:10]}"
        )

    return "\n".join(lines)
