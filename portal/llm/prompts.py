SYSTEM_PROMPT = """أنت مساعد ذكي متخصص في تعليم البرمجة لطلاب الصف الثالث المتوسط.
تحدث باللغة العربية الفصحى بأسلوب بسيط وواضح.
اختصاصك شرح مفاهيم البرمجة بلغة Python ومساعدة الطالب في حل مشكلاته البرمجية.

المنهج يشمل:
1. القوائم وصفوف البيانات
2. المكتبات البرمجية
3. بناء الواجهات الرسومية بلغة بايثون
4. القواميس
5. القوائم المتداخلة
6. الملفات

قدم شروحات واضحة مع أمثلة عملية. إذا سأل الطالب سؤالاً خارج نطاق البرمجة فوجهه بلطف إلى دروس البرمجة."""

FALLBACK_REPLY = "عذراً، لم أتمكن من فهم سؤالك. هل يمكنك إعادة صياغته؟"
ERROR_REPLY = "عذراً، حدث خطأ تقني. الرجاء المحاولة مرة أخرى أو طرح سؤالك بطريقة مختلفة."


def render_context(turns: list[dict]) -> str:
    """Render stored turns (chronological) as Student:/Assistant: lines."""
    lines = []
    for turn in turns:
        if turn["message_type"] == "user":
            lines.append(f"Student: {turn.get('message') or ''}")
        else:
            lines.append(f"Assistant: {turn.get('response') or turn.get('message') or ''}")
    return "\n".join(lines)


def build_chat_prompt(context: str, message: str) -> str:
    if context:
        return f"{SYSTEM_PROMPT}\n\nسياق المحادثة السابقة:\n{context}\n\nالسؤال الحالي: {message}"
    return f"{SYSTEM_PROMPT}\n\nالسؤال: {message}"


def build_continuation_prompt(context: str, message: str, partial_answer: str) -> str:
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f"سياق المحادثة السابقة:\n{context}\n\n"
        f"السؤال الحالي: {message}\n\n"
        f"رد المساعد السابق (مقطوع):\n{partial_answer}\n\n"
        "أكمل الرد السابق من حيث انتهى، ولا تكرر المقدمة أو السياق."
    )
