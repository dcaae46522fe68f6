"""
Frases motivadoras para a notificação de progresso.
Uma frase é escolhida uniformemente ao acaso do pool do idioma (único elemento não determinístico da mensagem).
"""

import random

from backend.locale import LangCode

MOTIVATIONAL_LINES: dict[LangCode, tuple[str, ...]] = {
    "ru": (
        "💚 Каждая просмотренная инициатива — шаг к доброму делу!",
        "🌱 Маленькие шаги приводят к большим переменам.",
        "🤝 Спасибо, что интересуетесь инициативами поддержки!",
        "✨ Ваше внимание помогает инициативам найти своих героев.",
        "🔥 Так держать! Помогать — это здорово.",
        "🌟 Добро начинается с интереса. Продолжайте!",
        "🙌 Вы уже делаете мир немного лучше.",
    ),
    "en": (
        "💚 Every initiative you view is a step towards a good deed!",
        "🌱 Small steps lead to big changes.",
        "🤝 Thank you for your interest in support initiatives!",
        "✨ Your attention helps initiatives find their heroes.",
        "🔥 Keep it up! Helping is great.",
        "🌟 Kindness starts with curiosity. Keep going!",
        "🙌 You are already making the world a little better.",
    ),
}


def pick_motivational_line(lang: LangCode, rng: random.Random | None = None) -> str:
    pool = MOTIVATIONAL_LINES.get(lang) or MOTIVATIONAL_LINES["ru"]
    return (rng or random).choice(pool)
