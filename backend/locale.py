"""Textos do bot por idioma (ru por defeito, en)."""

from typing import Literal

# Idiomas suportados
LangCode = Literal["ru", "en"]
SUPPORTED_LANGS: list[LangCode] = ["ru", "en"]
DEFAULT_LANG: LangCode = "ru"


def normalize_lang(lang: str | None) -> LangCode:
    """Idioma suportado a partir de config/pedido (ex.: "EN", "ru-RU"); resto → ru."""
    if not lang:
        return DEFAULT_LANG
    short = lang.strip().lower().replace("_", "-").split("-")[0]
    if short in SUPPORTED_LANGS:
        return short  # type: ignore
    return DEFAULT_LANG


def placeholder_user_name(lang: LangCode, user_id: int) -> str:
    """Nome usado no ranking quando o utilizador nunca fez bot_started."""
    if lang == "en":
        return f"User {user_id}"
    return f"Пользователь {user_id}"


# --- bot_started ---

def welcome_message(lang: LangCode, name: str) -> str:
    if lang == "en":
        return "\n\n".join([
            f"This bot supports initiatives for the border regions. Hi, {name}!",
            "Here you will find support initiatives, and even more ways to help on VK Dobro.",
        ])
    return "\n\n".join([
        f"Это бот помощи приграничным территориям. Привет, {name}!",
        "Здесь собраны инициативы поддержки, а ещё больше возможностей помогать найдёшь на ВК Добро.",
    ])


OPEN_MINI_APP_BUTTON: dict[LangCode, str] = {
    "ru": "Открыть мини-приложение",
    "en": "Open the mini app",
}

DOBRO_BUTTON: dict[LangCode, str] = {
    "ru": "Перейти на VK Добро",
    "en": "Go to VK Dobro",
}

DOBRO_URL = "https://dobro.mail.ru/"


# --- /stats ---

STATS_BUTTON: dict[LangCode, str] = {
    "ru": "📊 Статистика",
    "en": "📊 Stats",
}

STATS_LOADING: dict[LangCode, str] = {
    "ru": "Загрузка статистики...",
    "en": "Loading your stats...",
}

STATS_ERROR: dict[LangCode, str] = {
    "ru": "❌ Произошла ошибка при получении статистики. Попробуйте позже.",
    "en": "❌ Something went wrong while loading your stats. Please try again later.",
}

CALLBACK_ERROR: dict[LangCode, str] = {
    "ru": "Произошла ошибка",
    "en": "Something went wrong",
}


# --- Mensagem de progresso (política rolling) ---

LEVEL_NAMES: dict[LangCode, tuple[str, ...]] = {
    "ru": ("Новичок", "Участник", "Активист", "Волонтёр", "Амбассадор добра"),
    "en": ("Newcomer", "Supporter", "Activist", "Volunteer", "Ambassador of Kindness"),
}


def progress_message(
    lang: LangCode,
    delta: int,
    total: int,
    level_name: str,
    views_to_next: int | None,
    motivational_line: str,
) -> str:
    """Corpo da notificação: novos desde a última, total, nível, próximo nível, frase motivadora."""
    if lang == "en":
        lines = [
            "📊 Your progress",
            "",
            f"New views since last time: {delta}",
            f"Total views: {total}",
            f"Level: {level_name}",
        ]
        if views_to_next is None:
            lines.append("🏆 You have reached the highest level!")
        else:
            lines.append(f"Views to the next level: {views_to_next}")
    else:
        lines = [
            "📊 Ваш прогресс",
            "",
            f"Новых просмотров с прошлого раза: {delta}",
            f"Всего просмотров: {total}",
            f"Уровень: {level_name}",
        ]
        if views_to_next is None:
            lines.append("🏆 Вы достигли максимального уровня!")
        else:
            lines.append(f"До следующего уровня: {views_to_next}")
    lines += ["", motivational_line]
    return "\n".join(lines)


# --- Política milestones (3/5/10/20) ---

MILESTONE_MESSAGES: dict[LangCode, dict[int, str]] = {
    "ru": {
        3: "🎉 Отлично! Вы уже просмотрели 3 инициативы. Продолжайте исследовать возможности помочь!",
        5: "🌟 Превосходно! 5 просмотренных инициатив — вы на правильном пути к добрым делам!",
        10: "💫 Невероятно! 10 инициатив — вы настоящий активист добра! Спасибо за вашу активность!",
        20: "🏆 Потрясающе! 20 инициатив — вы вдохновляете других на добрые дела! Продолжайте в том же духе!",
    },
    "en": {
        3: "🎉 Great! You have already viewed 3 initiatives. Keep exploring ways to help!",
        5: "🌟 Excellent! 5 initiatives viewed, you are on the right path to doing good!",
        10: "💫 Amazing! 10 initiatives, you are a true activist of kindness! Thank you!",
        20: "🏆 Wonderful! 20 initiatives, you inspire others to do good! Keep it up!",
    },
}
