"""Níveis de engajamento: tabela fixa de limiares (total de visualizações) → nível."""

from dataclasses import dataclass

from backend.locale import LangCode, LEVEL_NAMES

# Limiares ascendentes; o nível é o maior limiar <= total
LEVEL_THRESHOLDS: tuple[int, ...] = (0, 6, 16, 31, 51)


@dataclass(frozen=True)
class LevelInfo:
    index: int  # 0..len(LEVEL_THRESHOLDS)-1
    name: str
    threshold: int
    next_threshold: int | None  # None = nível máximo

    @property
    def is_max(self) -> bool:
        return self.next_threshold is None

    def views_to_next(self, total: int) -> int | None:
        """Quantas visualizações faltam para o próximo nível (None no nível máximo)."""
        if self.next_threshold is None:
            return None
        return max(0, self.next_threshold - total)


def level_index(total: int, thresholds: tuple[int, ...] = LEVEL_THRESHOLDS) -> int:
    """Função degrau: índice do maior limiar <= total. Totais negativos contam como 0."""
    total = max(0, total)
    idx = 0
    for i, threshold in enumerate(thresholds):
        if threshold <= total:
            idx = i
        else:
            break
    return idx


def level_for(total: int, lang: LangCode = "ru", thresholds: tuple[int, ...] = LEVEL_THRESHOLDS) -> LevelInfo:
    idx = level_index(total, thresholds)
    names = LEVEL_NAMES.get(lang) or LEVEL_NAMES["ru"]
    next_threshold = thresholds[idx + 1] if idx + 1 < len(thresholds) else None
    return LevelInfo(index=idx, name=names[idx], threshold=thresholds[idx], next_threshold=next_threshold)
