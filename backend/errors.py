"""Erros do núcleo de visualizações/engajamento."""


class EngagementError(Exception):
    """Base de todos os erros do subsistema."""


class StorageError(EngagementError):
    """Falha a ler/escrever ViewStore ou estado de engajamento (propaga ao caller)."""


class MessagingError(EngagementError):
    """Falha do canal de mensagens (envio ou edição). "Not found" na edição não é erro: ver EditResult."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotificationError(EngagementError):
    """Falha total do dispatch (edição e envio de fallback falharam). Só para logging."""

    def __init__(self, user_id: int, message: str):
        super().__init__(f"user {user_id}: {message}")
        self.user_id = user_id
