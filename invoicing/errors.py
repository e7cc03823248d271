from __future__ import annotations


class InvoicingError(Exception):
    """Racine des erreurs métier de l'application."""


class ValidationError(InvoicingError, ValueError):
    """Entrée refusée avant toute mutation (client manquant, lignes invalides, doublon...)."""


class InvalidStatus(ValidationError):
    def __init__(self, value: object):
        super().__init__(f"Statut invalide : {value!r}")
        self.value = value


class InvalidTransition(ValidationError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Transition impossible : {current} -> {target}")
        self.current = current
        self.target = target


class NotFoundError(InvoicingError, LookupError):
    def __init__(self, entity: str, key: object):
        super().__init__(f"{entity} introuvable : {key}")
        self.entity = entity
        self.key = key


class DependencyError(InvoicingError, RuntimeError):
    """Échec d'un collaborateur externe (stockage, moteur PDF)."""

    def __init__(self, message: str, detail: object = None):
        super().__init__(message if detail is None else f"{message} ({detail})")
        self.message = message
        self.detail = "" if detail is None else str(detail)
