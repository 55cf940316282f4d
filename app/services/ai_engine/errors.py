from typing import List, Optional


class ScheduleError(Exception):
    """Racine des erreurs du pipeline de génération."""

    # Catégorie exposée dans GenerationResult.reason quand l'erreur est absorbée
    reason = "schedule_error"


class InvalidPreferences(ScheduleError):
    """Préférences absentes ou mal formées : seule erreur remontée à l'appelant."""

    reason = "invalid_input"


class GeneratorUnavailable(ScheduleError):
    """Réseau, timeout, statut non-2xx ou réponse vide côté LLM."""

    reason = "generator_unavailable"


class ParseFailure(ScheduleError):
    """Toutes les stratégies de parsing ont échoué."""

    reason = "parse_failure"

    def __init__(self, message: str, attempts: Optional[List[str]] = None, excerpt: str = ""):
        super().__init__(message)
        self.attempts = attempts or []
        self.excerpt = excerpt


class NoScheduleFound(ScheduleError):
    """JSON valide mais aucun tableau d'événements."""

    reason = "no_schedule_found"


class EmptyScheduleAfterValidation(ScheduleError):
    """Tous les éléments ont été rejetés par la normalisation."""

    reason = "empty_schedule"


class MalformedItem(ScheduleError):
    """Un élément inutilisable : ignoré, ne fait pas échouer le lot."""

    reason = "malformed_item"


class CalendarSyncError(Exception):
    """Échec de l'envoi vers Google Calendar."""
