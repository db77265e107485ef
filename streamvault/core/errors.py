"""
Exceptions du domaine StreamVault.

Taxonomie utilisee par le pilote de lots pour convertir chaque erreur
par entite en compteur :
- TransientNetworkError : connexion/timeout vers l'API, apres epuisement des tentatives
- NotFoundError : aucune correspondance cote API (issue normale, jamais relancee)
- ValidationError : entite sans champs d'identite, ignoree individuellement
- PersistenceError : lecture/ecriture du magasin impossible, fatale pour le lot
"""

from typing import Optional


class StreamVaultError(Exception):
    """Exception de base de l'application."""


class TransientNetworkError(StreamVaultError):
    """
    Echec reseau transitoire vers la source de metadonnees.

    Attributes:
        url: URL appelee lors du dernier essai (si connue)
    """

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        self.url = url
        super().__init__(message)


class NotFoundError(StreamVaultError):
    """La source de metadonnees ne connait pas ce titre ou cet identifiant."""


class ValidationError(StreamVaultError):
    """Une entite n'a pas les champs requis pour etre traitee."""


class PersistenceError(StreamVaultError):
    """Le magasin d'enregistrements ne peut pas etre lu ou ecrit."""
