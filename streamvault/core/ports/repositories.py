"""
Interface port pour le magasin d'enregistrements.

Le magasin est manipule en bloc : chargement complet, mutations en memoire,
sauvegarde complete. Cette interface permet de substituer une vraie base
plus tard sans toucher au moteur de reconciliation.
"""

from abc import ABC, abstractmethod

from streamvault.core.entities.document import RecordDocument


class IRecordStore(ABC):
    """
    Interface de stockage du document StreamVault.

    Les implementations levent PersistenceError si le document ne peut pas
    etre lu ou ecrit.
    """

    @abstractmethod
    def load(self) -> RecordDocument:
        """Charge le document complet (document vide si inexistant)."""
        ...

    @abstractmethod
    def save(self, document: RecordDocument) -> None:
        """Sauvegarde le document complet."""
        ...
