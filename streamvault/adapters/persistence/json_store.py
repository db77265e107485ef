"""
Magasin d'enregistrements sur fichier JSON unique.

Implemente IRecordStore : le document est lu entierement, modifie en
memoire, puis reecrit entierement. L'ecriture passe par un fichier
temporaire du meme repertoire remplace atomiquement (os.replace) : le
fichier cible contient toujours soit l'ancien document, soit le nouveau.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Union

from loguru import logger

from streamvault.adapters.persistence.codec import decode_document, encode_document
from streamvault.core.entities import RecordDocument
from streamvault.core.errors import PersistenceError
from streamvault.core.ports.repositories import IRecordStore
from streamvault.utils.helpers import utc_now_iso


class JsonRecordStore(IRecordStore):
    """
    Stockage du document StreamVault dans un fichier JSON.

    Example:
        store = JsonRecordStore("data/streamvault-data.json")
        document = store.load()
        ...
        store.save(document)
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """
        Initialise le magasin.

        Args:
            path: Chemin du fichier JSON (cree a la premiere sauvegarde)
        """
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> RecordDocument:
        """
        Charge le document complet.

        Returns:
            Le document, vide si le fichier n'existe pas encore

        Raises:
            PersistenceError: Fichier illisible ou JSON invalide
        """
        if not self._path.exists():
            logger.info("Magasin inexistant, document vide", path=str(self._path))
            return RecordDocument()

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Lecture impossible de {self._path}: {e}") from e
        except json.JSONDecodeError as e:
            raise PersistenceError(f"JSON invalide dans {self._path}: {e}") from e

        document = decode_document(raw)
        logger.debug(
            "Magasin charge",
            path=str(self._path),
            shows=len(document.shows),
            episodes=len(document.episodes),
            movies=len(document.movies),
        )
        return document

    def save(self, document: RecordDocument) -> None:
        """
        Sauvegarde le document complet (indentation 2, UTF-8).

        Horodate ``last_updated`` sur le document en memoire avant ecriture.

        Raises:
            PersistenceError: Ecriture impossible (aucun fichier partiel laisse)
        """
        document.last_updated = utc_now_iso()
        try:
            payload = json.dumps(encode_document(document), indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Document non serialisable: {e}") from e

        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.write("\n")
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Ecriture impossible de {self._path}: {e}") from e

        logger.info(
            "Magasin sauvegarde",
            path=str(self._path),
            last_updated=document.last_updated,
        )
