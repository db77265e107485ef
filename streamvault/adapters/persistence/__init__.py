"""
Persistance du magasin d'enregistrements (fichier JSON unique).

- JsonRecordStore : implementation de IRecordStore
- codec : conversion document JSON <-> entites, migration des anciennes cles
"""

from streamvault.adapters.persistence.json_store import JsonRecordStore

__all__ = ["JsonRecordStore"]
