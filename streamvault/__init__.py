"""
StreamVault - Outils de maintenance du catalogue StreamVault.

Ce package fournit les fonctionnalites pour enrichir, reparer et dedoublonner
le magasin d'enregistrements JSON du site en utilisant les metadonnees TMDB.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entites, ports, erreurs)
- services/ : Couche application (reconciliation, pilote de lots, enrichisseurs)
- adapters/ : Couche infrastructure (CLI, magasin JSON, client API)
"""

__version__ = "0.1.0"
