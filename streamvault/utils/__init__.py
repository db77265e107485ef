"""Utilitaires partages : constantes et fonctions pures."""
