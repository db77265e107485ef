"""
Couche domaine (core).

Contient les entites du catalogue, le document en memoire, les ports
(interfaces abstraites) et la taxonomie d'erreurs.
Cette couche n'a AUCUNE dependance vers l'infrastructure (adapters, HTTP, disque).

Sous-packages :
- entities/ : Entites metier (Show, Movie, Episode, BlogPost, ...) et RecordDocument
- ports/ : Interfaces abstraites definissant les contrats pour les adaptateurs
- errors : Exceptions du domaine
"""
