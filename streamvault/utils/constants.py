"""
Constantes globales pour StreamVault.

Ce module contient les constantes utilisees dans l'application:
- URLs de l'API TMDB et du CDN d'images
- Valeurs sentinelles des champs "jamais remplis" (placeholders)
- Valeurs par defaut des episodes et horodatages
- Correspondances genres -> categories, classifications, langues
"""

import re

# API TMDB
TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p"

# Tailles d'images TMDB
POSTER_SIZE = "w500"
STILL_SIZE = "w500"
BACKDROP_SIZE = "original"
PROFILE_SIZE = "w185"
LOGO_SIZE = "w200"

# Hote d'images de confiance (vignettes recuperees depuis TMDB)
TRUSTED_IMAGE_HOST = "tmdb.org"

# Hotes de photos generiques utilises comme vignettes provisoires
STOCK_IMAGE_HOSTS = ("unsplash.com",)

# Lien video factice colle sur les episodes jamais reellement uploades
PLACEHOLDER_VIDEO_URL = (
    "https://drive.google.com/file/d/1zcFHiGEOwgq2-j6hMqpsE0ov7qcIUqCd/preview"
)

# Date de diffusion recopiee sur tous les episodes d'un import en masse
PLACEHOLDER_AIR_DATE = "2013-09-12"

# Fragments des descriptions generees par les templates d'import
PLACEHOLDER_DESCRIPTION_MARKERS = (
    "In this exciting episode",
    "Online HINDI",
)

# Titre generique "Episode N"
GENERIC_EPISODE_TITLE_RE = re.compile(r"^Episode \d+$")

# Duree par defaut d'un episode sans runtime (minutes)
DEFAULT_EPISODE_DURATION = 45

# Horodatage de repli quand ni article ni annee ne sont disponibles
FALLBACK_CREATED_AT = "2024-01-01T00:00:00.000Z"

# Longueur minimale d'une variante de titre envoyee a la recherche
MIN_QUERY_LENGTH = 2

# Nombre de membres de distribution conserves
MAX_CAST_DETAILS = 10
MAX_CAST_NAMES = 5
MAX_PRODUCTION_COMPANIES = 5

# Genres TMDB -> categorie de navigation (premier match gagne)
GENRE_CATEGORY_RULES = (
    (("action", "adventure"), "action"),
    (("drama",), "drama"),
    (("comedy",), "comedy"),
    (("horror", "thriller"), "horror"),
    (("romance",), "romance"),
    (("sci-fi", "science fiction"), "sci-fi"),
    (("fantasy",), "fantasy"),
    (("documentary",), "documentary"),
    (("animation",), "animation"),
)
DEFAULT_CATEGORY = "drama"

# Classification TMDB -> classification TV affichee
CONTENT_RATING_MAP = {
    "TV-Y": "TV-Y",
    "TV-Y7": "TV-Y7",
    "TV-G": "TV-G",
    "TV-PG": "TV-PG",
    "TV-14": "TV-14",
    "TV-MA": "TV-MA",
    "G": "TV-G",
    "PG": "TV-PG",
    "PG-13": "TV-14",
    "R": "TV-MA",
    "NC-17": "TV-MA",
}
DEFAULT_CONTENT_RATING = "TV-14"

# Codes langue ISO 639-1 -> nom affiche
LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "hi": "Hindi",
    "pt": "Portuguese",
    "ru": "Russian",
    "ar": "Arabic",
}
DEFAULT_LANGUAGE = "English"

# Liens externes composes a partir des IDs TMDB /external_ids
EXTERNAL_LINK_TEMPLATES = {
    "imdb": ("imdb_id", "https://www.imdb.com/title/{}"),
    "facebook": ("facebook_id", "https://www.facebook.com/{}"),
    "twitter": ("twitter_id", "https://twitter.com/{}"),
    "instagram": ("instagram_id", "https://www.instagram.com/{}"),
    "wikidata": ("wikidata_id", "https://www.wikidata.org/wiki/{}"),
}
