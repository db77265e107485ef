"""
Couche services applicatifs (travaux de maintenance).

- reconciliation : fonctions pures (score, deduplication, upsert, fusion)
- batch : pilote de lots, machine a etats par entite, run_job
- show_enricher / movie_enricher : enrichissement TMDB du catalogue
- episode_enricher : reparation et ajout d'episodes par saison
- dedup_service : suppression des doublons d'episodes
- timestamp_backfill : horodatages de creation manquants
- production_info_enricher : societes et liens externes des articles

Les services dependent des ports de core/, jamais des adaptateurs concrets.
"""
