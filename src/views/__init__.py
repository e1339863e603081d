"""Rendu texte des réponses du bot."""
