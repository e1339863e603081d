"""Noyau du bot : configuration, logging, permissions et moteur de file."""
