"""Toezicht dossier packaging service."""
